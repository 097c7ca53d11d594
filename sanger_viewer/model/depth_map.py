# sanger_viewer/model/depth_map.py

from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from .alignment import AlignmentIndex
from .coordinates import RefPos


class DepthMap:
    """
    Global slot count per reference position.

    depth(refPos) = max local depth over every loaded track, the reference
    track included. Every row renderer reads the same instance, so every track
    reserves the same number of sub-cells at a position.
    """

    def __init__(self, depths: Mapping[int, int]) -> None:
        self._depths: Mapping[int, int] = MappingProxyType(dict(depths))

    @classmethod
    def build(cls, indexes: Iterable[AlignmentIndex]) -> "DepthMap":
        depths: Dict[int, int] = {}
        for index in indexes:
            for ref_pos in index:
                key = ref_pos.value
                depths[key] = max(depths.get(key, 1), index.depth_at(ref_pos))
        return cls(depths)

    def get(self, ref_pos: RefPos) -> int:
        """
        Slot count at a position, 1 when no track covers it.
        """
        return max(1, self._depths.get(ref_pos.value, 1))

    def __len__(self) -> int:
        return len(self._depths)

    @property
    def max_depth(self) -> int:
        return max(self._depths.values(), default=1)


class CoverageMap:
    """
    Number of read tracks with an entry at each reference position.
    Drives the minimap histogram; the reference track is not counted.
    """

    def __init__(self, counts: Mapping[int, int]) -> None:
        self._counts: Mapping[int, int] = MappingProxyType(dict(counts))
        self.max_coverage: int = max(self._counts.values(), default=0)

    @classmethod
    def build(cls, read_indexes: Iterable[AlignmentIndex]) -> "CoverageMap":
        counts: Dict[int, int] = {}
        for index in read_indexes:
            for ref_pos in index:
                counts[ref_pos.value] = counts.get(ref_pos.value, 0) + 1
        return cls(counts)

    def get(self, ref_pos: RefPos) -> int:
        return self._counts.get(ref_pos.value, 0)

    def __len__(self) -> int:
        return len(self._counts)
