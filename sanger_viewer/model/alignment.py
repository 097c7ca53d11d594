# sanger_viewer/model/alignment.py

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .coordinates import ReadPos, RefPos

GAP_CHAR = "-"
REFERENCE_TRACK_ID = "Reference"


class Allele(str, Enum):
    """
    Allele channels stored per reference position.
    Values match the backend's keys so they can come straight from the UI.
    """
    CONSENSUS = "cons"
    ALT1 = "alt1"
    ALT2 = "alt2"


@dataclass(frozen=True)
class AlignmentEntry:
    """
    One track's alignment at one reference position.

    The three allele tuples are parallel: slot k of each belongs to the same
    depth slot. scan_idx1 / scan_idx2 are 1-based base positions inside the
    read (sense / antisense peak), converted to scan space by the chart.
    """
    ref_pos: RefPos
    consensus: Tuple[str, ...] = ()
    alt1: Tuple[str, ...] = ()
    alt2: Tuple[str, ...] = ()
    scan_idx1: Tuple[int, ...] = ()
    scan_idx2: Tuple[int, ...] = ()

    @property
    def depth(self) -> int:
        """
        Local depth: number of slots this entry needs at its position.
        """
        return max(len(self.consensus), len(self.alt1), len(self.alt2), 1)

    def channel(self, allele: Allele) -> Tuple[str, ...]:
        if allele is Allele.ALT1:
            return self.alt1
        if allele is Allele.ALT2:
            return self.alt2
        return self.consensus

    def char_at(self, allele: Allele, sub_index: int) -> str:
        chars = self.channel(allele)
        if 0 <= sub_index < len(chars):
            return chars[sub_index]
        return GAP_CHAR

    def first_read_pos(self) -> Optional[ReadPos]:
        """
        First sense peak, falling back to the antisense one.
        """
        if self.scan_idx1:
            return ReadPos(self.scan_idx1[0])
        if self.scan_idx2:
            return ReadPos(self.scan_idx2[0])
        return None

    @property
    def has_alternatives(self) -> bool:
        return bool(self.alt1) or bool(self.alt2)


class AlignmentIndex(Mapping[RefPos, AlignmentEntry]):
    """
    Read-only view over one track's refPos -> AlignmentEntry map.

    Built once per job load and never mutated; a new job builds a new index.
    Lookups of absent positions return None rather than raising, so renderers
    can fall back to gap fillers.
    """

    def __init__(self, entries: Iterable[AlignmentEntry] = ()) -> None:
        by_pos: Dict[int, AlignmentEntry] = {}
        for entry in entries:
            by_pos[entry.ref_pos.value] = entry
        self._entries: Mapping[int, AlignmentEntry] = MappingProxyType(by_pos)
        self._sorted_keys: Tuple[int, ...] = tuple(sorted(by_pos))

    @classmethod
    def for_reference(cls, sequence: str) -> "AlignmentIndex":
        """
        Synthetic track for the reference sequence: one upper-cased base per
        position, mapped onto itself. scan_idx1 holds the 1-based position,
        the same read-position convention as every read track.
        """
        return cls(
            AlignmentEntry(
                ref_pos=RefPos(i + 1),
                consensus=(ch.upper(),),
                scan_idx1=(i + 1,),
            )
            for i, ch in enumerate(sequence)
        )

    # ------------------------------------------------------------------
    # Mapping interface
    # ------------------------------------------------------------------

    def __getitem__(self, ref_pos: RefPos) -> AlignmentEntry:
        return self._entries[ref_pos.value]

    def __iter__(self) -> Iterator[RefPos]:
        return (RefPos(k) for k in self._sorted_keys)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, ref_pos: object) -> bool:
        return isinstance(ref_pos, RefPos) and ref_pos.value in self._entries

    def get(self, ref_pos: RefPos, default: Optional[AlignmentEntry] = None) -> Optional[AlignmentEntry]:
        return self._entries.get(ref_pos.value, default)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def entries_sorted(self) -> Iterator[AlignmentEntry]:
        """
        Entries in ascending reference order.
        """
        return (self._entries[k] for k in self._sorted_keys)

    def entries_in_range(self, first: RefPos, last: RefPos) -> Iterator[AlignmentEntry]:
        """
        Entries with first <= refPos <= last, ascending.
        """
        lo, hi = sorted((first.value, last.value))
        return (self._entries[k] for k in self._sorted_keys if lo <= k <= hi)

    def depth_at(self, ref_pos: RefPos) -> int:
        """
        Local depth of this track only; 0 when the track has no entry.
        """
        entry = self.get(ref_pos)
        return entry.depth if entry is not None else 0

    @property
    def has_multiple_alleles(self) -> bool:
        return any(entry.has_alternatives for entry in self._entries.values())

    @property
    def last_position(self) -> Optional[RefPos]:
        return RefPos(self._sorted_keys[-1]) if self._sorted_keys else None

    def consensus_string(self, length: int) -> str:
        """
        First consensus base of every position 1..length, '-' where the track
        has nothing. Used for searching the reference row.
        """
        chars = []
        for pos in range(1, length + 1):
            entry = self._entries.get(pos)
            if entry is not None and entry.consensus:
                chars.append(entry.consensus[0])
            else:
                chars.append(GAP_CHAR)
        return "".join(chars)
