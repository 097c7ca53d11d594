"""
Coordinate value types for the viewer.

Four integer axes meet in this package and none of them may be mixed without
an explicit conversion:

* :class:`RefPos`        1-based position on the reference / alignment.
* :class:`ViewportIndex` 0-based position on the shared pan/zoom axis.
* :class:`ReadPos`       1-based base position inside one read (what the
                         alignment backend stores in ``scan_idx1/2``).
* :class:`BaseIndex`     0-based base position inside one read.
* :class:`ScanIndex`     0-based sample index into one read's signal arrays.

Pixel coordinates stay plain floats; they are always local to one surface.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True, order=True)
class RefPos:
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", int(self.value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class ViewportIndex:
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", int(self.value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class ReadPos:
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", int(self.value))


@dataclass(frozen=True, order=True)
class BaseIndex:
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", int(self.value))


@dataclass(frozen=True, order=True)
class ScanIndex:
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", int(self.value))


# ----------------------------------------------------------------------
# Reference <-> viewport
# ----------------------------------------------------------------------

def ref_to_viewport(ref_pos: RefPos) -> ViewportIndex:
    return ViewportIndex(ref_pos.value - 1)


def viewport_to_ref(index: ViewportIndex) -> RefPos:
    return RefPos(index.value + 1)


# ----------------------------------------------------------------------
# Read / scan space
# ----------------------------------------------------------------------

def read_pos_to_base_index(read_pos: ReadPos) -> BaseIndex:
    return BaseIndex(read_pos.value - 1)


def base_index_to_read_pos(base: BaseIndex) -> ReadPos:
    return ReadPos(base.value + 1)


def clamp_base_index(base: BaseIndex, peak_locations: Sequence[int]) -> Optional[BaseIndex]:
    """
    Clamp a base index into ``[0, len(peak_locations) - 1]``.
    Returns None when the read has no peak table at all.
    """
    if not peak_locations:
        return None
    return BaseIndex(max(0, min(base.value, len(peak_locations) - 1)))


def base_index_to_scan(base: BaseIndex, peak_locations: Sequence[int]) -> Optional[ScanIndex]:
    """
    base i of a read -> scan index of its peak.
    Out-of-range bases are clamped onto the first/last peak.
    """
    clamped = clamp_base_index(base, peak_locations)
    if clamped is None:
        return None
    return ScanIndex(peak_locations[clamped.value])


def scan_to_pixel(scan: ScanIndex, zoom_x: float) -> float:
    return scan.value * zoom_x


def pixel_to_scan(x: float, zoom_x: float) -> ScanIndex:
    if zoom_x <= 0:
        return ScanIndex(0)
    return ScanIndex(max(0, int(math.floor(x / zoom_x))))
