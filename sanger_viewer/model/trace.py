# sanger_viewer/model/trace.py

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from .coordinates import BaseIndex, ReadPos, ScanIndex, read_pos_to_base_index

CHANNELS: Tuple[str, ...] = ("A", "C", "G", "T")

# Complementary channel shown in each slot when a trace is displayed reversed
REVERSE_CHANNELS: Dict[str, str] = {"A": "T", "C": "G", "G": "C", "T": "A"}

MIN_AMPLITUDE = 10.0


@dataclass(frozen=True)
class ChannelSignals:
    """
    Four-channel amplitude sample at one scan position.
    """
    a: float = 0.0
    c: float = 0.0
    g: float = 0.0
    t: float = 0.0


@dataclass(frozen=True)
class Trace:
    """
    Immutable raw chromatogram of one read.

    channel_* : amplitude per scan index
    peak_locations : scan index of each called base (base index -> scan index)
    """
    channel_a: Tuple[float, ...] = ()
    channel_c: Tuple[float, ...] = ()
    channel_g: Tuple[float, ...] = ()
    channel_t: Tuple[float, ...] = ()
    peak_locations: Tuple[int, ...] = ()
    _max_amplitude: float = field(default=0.0, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("channel_a", "channel_c", "channel_g", "channel_t"):
            object.__setattr__(self, name, tuple(float(v) for v in getattr(self, name)))
        object.__setattr__(self, "peak_locations", tuple(int(v) for v in self.peak_locations))

        peak = max(
            (max(ch) for ch in (self.channel_a, self.channel_c, self.channel_g, self.channel_t) if ch),
            default=0.0,
        )
        object.__setattr__(self, "_max_amplitude", max(peak, MIN_AMPLITUDE))

    # ------------------------------------------------------------------

    @property
    def scan_count(self) -> int:
        return len(self.channel_a)

    @property
    def base_count(self) -> int:
        return len(self.peak_locations)

    @property
    def is_empty(self) -> bool:
        return self.scan_count == 0

    @property
    def max_amplitude(self) -> float:
        """
        Global normalization factor, never below MIN_AMPLITUDE.
        """
        return self._max_amplitude

    def channel(self, base: str) -> Tuple[float, ...]:
        return {
            "A": self.channel_a,
            "C": self.channel_c,
            "G": self.channel_g,
            "T": self.channel_t,
        }[base]

    def display_channels(self, reverse: bool = False) -> Dict[str, Tuple[float, ...]]:
        """
        Data to draw in each color slot. Reverse swaps A<->T and C<->G data
        while keeping sample order, presenting the complementary strand.
        """
        if reverse:
            return {base: self.channel(REVERSE_CHANNELS[base]) for base in CHANNELS}
        return {base: self.channel(base) for base in CHANNELS}

    # ------------------------------------------------------------------
    # Signal lookups (out-of-range reads as 0)
    # ------------------------------------------------------------------

    def signals_at_scan(self, scan: Optional[ScanIndex]) -> ChannelSignals:
        if scan is None:
            return ChannelSignals()
        i = scan.value

        def sample(data: Sequence[float]) -> float:
            return data[i] if 0 <= i < len(data) else 0.0

        return ChannelSignals(
            a=sample(self.channel_a),
            c=sample(self.channel_c),
            g=sample(self.channel_g),
            t=sample(self.channel_t),
        )

    def scan_of_base(self, base: BaseIndex) -> Optional[ScanIndex]:
        """
        Strict lookup, None outside the peak table.
        """
        if 0 <= base.value < len(self.peak_locations):
            return ScanIndex(self.peak_locations[base.value])
        return None

    def signals_at_base(self, base: BaseIndex) -> ChannelSignals:
        return self.signals_at_scan(self.scan_of_base(base))

    def signals_at_read_pos(self, read_pos: ReadPos) -> ChannelSignals:
        return self.signals_at_base(read_pos_to_base_index(read_pos))
