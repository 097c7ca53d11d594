# sanger_viewer/features/chromatogram/chromatogram_model.py

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sanger_viewer.model.coordinates import (
    BaseIndex,
    ReadPos,
    RefPos,
    ScanIndex,
    base_index_to_read_pos,
    base_index_to_scan,
    clamp_base_index,
    read_pos_to_base_index,
    scan_to_pixel,
)
from sanger_viewer.model.job_results import ReadResult
from sanger_viewer.model.observable import Observable
from sanger_viewer.model.trace import CHANNELS, ChannelSignals, Trace
from sanger_viewer.model.variant import HOM_ALT

RGBA = Tuple[int, int, int, int]

CENTER_COLOR: RGBA = (255, 255, 0, 128)
SAME_PEAK_COLOR: RGBA = (128, 0, 128, 204)
PEAK1_COLOR: RGBA = (255, 0, 0, 204)
PEAK2_COLOR: RGBA = (0, 0, 255, 204)


@dataclass(frozen=True)
class BaseGlyph:
    base: str
    index: BaseIndex
    x: float


@dataclass(frozen=True)
class Tick:
    x: float
    label: int


@dataclass(frozen=True)
class TrimOverlay:
    left_width: float
    right_x: float
    right_width: float


@dataclass(frozen=True)
class MarkerGlyph:
    """
    SNV / deletion annotation drawn at the variant's signal position.
    """
    kind: str
    x: float
    label: str
    tooltip: str


@dataclass(frozen=True)
class PeakHighlight:
    """
    Requested highlight, stored as a 1-based read position.
    """
    read_pos: ReadPos
    color: RGBA
    label: str = ""


@dataclass(frozen=True)
class HighlightGlyph:
    x: float
    color: RGBA
    label: str = ""


@dataclass(frozen=True)
class BaseSignals:
    """
    Click-to-inspect data of one called base.
    """
    read_id: str
    read_pos: ReadPos
    scan: Optional[ScanIndex]
    signals: ChannelSignals


class ChromatogramModel:
    """
    Model layer of one read's chromatogram surface.

    Responsibilities:
    - private pixel geometry: zoom_x (pixels per scan), zoom_y, scroll_x,
      surface width / height
    - mapping a reference window onto this read's scan space and fitting it
    - trace polylines, base glyphs, ticks, grid, trim overlay, variant markers
      and highlight markers in content pixels
    - coalescing bursts of zoom requests into one application per frame
    - two-turn scrolling: geometry first, scroll offset on the next turn

    Content x = scan * zoom_x; the view subtracts scroll_x when painting.
    """

    DEFAULT_ZOOM_X = 10.0
    DEFAULT_HEIGHT = 150.0
    AXIS_HEIGHT = 50.0
    MIN_ZOOM_X = 0.1
    MIN_FULL_ZOOM_X = 0.01
    MIN_ZOOM_Y = 0.1
    MIN_FRAME_FACTOR = 0.1
    MAX_FRAME_FACTOR = 10.0
    BUTTON_ZOOM_FACTOR = 1.5
    WHEEL_ZOOM_BASE = 1.1
    TICK_EVERY = 5
    GRID_RATIOS = (0.25, 0.5, 0.75)
    STATIC_PADDING = 50.0
    STATIC_MIN_WIDTH = 100.0

    def __init__(
        self,
        read: ReadResult,
        *,
        height: float = DEFAULT_HEIGHT,
        zoom_x: float = DEFAULT_ZOOM_X,
        static_mode: bool = False,
    ) -> None:
        self.read = read
        self.static_mode = static_mode

        self._zoom_x: float = zoom_x
        self._zoom_y: float = 1.0
        self._scroll_x: float = 0.0
        self._width: float = 0.0
        self._height: float = height
        self._reverse: bool = False

        self._pending_zoom_factor: float = 1.0
        self._pending_focal_x: Optional[float] = None
        self._zoom_frame_requested: bool = False
        self._pending_scroll_x: Optional[float] = None
        self._static_window: Optional[Tuple[RefPos, RefPos]] = None

        self._drag_origin: Optional[Tuple[float, float]] = None
        self._highlights: List[PeakHighlight] = []

        self.geometry_changed: Observable[None] = Observable()
        self.scroll_changed: Observable[float] = Observable()

    # ------------------------------------------------------------------
    # Basic state
    # ------------------------------------------------------------------

    @property
    def trace(self) -> Optional[Trace]:
        return self.read.trace if self.read.has_trace else None

    @property
    def zoom_x(self) -> float:
        return self._zoom_x

    @property
    def zoom_y(self) -> float:
        return self._zoom_y

    @property
    def scroll_x(self) -> float:
        return self._scroll_x

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def graph_height(self) -> float:
        return max(0.0, self._height - self.AXIS_HEIGHT)

    @property
    def total_width(self) -> float:
        trace = self.trace
        return trace.scan_count * self._zoom_x if trace is not None else 0.0

    @property
    def max_scroll_x(self) -> float:
        return max(0.0, self.total_width - self._width)

    @property
    def pending_scroll_x(self) -> Optional[float]:
        return self._pending_scroll_x

    @property
    def zoom_frame_requested(self) -> bool:
        return self._zoom_frame_requested

    @property
    def is_reverse(self) -> bool:
        return self._reverse

    @property
    def can_reverse(self) -> bool:
        return not self.read.ref_forward

    def set_size(self, width: float, height: Optional[float] = None) -> None:
        self._width = max(0.0, float(width))
        if height is not None:
            self._height = max(0.0, float(height))
        self._scroll_x = self._clamp_scroll(self._scroll_x)
        self.geometry_changed.notify(None)

    def set_scroll_x(self, x: float) -> None:
        new_x = self._clamp_scroll(x)
        if new_x == self._scroll_x:
            return
        self._scroll_x = new_x
        self.scroll_changed.notify(new_x)

    def _clamp_scroll(self, x: float) -> float:
        if math.isnan(x):
            return 0.0
        return min(max(0.0, x), self.max_scroll_x)

    def _set_zoom_x(self, zoom_x: float) -> None:
        self._zoom_x = zoom_x
        self.geometry_changed.notify(None)

    def toggle_reverse(self) -> bool:
        """
        Reverse display only exists for reads aligned against the reverse strand.
        """
        if not self.can_reverse:
            return False
        self._reverse = not self._reverse
        self.geometry_changed.notify(None)
        return True

    # ------------------------------------------------------------------
    # Coordinate mapping
    # ------------------------------------------------------------------

    def x_of_base(self, base: BaseIndex) -> Optional[float]:
        trace = self.trace
        if trace is None:
            return None
        scan = trace.scan_of_base(base)
        return scan_to_pixel(scan, self._zoom_x) if scan is not None else None

    def base_at_x(self, content_x: float) -> Optional[BaseIndex]:
        """
        Called base whose peak is closest to a content x position.
        """
        trace = self.trace
        if trace is None or not trace.peak_locations or self._zoom_x <= 0:
            return None
        scan = content_x / self._zoom_x
        locs = trace.peak_locations
        best = min(range(len(locs)), key=lambda i: abs(locs[i] - scan))
        return BaseIndex(best)

    def signal_y(self, value: float) -> float:
        trace = self.trace
        max_amp = trace.max_amplitude if trace is not None else 100.0
        graph_h = self.graph_height
        return graph_h - (value / max_amp) * self._zoom_y * graph_h

    def resolve_base_index(self, ref_pos: RefPos) -> Optional[BaseIndex]:
        """
        Reference position -> base index in this read, clamped into the peak
        table. Positions the read has no entry for fall back to their offset
        from the alignment start.
        """
        trace = self.trace
        if trace is None:
            return None
        entry = self.read.alignment.get(ref_pos)
        if entry is not None and entry.scan_idx1:
            base = read_pos_to_base_index(ReadPos(entry.scan_idx1[0]))
        else:
            base = BaseIndex(ref_pos.value - self.read.ref_start)
        return clamp_base_index(base, trace.peak_locations)

    def resolve_scan(self, ref_pos: RefPos) -> Optional[ScanIndex]:
        base = self.resolve_base_index(ref_pos)
        trace = self.trace
        if base is None or trace is None:
            return None
        return base_index_to_scan(base, trace.peak_locations)

    # ------------------------------------------------------------------
    # Reference window
    # ------------------------------------------------------------------

    def fit_reference_window(self, start: RefPos, end: RefPos) -> bool:
        """
        Scales zoom_x so [start, end] fills the surface width, then queues the
        scroll to the window start for the next turn.
        """
        start_scan = self.resolve_scan(start)
        end_scan = self.resolve_scan(end)
        if start_scan is None or end_scan is None or self._width <= 0:
            return False

        scans_in_range = end_scan.value - start_scan.value
        if scans_in_range <= 0:
            return False

        new_zoom = self._width / scans_in_range
        if not (new_zoom > 0 and math.isfinite(new_zoom)):
            return False

        self._set_zoom_x(new_zoom)
        if self.static_mode:
            self._static_window = (start, end)
        else:
            self._pending_scroll_x = start_scan.value * new_zoom
        return True

    def commit_pending_scroll(self) -> bool:
        """
        Second turn of a geometry change. Returns True when a scroll was applied.
        """
        target = self._pending_scroll_x
        self._pending_scroll_x = None
        if target is None:
            return False
        self.set_scroll_x(target)
        return True

    def static_view_box(self, start: RefPos, end: RefPos) -> Optional[Tuple[float, float, float, float]]:
        """
        (x, y, width, height) framing [start, end] with padding, for the
        non-interactive rendering used in reports.
        """
        if not self.static_mode:
            return None
        first = self.resolve_scan(start)
        last = self.resolve_scan(end)
        if first is None or last is None:
            return None
        if last < first:
            first, last = last, first

        start_x = max(0.0, first.value * self._zoom_x - self.STATIC_PADDING)
        width = max(
            self.STATIC_MIN_WIDTH,
            (last.value - first.value) * self._zoom_x + self.STATIC_PADDING * 2,
        )
        return start_x, 0.0, width, self._height

    def static_frame(self) -> Optional[Tuple[float, float, float, float]]:
        """
        View box of the last fitted window; None until a static chart is fitted.
        """
        if self._static_window is None:
            return None
        return self.static_view_box(*self._static_window)

    def visible_x_range(self) -> Tuple[float, float]:
        """
        Content x span the view paints: the static frame when there is one,
        the scrolled surface otherwise.
        """
        frame = self.static_frame()
        if frame is not None:
            x, _y, w, _h = frame
            return x, x + w
        return self._scroll_x, self._scroll_x + self._width

    # ------------------------------------------------------------------
    # Zoom
    # ------------------------------------------------------------------

    def request_zoom(self, factor: float, focal_x: Optional[float] = None) -> bool:
        """
        Accumulates a zoom request. Returns True when the caller must schedule
        apply_pending_zoom for the next frame.
        """
        if self.static_mode:
            return False
        self._pending_zoom_factor *= factor
        self._pending_focal_x = focal_x
        if self._zoom_frame_requested:
            return False
        self._zoom_frame_requested = True
        return True

    def apply_pending_zoom(self) -> None:
        """
        Applies the accumulated factor once, keeping the content under the
        focal point still. The scroll half lands on the next turn.
        """
        factor = self._pending_zoom_factor
        focal_x = self._pending_focal_x
        self._pending_zoom_factor = 1.0
        self._pending_focal_x = None
        self._zoom_frame_requested = False

        old_zoom = self._zoom_x
        safe_factor = max(self.MIN_FRAME_FACTOR, min(self.MAX_FRAME_FACTOR, factor))
        new_zoom = max(self.MIN_ZOOM_X, old_zoom * safe_factor)

        if focal_x is None:
            focal_x = self._width / 2
        position_at_focal = (self._scroll_x + focal_x) / old_zoom

        self._set_zoom_x(new_zoom)
        self._pending_scroll_x = position_at_focal * new_zoom - focal_x

    def zoom_in_x(self) -> bool:
        return self.request_zoom(self.BUTTON_ZOOM_FACTOR)

    def zoom_out_x(self) -> bool:
        return self.request_zoom(1 / self.BUTTON_ZOOM_FACTOR)

    def wheel_zoom_x(self, delta_y: float, focal_x: float) -> bool:
        return self.request_zoom(math.pow(self.WHEEL_ZOOM_BASE, -delta_y / 100), focal_x)

    def zoom_full_x(self) -> None:
        """
        Fits the whole trace into the surface width.
        """
        trace = self.trace
        if self.static_mode or trace is None or self._width <= 0:
            return
        self._set_zoom_x(max(self.MIN_FULL_ZOOM_X, self._width / trace.scan_count))
        self.set_scroll_x(self._scroll_x)

    def zoom_in_y(self) -> None:
        if self.static_mode:
            return
        self._zoom_y *= self.BUTTON_ZOOM_FACTOR
        self.geometry_changed.notify(None)

    def zoom_out_y(self) -> None:
        if self.static_mode:
            return
        self._zoom_y = max(self.MIN_ZOOM_Y, self._zoom_y / self.BUTTON_ZOOM_FACTOR)
        self.geometry_changed.notify(None)

    def zoom_full_y(self) -> None:
        if self.static_mode:
            return
        self._zoom_y = 1.0
        self.geometry_changed.notify(None)

    def wheel_zoom_y(self, delta: float) -> None:
        if self.static_mode or delta == 0:
            return
        factor = 0.9 if delta > 0 else 1.1
        self._zoom_y = max(self.MIN_ZOOM_Y, self._zoom_y * factor)
        self.geometry_changed.notify(None)

    # ------------------------------------------------------------------
    # Pan
    # ------------------------------------------------------------------

    def start_drag(self, x: float) -> None:
        if self.static_mode:
            return
        self._drag_origin = (x, self._scroll_x)

    def drag_to(self, x: float) -> None:
        if self._drag_origin is None:
            return
        origin_x, origin_scroll = self._drag_origin
        self.set_scroll_x(origin_scroll - (x - origin_x))

    def end_drag(self) -> None:
        self._drag_origin = None

    @property
    def is_dragging(self) -> bool:
        return self._drag_origin is not None

    def scroll_by(self, dx: float) -> None:
        self.set_scroll_x(self._scroll_x + dx)

    # ------------------------------------------------------------------
    # Centering / highlights
    # ------------------------------------------------------------------

    def center_on_x(self, content_x: float) -> None:
        if self.static_mode:
            return
        self.set_scroll_x(content_x - self._width / 2)

    def center_on_base_index(self, base: BaseIndex) -> bool:
        trace = self.trace
        if trace is None or not 0 <= base.value < trace.base_count:
            return False
        x = self.x_of_base(base)
        if x is not None:
            self.center_on_x(x)
        self._highlights = [PeakHighlight(base_index_to_read_pos(base), CENTER_COLOR)]
        self.geometry_changed.notify(None)
        return True

    def center_on_ref_pos(self, ref_pos: RefPos) -> bool:
        base = self.resolve_base_index(ref_pos)
        return base is not None and self.center_on_base_index(base)

    def highlight_peaks(self, highlights: Sequence[PeakHighlight]) -> None:
        """
        Replaces the highlight markers and centers on the first one.
        """
        self._highlights = list(highlights)
        if self._highlights:
            x = self.x_of_base(read_pos_to_base_index(self._highlights[0].read_pos))
            if x is not None:
                self.center_on_x(x)
        self.geometry_changed.notify(None)

    def highlight_ref_pos(self, ref_pos: RefPos, genotype: str = "") -> None:
        """
        Homozygous calls, or both strands on the same peak, get one purple
        marker; otherwise sense and antisense peaks are marked "1" and "2".
        """
        entry = self.read.alignment.get(ref_pos)
        if entry is None:
            self.clear_highlights()
            return

        peak1 = entry.scan_idx1[0] if entry.scan_idx1 else None
        peak2 = entry.scan_idx2[0] if entry.scan_idx2 else None

        wanted: List[PeakHighlight] = []
        if genotype == HOM_ALT or (peak1 is not None and peak1 == peak2):
            pos = peak1 or peak2
            if pos is not None:
                wanted.append(PeakHighlight(ReadPos(pos), SAME_PEAK_COLOR))
        else:
            if peak1 is not None:
                wanted.append(PeakHighlight(ReadPos(peak1), PEAK1_COLOR, "1"))
            if peak2 is not None:
                wanted.append(PeakHighlight(ReadPos(peak2), PEAK2_COLOR, "2"))

        if wanted:
            self.highlight_peaks(wanted)
        else:
            self.clear_highlights()

    def clear_highlights(self) -> None:
        if not self._highlights:
            return
        self._highlights = []
        self.geometry_changed.notify(None)

    @property
    def peak_highlights(self) -> List[PeakHighlight]:
        return list(self._highlights)

    # ------------------------------------------------------------------
    # Inspect
    # ------------------------------------------------------------------

    def inspect_base(self, base: BaseIndex) -> Optional[BaseSignals]:
        trace = self.trace
        if trace is None:
            return None
        scan = trace.scan_of_base(base)
        return BaseSignals(
            read_id=self.read.read_id,
            read_pos=base_index_to_read_pos(base),
            scan=scan,
            signals=trace.signals_at_scan(scan),
        )

    # ------------------------------------------------------------------
    # Drawables (content pixels)
    # ------------------------------------------------------------------

    def visible_scan_range(self) -> Tuple[int, int]:
        """
        [first, last) scans intersecting the surface, one sample of margin.
        """
        trace = self.trace
        if trace is None or self._zoom_x <= 0:
            return 0, 0
        left, right = self.visible_x_range()
        first = int(math.floor(left / self._zoom_x)) - 1
        last = int(math.ceil(right / self._zoom_x)) + 2
        return max(0, first), min(trace.scan_count, last)

    def trace_polylines(self, first: int = 0, last: Optional[int] = None) -> Dict[str, List[Tuple[float, float]]]:
        """
        Points per color slot (A, C, G, T). In reverse mode each slot draws
        the complementary channel's data.
        """
        trace = self.trace
        if trace is None:
            return {base: [] for base in CHANNELS}
        if last is None:
            last = trace.scan_count

        zx = self._zoom_x
        polylines: Dict[str, List[Tuple[float, float]]] = {}
        for slot, data in trace.display_channels(self._reverse).items():
            polylines[slot] = [(i * zx, self.signal_y(data[i])) for i in range(first, min(last, len(data)))]
        return polylines

    def _base_glyphs(self, bases: Sequence[str]) -> List[BaseGlyph]:
        trace = self.trace
        if trace is None or not bases:
            return []
        locs = trace.peak_locations
        return [
            BaseGlyph(base, BaseIndex(i), locs[i] * self._zoom_x)
            for i, base in enumerate(bases)
            if i < len(locs)
        ]

    def consensus_bases(self) -> List[BaseGlyph]:
        bases = self.read.consensus_complement if self._reverse else self.read.consensus_sequence
        return self._base_glyphs(bases)

    def reference_bases(self) -> List[BaseGlyph]:
        return self._base_glyphs(self.read.reference_slice)

    def ticks(self) -> List[Tick]:
        trace = self.trace
        if trace is None:
            return []
        return [
            Tick(scan * self._zoom_x, i + 1)
            for i, scan in enumerate(trace.peak_locations)
            if (i + 1) % self.TICK_EVERY == 0
        ]

    def grid_lines(self) -> List[float]:
        graph_h = self.graph_height
        return [graph_h - ratio * graph_h for ratio in self.GRID_RATIOS]

    def trim_overlay(self) -> TrimOverlay:
        trace = self.trace
        if trace is None or not trace.peak_locations:
            return TrimOverlay(0.0, 0.0, 0.0)

        locs = trace.peak_locations
        zx = self._zoom_x

        left_index = min(self.read.trim_left, len(locs) - 1)
        left_x = (locs[left_index - 1] if left_index > 0 else 0) * zx

        right_index = max(0, len(locs) - self.read.trim_right)
        right_x = (locs[right_index] if right_index < len(locs) else trace.scan_count) * zx

        return TrimOverlay(left_x, right_x, max(0.0, self.total_width - right_x))

    def variant_markers(self) -> List[MarkerGlyph]:
        markers: List[MarkerGlyph] = []
        for variant in self.read.variants:
            if variant.signal_scan_pos is None:
                continue
            x = scan_to_pixel(variant.signal_scan_pos, self._zoom_x)
            short = variant.genotype_short

            if variant.is_snv:
                label = f"SNV ({short})" if short else "SNV"
                tooltip = (
                    f"SNV: {variant.ref} -> {variant.alt}\n"
                    f"Genotype: {variant.genotype}\n"
                    f"Position: {variant.ref_pos.value}"
                )
                markers.append(MarkerGlyph("snv", x, label, tooltip))
            elif variant.is_deletion:
                label = f"DEL ({short})" if short else "DEL"
                tooltip = (
                    f"Deletion: {variant.deleted_bases}\n"
                    f"Genotype: {variant.genotype}\n"
                    f"Ref: {variant.ref}\n"
                    f"Read: {variant.alt}"
                )
                markers.append(MarkerGlyph("deletion", x, label, tooltip))
        return markers

    def highlight_glyphs(self) -> List[HighlightGlyph]:
        glyphs: List[HighlightGlyph] = []
        for highlight in self._highlights:
            x = self.x_of_base(read_pos_to_base_index(highlight.read_pos))
            if x is not None:
                glyphs.append(HighlightGlyph(x, highlight.color, highlight.label))
        return glyphs
