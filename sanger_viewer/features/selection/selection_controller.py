# sanger_viewer/features/selection/selection_controller.py

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sanger_viewer.model.alignment import GAP_CHAR, REFERENCE_TRACK_ID, Allele, AlignmentIndex
from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.model.coordinates import ReadPos, RefPos, ViewportIndex, ref_to_viewport, viewport_to_ref
from sanger_viewer.model.observable import Observable
from sanger_viewer.model.trace import ChannelSignals
from sanger_viewer.model.viewport_state import Highlight


@dataclass(frozen=True)
class NucleotideSelection:
    track_id: str
    ref_pos: RefPos
    is_insertion: bool = False


@dataclass(frozen=True)
class CopyAffordance:
    """
    Where the "copy sequence" popup opens, already fitted inside the surface.
    """
    x: float
    y: float
    track_id: str
    allele: Allele


@dataclass(frozen=True)
class PeakSignals:
    read_pos: ReadPos
    signals: ChannelSignals


@dataclass(frozen=True)
class SignalPopupData:
    """
    Context-menu content for one cell: every peak of both strands with its
    four-channel amplitudes.
    """
    track_id: str
    ref_pos: RefPos
    sub_index: int
    sense: Tuple[PeakSignals, ...]
    antisense: Tuple[PeakSignals, ...]


class SelectionController:
    """
    Mouse selection state shared by all alignment rows.

    Responsibilities:
    - press / drag / release range selection on the viewport-index axis
    - single clicks (nucleotide_selected) and their one-shot suppression
      after a range drag
    - copy popup placement and signal popup data
    - extracting the gap-free sequence of the highlighted range
    """

    POPUP_WIDTH = 150.0
    POPUP_HEIGHT = 40.0

    def __init__(self, session: AnalysisSession) -> None:
        self._session = session

        self._is_selecting: bool = False
        self._anchor: Optional[ViewportIndex] = None
        self._previous_highlight: Optional[Highlight] = None
        self._ignore_next_click: bool = False

        self.selecting_track: Optional[str] = None
        self.selecting_allele: Allele = Allele.CONSENSUS
        self.copy_affordance: Optional[CopyAffordance] = None
        self.signal_popup: Optional[SignalPopupData] = None

        self.nucleotide_selected: Observable[NucleotideSelection] = Observable()
        self.popups_changed: Observable[None] = Observable()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_selecting(self) -> bool:
        return self._is_selecting

    @property
    def ignore_next_click(self) -> bool:
        return self._ignore_next_click

    @property
    def highlight(self) -> Optional[Highlight]:
        return self._session.viewport.highlight

    # ------------------------------------------------------------------
    # Range selection (mouse press / move / release)
    # ------------------------------------------------------------------

    def press(self, track_id: str, index: ViewportIndex, allele: Allele = Allele.CONSENSUS) -> None:
        current = self.highlight
        self._previous_highlight = current if current is not None and current.is_single else None

        self._is_selecting = True
        self._anchor = index
        self.selecting_track = track_id
        self.selecting_allele = allele
        self._session.viewport.set_highlight(index, index)

    def drag(self, index: ViewportIndex) -> None:
        if not self._is_selecting or self._anchor is None:
            return
        self._session.viewport.set_highlight(min(self._anchor, index), max(self._anchor, index))

    def release(
        self,
        x: float,
        y: float,
        surface_width: float,
        surface_height: float,
    ) -> Optional[CopyAffordance]:
        """
        Ends a drag. A range spanning more than one position opens the copy
        popup at (x, y) pushed back inside the surface, and swallows the click
        that the same release produces.
        """
        was_selecting = self._is_selecting
        self._is_selecting = False
        self._anchor = None

        highlight = self.highlight
        if not was_selecting or highlight is None or highlight.is_single or self.selecting_track is None:
            return None

        px, py = self._fit_inside(x, y, surface_width, surface_height)
        self.copy_affordance = CopyAffordance(px, py, self.selecting_track, self.selecting_allele)
        self._ignore_next_click = True
        self.popups_changed.notify(None)
        return self.copy_affordance

    def _fit_inside(self, x: float, y: float, width: float, height: float) -> Tuple[float, float]:
        if x + self.POPUP_WIDTH > width:
            x = width - self.POPUP_WIDTH
        if y + self.POPUP_HEIGHT > height:
            y = height - self.POPUP_HEIGHT
        return max(0.0, x), max(0.0, y)

    # ------------------------------------------------------------------
    # Clicks
    # ------------------------------------------------------------------

    def click(self, track_id: str, ref_pos: RefPos, is_insertion: bool = False) -> bool:
        """
        Single-cell click. Returns False when the click was ignored.
        """
        if self._is_selecting:
            return False
        index = ref_to_viewport(ref_pos)
        self._session.viewport.set_highlight(index, index)
        self.nucleotide_selected.notify(NucleotideSelection(track_id, ref_pos, is_insertion))
        return True

    def dismiss(self) -> None:
        """
        Document click / right click outside a popup.
        """
        if self._ignore_next_click:
            self._ignore_next_click = False
            return

        had_copy = self.copy_affordance is not None
        had_popup = had_copy or self.signal_popup is not None
        self.copy_affordance = None
        self.signal_popup = None

        # Only closing the copy popup gives the range highlight back
        if had_copy:
            previous = self._previous_highlight
            self._previous_highlight = None
            if previous is not None:
                self._session.viewport.set_highlight(previous.start, previous.end)
            else:
                self._session.viewport.clear_highlight()

        if had_popup:
            self.popups_changed.notify(None)

    # ------------------------------------------------------------------
    # Popups
    # ------------------------------------------------------------------

    def open_signal_popup(self, track_id: str, ref_pos: RefPos, sub_index: int = 0) -> Optional[SignalPopupData]:
        """
        Gathers the amplitudes under every peak the cell maps to. Signals read
        as 0 when the read has no trace or the peak is out of range.
        """
        alignment = self._session.track(track_id)
        entry = alignment.get(ref_pos) if alignment is not None else None
        if entry is None:
            return None

        read = self._session.read(track_id)
        trace = read.trace if read is not None else None

        def peaks(positions: Tuple[int, ...]) -> Tuple[PeakSignals, ...]:
            result: List[PeakSignals] = []
            for value in positions:
                read_pos = ReadPos(value)
                signals = trace.signals_at_read_pos(read_pos) if trace is not None else ChannelSignals()
                result.append(PeakSignals(read_pos, signals))
            return tuple(result)

        self.signal_popup = SignalPopupData(
            track_id=track_id,
            ref_pos=ref_pos,
            sub_index=sub_index,
            sense=peaks(entry.scan_idx1),
            antisense=peaks(entry.scan_idx2),
        )
        self.popups_changed.notify(None)
        return self.signal_popup

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy_sequence(self, allele: Allele = Allele.CONSENSUS, track_id: Optional[str] = None) -> str:
        """
        Bases of one allele over the highlighted range, every depth slot in
        ascending reference order, with gap fillers removed. Without a
        highlight the whole track is copied.
        """
        track_id = track_id or self.selecting_track or REFERENCE_TRACK_ID
        alignment: Optional[AlignmentIndex] = self._session.track(track_id)
        if alignment is None:
            return ""

        highlight = self.highlight
        if highlight is None:
            entries = alignment.entries_sorted()
        else:
            entries = alignment.entries_in_range(
                viewport_to_ref(highlight.start),
                viewport_to_ref(highlight.end),
            )

        return "".join(
            ch
            for entry in entries
            for ch in entry.channel(Allele(allele))
            if ch != GAP_CHAR
        )
