# sanger_viewer/features/nucleotide_rows/nucleotide_row_model.py

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from sanger_viewer.model.alignment import GAP_CHAR, Allele, AlignmentEntry, AlignmentIndex
from sanger_viewer.model.coordinates import RefPos, ViewportIndex, ref_to_viewport, viewport_to_ref
from sanger_viewer.model.depth_map import DepthMap
from sanger_viewer.model.viewport_state import Highlight


@dataclass(frozen=True)
class SlotSpan:
    """
    Horizontal space reserved for one reference position in the window.
    first_slot .. first_slot + depth - 1 are its sub-cells.
    """
    ref_pos: RefPos
    depth: int
    first_slot: int

    @property
    def viewport_index(self) -> ViewportIndex:
        return ref_to_viewport(self.ref_pos)


@dataclass(frozen=True)
class WindowLayout:
    """
    Slot layout of the visible window, identical for every track because it
    is derived from the shared DepthMap only.
    """
    spans: Tuple[SlotSpan, ...]
    slot_count: int

    def span_at_slot(self, slot: int) -> Optional[SlotSpan]:
        """
        Binary search: slot offset -> the reference position owning it.
        """
        if slot < 0 or slot >= self.slot_count or not self.spans:
            return None
        lo, hi = 0, len(self.spans) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self.spans[mid].first_slot <= slot:
                lo = mid
            else:
                hi = mid - 1
        return self.spans[lo]

    def index_at_slot(self, slot: int) -> Optional[ViewportIndex]:
        span = self.span_at_slot(slot)
        return span.viewport_index if span is not None else None

    def first_slot_of(self, index: ViewportIndex) -> Optional[int]:
        ref_pos = viewport_to_ref(index)
        for span in self.spans:
            if span.ref_pos == ref_pos:
                return span.first_slot
        return None


def compute_window_layout(depth_map: DepthMap, view_start: float, view_end: float) -> WindowLayout:
    """
    Expands every reference position of [floor(start), ceil(end)) into its
    global depth worth of slots.
    """
    first = int(math.floor(view_start))
    last = int(math.ceil(view_end))

    spans: List[SlotSpan] = []
    slot = 0
    for index in range(max(0, first), max(0, last)):
        ref_pos = viewport_to_ref(ViewportIndex(index))
        depth = depth_map.get(ref_pos)
        spans.append(SlotSpan(ref_pos, depth, slot))
        slot += depth
    return WindowLayout(tuple(spans), slot)


@dataclass(frozen=True)
class RowCell:
    """
    One drawable sub-cell. Every sub-cell of a reference position shares the
    position's viewport index.
    """
    char: str
    allele: Allele
    ref_pos: RefPos
    sub_index: int
    slot: int
    viewport_index: ViewportIndex
    is_match: bool = False
    is_insertion: bool = False
    is_highlighted: bool = False
    is_selection: bool = False
    scan_idx1: Tuple[int, ...] = ()
    scan_idx2: Tuple[int, ...] = ()

    @property
    def is_gap(self) -> bool:
        return self.char == GAP_CHAR


class NucleotideRowModel:
    """
    Model layer of one track in the alignment rows.

    Responsibilities:
    - the track's AlignmentIndex (None for a track without data: inert row)
    - expanded state (consensus only, or consensus + alt1 + alt2)
    - turning a WindowLayout into drawable RowCells per displayed allele row
    - zoom dependent display state (font size, TEXT / BOX / LINE mode)
    """

    TEXT_MODE = "text"
    BOX_MODE = "box"
    LINE_MODE = "line"

    _TEXT_BOX_THRESHOLD = 8.0
    _BOX_LINE_THRESHOLD = 5.0

    def __init__(
        self,
        track_id: str,
        alignment: Optional[AlignmentIndex],
        *,
        label: Optional[str] = None,
        is_reference: bool = False,
        expanded: bool = False,
        char_width: float = 12.0,
        char_height: float = 18.0,
    ) -> None:
        self.track_id = track_id
        self.label = label or track_id
        self.alignment = alignment
        self.is_reference = is_reference
        self.expanded = expanded
        self.show_all_bases = False

        self.char_width: float = max(char_width, 0.001)
        self.char_height: int = max(1, int(round(char_height)))
        self.default_char_width: float = self.char_width

        self.base_font_size: float = self.char_height * 0.6
        self.current_font_size: float = self.base_font_size
        self.display_mode: str = self.TEXT_MODE
        self.box_height: float = self.char_height * 0.7
        self.line_height: float = self.char_height * 0.3

        self._update_display_state()

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    @property
    def has_multiple_alleles(self) -> bool:
        return self.alignment is not None and self.alignment.has_multiple_alleles

    @property
    def alleles(self) -> Tuple[Allele, ...]:
        if self.expanded and not self.is_reference:
            return (Allele.CONSENSUS, Allele.ALT1, Allele.ALT2)
        return (Allele.CONSENSUS,)

    @property
    def row_count(self) -> int:
        return len(self.alleles)

    def toggle_expanded(self) -> None:
        self.expanded = not self.expanded

    def entry_at(self, ref_pos: RefPos) -> Optional[AlignmentEntry]:
        if self.alignment is None:
            return None
        return self.alignment.get(ref_pos)

    def build_rows(
        self,
        layout: WindowLayout,
        highlight: Optional[Highlight] = None,
        is_selected_row: bool = False,
    ) -> List[List[RowCell]]:
        """
        Cells for each displayed allele row, in slot order.

        A sub-cell draws the entry's character at that depth slot, or the gap
        filler when the entry is shorter than the global depth or absent.
        """
        alleles = self.alleles
        rows: List[List[RowCell]] = [[] for _ in alleles]

        for span in layout.spans:
            entry = self.entry_at(span.ref_pos)
            index = span.viewport_index
            highlighted = highlight is not None and highlight.contains(index)
            scan1 = entry.scan_idx1 if entry is not None else ()
            scan2 = entry.scan_idx2 if entry is not None else ()

            for k in range(span.depth):
                cons_char = entry.char_at(Allele.CONSENSUS, k) if entry is not None else GAP_CHAR

                for row_number, allele in enumerate(alleles):
                    if allele is Allele.CONSENSUS:
                        char = cons_char
                        is_match = False
                        is_insertion = False
                    else:
                        char = entry.char_at(allele, k) if entry is not None else GAP_CHAR
                        is_match = char == cons_char
                        is_insertion = char != GAP_CHAR and cons_char == GAP_CHAR

                    rows[row_number].append(
                        RowCell(
                            char=char,
                            allele=allele,
                            ref_pos=span.ref_pos,
                            sub_index=k,
                            slot=span.first_slot + k,
                            viewport_index=index,
                            is_match=is_match,
                            is_insertion=is_insertion,
                            is_highlighted=highlighted,
                            is_selection=highlighted and is_selected_row,
                            scan_idx1=scan1,
                            scan_idx2=scan2,
                        )
                    )
        return rows

    def cell_at(
        self,
        layout: WindowLayout,
        row_number: int,
        slot: int,
    ) -> Optional[RowCell]:
        """
        Hit test: (allele row, slot) -> the cell drawn there.
        """
        if not 0 <= row_number < self.row_count:
            return None
        span = layout.span_at_slot(slot)
        if span is None:
            return None

        k = slot - span.first_slot
        allele = self.alleles[row_number]
        entry = self.entry_at(span.ref_pos)
        cons_char = entry.char_at(Allele.CONSENSUS, k) if entry is not None else GAP_CHAR
        char = entry.char_at(allele, k) if entry is not None else GAP_CHAR
        is_alt = allele is not Allele.CONSENSUS

        return RowCell(
            char=char,
            allele=allele,
            ref_pos=span.ref_pos,
            sub_index=k,
            slot=slot,
            viewport_index=span.viewport_index,
            is_match=is_alt and char == cons_char,
            is_insertion=is_alt and char != GAP_CHAR and cons_char == GAP_CHAR,
            scan_idx1=entry.scan_idx1 if entry is not None else (),
            scan_idx2=entry.scan_idx2 if entry is not None else (),
        )

    # ------------------------------------------------------------------
    # Zoom / char_width
    # ------------------------------------------------------------------

    def set_char_width(self, new_width: float) -> None:
        self.char_width = max(new_width, 0.001)
        self._update_display_state()

    def _update_display_state(self) -> None:
        """
        Font size and display mode follow the slot width; the view only
        applies the numbers.
        """
        cw = max(self.char_width, 0.001)
        base_cw = max(self.default_char_width, 0.001)
        scale = cw / base_cw

        if scale >= 1.8:
            snapped_size = 12.0
        elif scale >= 1.2:
            snapped_size = 10.0
        elif scale >= 0.7:
            snapped_size = 8.0
        else:
            snapped_size = max(1.0, self.base_font_size * scale)

        self.current_font_size = snapped_size

        if self.current_font_size >= self._TEXT_BOX_THRESHOLD:
            self.display_mode = self.TEXT_MODE
        elif self.current_font_size >= self._BOX_LINE_THRESHOLD:
            self.display_mode = self.BOX_MODE
        else:
            self.display_mode = self.LINE_MODE

        box_reference_height = min(self.char_height * 0.7, self.current_font_size)
        self.box_height = max(box_reference_height, 1.0)
        self.line_height = self.char_height * 0.3


def row_chars(rows: Sequence[Sequence[RowCell]]) -> List[List[str]]:
    """
    Plain characters of built rows, handy for labels and tests.
    """
    return [[cell.char for cell in row] for row in rows]
