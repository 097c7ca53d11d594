# sanger_viewer/features/nucleotide_rows/nucleotide_row_item.py

import math
from typing import Dict, Optional

from PyQt5.QtCore import Qt, QRectF, QPointF
from PyQt5.QtGui import (
    QPainter,
    QFont,
    QColor,
    QPen,
    QBrush,
)
from PyQt5.QtWidgets import QGraphicsItem

from sanger_viewer.graphics.glyph_cache import GLYPH_CACHE, color_for, nucleotide_color_map
from sanger_viewer.model.alignment import Allele
from sanger_viewer.model.viewport_state import Highlight

from .nucleotide_row_model import NucleotideRowModel, WindowLayout

ALLELE_LABELS = {
    Allele.CONSENSUS: "cons",
    Allele.ALT1: "alt1",
    Allele.ALT2: "alt2",
}


class NucleotideRowItem(QGraphicsItem):
    """
    One track of the alignment rows: label gutter plus one line per displayed
    allele, drawn for the current window only.

    MVC:
    - Model : NucleotideRowModel (track data, expanded state, display mode)
    - View  : this class (QGraphicsItem + paint/boundingRect)
    - Controller: NucleotideRowsController, through the owning view
    """

    _BACKGROUND_BRUSH = QBrush(Qt.white)
    _LINE_BRUSH = QBrush(QColor(160, 160, 160))
    _LABEL_BRUSH = QBrush(QColor(245, 245, 245))
    _INSERTION_BRUSH = QBrush(QColor(255, 243, 205))
    _MATCH_ALPHA = 70

    def __init__(
        self,
        model: NucleotideRowModel,
        *,
        label_width: float = 160.0,
        color_map: Optional[Dict[str, QColor]] = None,
        highlight_color: str = "#FFF59D",
        selection_color: str = "#4A90D9",
        parent: Optional[QGraphicsItem] = None,
    ) -> None:
        super().__init__(parent)
        self.setFlag(QGraphicsItem.ItemUsesExtendedStyleOption, True)

        self._model = model
        self.label_width = float(label_width)
        self.color_map = color_map or nucleotide_color_map()
        self._highlight_brush = QBrush(QColor(highlight_color))
        selection = QColor(selection_color)
        selection.setAlpha(110)
        self._selection_brush = QBrush(selection)

        self._layout = WindowLayout((), 0)
        self._highlight: Optional[Highlight] = None
        self._is_selected_row = False

        self.font = QFont("Courier New")
        self.font.setStyleHint(QFont.Monospace)
        self.font.setFixedPitch(True)
        self.label_font = QFont()
        self.label_font.setPointSizeF(8.0)

        self._applied_font_size: float = -1.0
        self._sync_font_from_model()

    # ----------------- Model proxies -----------------

    @property
    def model(self) -> NucleotideRowModel:
        return self._model

    @property
    def track_id(self) -> str:
        return self._model.track_id

    @property
    def slot_width(self) -> float:
        return self._model.char_width

    @property
    def row_height(self) -> int:
        return self._model.char_height

    @property
    def height(self) -> float:
        return float(self._model.row_count * self._model.char_height)

    @property
    def layout(self) -> WindowLayout:
        return self._layout

    # ---------------- Public API ----------------

    def set_window(
        self,
        layout: WindowLayout,
        slot_width: float,
        highlight: Optional[Highlight],
        is_selected_row: bool,
    ) -> None:
        self.prepareGeometryChange()
        self._layout = layout
        self._highlight = highlight
        self._is_selected_row = is_selected_row
        self._model.set_char_width(slot_width)
        self._sync_font_from_model()
        self.update()

    def set_expanded(self, expanded: bool) -> None:
        if expanded == self._model.expanded:
            return
        self.prepareGeometryChange()
        self._model.expanded = expanded
        self.update()

    def slot_at(self, x: float) -> Optional[int]:
        """
        Item-local x -> slot offset in the window, None over the label gutter.
        """
        if x < self.label_width or self.slot_width <= 0:
            return None
        slot = int(math.floor((x - self.label_width) / self.slot_width))
        return slot if 0 <= slot < self._layout.slot_count else None

    def row_at(self, y: float) -> Optional[int]:
        row = int(math.floor(y / max(1, self.row_height)))
        return row if 0 <= row < self._model.row_count else None

    def slot_x(self, slot: int) -> float:
        return self.label_width + slot * self.slot_width

    # ---------------- Internal helpers ----------------

    def _sync_font_from_model(self) -> None:
        desired_size = float(self._model.current_font_size)
        if abs(desired_size - self._applied_font_size) < 0.001:
            return
        self.font.setPointSizeF(desired_size)
        self._applied_font_size = desired_size

    def _paint_labels(self, painter: QPainter) -> None:
        ch = self.row_height
        painter.setPen(Qt.NoPen)
        painter.setBrush(self._LABEL_BRUSH)
        painter.drawRect(QRectF(0, 0, self.label_width, self.height))

        painter.setFont(self.label_font)
        painter.setPen(QPen(QColor(40, 40, 40)))
        for row_number, allele in enumerate(self._model.alleles):
            y = row_number * ch
            if row_number == 0:
                marker = ""
                if self._model.has_multiple_alleles and not self._model.is_reference:
                    marker = "▾ " if self._model.expanded else "▸ "
                text = marker + self._model.label
            else:
                text = "    " + ALLELE_LABELS[allele]
            painter.drawText(
                QRectF(4, y, self.label_width - 8, ch),
                Qt.AlignVCenter | Qt.AlignLeft,
                text,
            )

    # ---------------- QGraphicsItem interface ----------------

    def boundingRect(self) -> QRectF:
        width = self.label_width + self.slot_width * self._layout.slot_count
        return QRectF(0, 0, width, self.height)

    def paint(self, painter: QPainter, option, widget=None) -> None:
        if option is None or option.exposedRect.isNull():
            return

        painter.save()

        painter.setPen(Qt.NoPen)
        painter.setBrush(self._BACKGROUND_BRUSH)
        painter.drawRect(option.exposedRect)

        self._paint_labels(painter)
        painter.setFont(self.font)

        cw = self.slot_width
        ch = self.row_height
        mode = self._model.display_mode
        rows = self._model.build_rows(self._layout, self._highlight, self._is_selected_row)

        for row_number, cells in enumerate(rows):
            y0 = row_number * ch

            # Line mode: one bar for the covered part of the window
            if mode == NucleotideRowModel.LINE_MODE:
                line_h = self._model.line_height
                painter.setPen(Qt.NoPen)
                for cell in cells:
                    x = self.slot_x(cell.slot)
                    if cell.is_highlighted:
                        painter.setBrush(self._selection_brush if cell.is_selection else self._highlight_brush)
                        painter.drawRect(QRectF(x, y0, cw, ch))
                    if not cell.is_gap:
                        painter.setBrush(self._LINE_BRUSH)
                        painter.drawRect(QRectF(x, y0 + (ch - line_h) / 2.0, cw, line_h))
                continue

            # 1) Backgrounds: highlight / selection / insertion
            painter.setPen(Qt.NoPen)
            for cell in cells:
                brush = None
                if cell.is_selection:
                    brush = self._selection_brush
                elif cell.is_highlighted:
                    brush = self._highlight_brush
                elif cell.is_insertion:
                    brush = self._INSERTION_BRUSH
                if brush is not None:
                    painter.setBrush(brush)
                    painter.drawRect(QRectF(self.slot_x(cell.slot), y0, cw, ch))

            # 2) Bases
            for cell in cells:
                color = QColor(color_for(self.color_map, cell.char))
                if cell.is_match and not self._model.show_all_bases:
                    color.setAlpha(self._MATCH_ALPHA)
                x = self.slot_x(cell.slot)

                if mode == NucleotideRowModel.TEXT_MODE:
                    glyph = GLYPH_CACHE.cell(cell.char, self.font, color, cw, ch)
                    painter.drawPixmap(QPointF(x, y0), glyph)
                else:
                    box_h = self._model.box_height
                    painter.setBrush(color)
                    painter.drawRect(QRectF(x, y0 + (ch - box_h) / 2.0, cw, box_h))

        painter.restore()
