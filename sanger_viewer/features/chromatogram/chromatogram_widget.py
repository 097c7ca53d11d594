# sanger_viewer/features/chromatogram/chromatogram_widget.py

import logging
from typing import Dict, Optional

from PyQt5.QtCore import Qt, QPointF, QRect, QRectF, QTimer, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen
from PyQt5.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QScrollBar,
    QToolButton,
    QToolTip,
    QVBoxLayout,
    QWidget,
)

from sanger_viewer.model.coordinates import BaseIndex, RefPos
from sanger_viewer.model.job_results import ReadResult
from sanger_viewer.model.trace import CHANNELS
from sanger_viewer.model.viewport_state import Viewport
from sanger_viewer.settings.color_palette import ColorPalette
from sanger_viewer.settings.config import ChromatogramSettings

from .chromatogram_model import RGBA, BaseSignals, ChromatogramModel

logger = logging.getLogger(__name__)


def _qcolor(rgba: RGBA) -> QColor:
    r, g, b, a = rgba
    return QColor(r, g, b, a)


class ChromatogramCanvas(QWidget):
    """
    Painting surface of one read's chromatogram.

    MVC:
    - Model : ChromatogramModel (zoom, scroll, drawables in content pixels)
    - View  : this QWidget (QPainter, subtracts scroll_x or scales the static frame)
    - Control: mouse / wheel handling below, zoom coalescing through QTimer
    """

    baseInspected = pyqtSignal(object)

    DRAG_THRESHOLD_PX = 3
    MARKER_HIT_PX = 4

    def __init__(
        self,
        model: ChromatogramModel,
        parent: Optional[QWidget] = None,
        *,
        channel_colors: Optional[Dict[str, str]] = None,
        nucleotide_colors: Optional[Dict[str, str]] = None,
        trim_color: str = "#E0E0E0",
        snv_color: str = "#D32F2F",
        deletion_color: str = "#7B1FA2",
        zoom_frame_ms: int = 16,
    ) -> None:
        super().__init__(parent)
        self.model = model
        self.zoom_frame_ms = zoom_frame_ms

        channel_colors = channel_colors or {"A": "#008000", "C": "#0000FF", "G": "#000000", "T": "#FF0000"}
        self._channel_pens = {base: QPen(QColor(channel_colors.get(base, "#000000")), 1.2) for base in CHANNELS}
        self._nucleotide_colors = {k.upper(): QColor(v) for k, v in (nucleotide_colors or {}).items()}

        trim = QColor(trim_color)
        trim.setAlpha(140)
        self._trim_brush = QBrush(trim)
        self._marker_colors = {"snv": QColor(snv_color), "deletion": QColor(deletion_color)}

        self.font = QFont("Courier New", 9)
        self.font.setStyleHint(QFont.Monospace)
        self.small_font = QFont("Arial", 7)

        self._press_x: Optional[float] = None

        self.setMinimumHeight(int(model.height))
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)

        self._unsubscribers = [
            model.geometry_changed.subscribe(lambda _v: self.update()),
            model.scroll_changed.subscribe(lambda _v: self.update()),
        ]

    # ------------------------------------------------------------------
    # Zoom scheduling
    # ------------------------------------------------------------------

    def schedule_zoom(self, requested: bool) -> None:
        if requested:
            QTimer.singleShot(self.zoom_frame_ms, self._apply_zoom)

    def _apply_zoom(self) -> None:
        self.model.apply_pending_zoom()
        QTimer.singleShot(0, self.model.commit_pending_scroll)

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.model.set_size(self.width(), self.height())

    def wheelEvent(self, event) -> None:
        modifiers = event.modifiers()
        delta_y = event.angleDelta().y()
        delta_x = event.angleDelta().x()

        if modifiers & Qt.ControlModifier:
            self.schedule_zoom(self.model.wheel_zoom_x(delta_y, float(event.pos().x())))
        elif modifiers & Qt.AltModifier:
            # Alt swaps the wheel axes on some platforms
            self.model.wheel_zoom_y(delta_y or delta_x)
        elif modifiers & Qt.ShiftModifier:
            self.model.scroll_by(-(delta_y or delta_x))
        elif delta_x:
            self.model.scroll_by(-delta_x)
        else:
            # Plain vertical wheel scrolls the surrounding chart list
            event.ignore()
            return
        event.accept()

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        self._press_x = float(event.pos().x())
        self.model.start_drag(self._press_x)
        self.setCursor(Qt.ClosedHandCursor)
        event.accept()

    def mouseMoveEvent(self, event) -> None:
        x = float(event.pos().x())
        if self.model.is_dragging:
            self.model.drag_to(x)
            event.accept()
            return

        content_x = x + self.model.scroll_x
        for marker in self.model.variant_markers():
            if abs(marker.x - content_x) <= self.MARKER_HIT_PX:
                QToolTip.showText(event.globalPos(), marker.tooltip, self)
                break
        else:
            QToolTip.hideText()
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            super().mouseReleaseEvent(event)
            return
        x = float(event.pos().x())
        was_click = self._press_x is not None and abs(x - self._press_x) < self.DRAG_THRESHOLD_PX
        self.model.end_drag()
        self._press_x = None
        self.unsetCursor()

        if was_click:
            base = self.model.base_at_x(x + self.model.scroll_x)
            if base is not None:
                self._inspect(base, event.globalPos())
        event.accept()

    def _inspect(self, base: BaseIndex, global_pos) -> None:
        signals = self.model.inspect_base(base)
        if signals is None:
            return
        s = signals.signals
        QToolTip.showText(
            global_pos,
            f"{signals.read_id}  base {signals.read_pos.value}\n"
            f"A {s.a:.0f}  C {s.c:.0f}  G {s.g:.0f}  T {s.t:.0f}",
            self,
        )
        self.baseInspected.emit(signals)

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), QBrush(Qt.white))

        model = self.model
        if model.trace is None:
            painter.setPen(QPen(QColor(120, 120, 120)))
            painter.drawText(QRectF(self.rect()), Qt.AlignCenter, "No trace data")
            painter.end()
            return

        frame = model.static_frame()
        if frame is not None:
            # Static charts scale the padded window onto the whole surface
            x, y, w, h = frame
            painter.setWindow(QRect(int(x), int(y), max(1, int(w)), max(1, int(h))))
        else:
            painter.translate(-model.scroll_x, 0)
        left, right = model.visible_x_range()
        graph_h = model.graph_height

        self._paint_trim(painter, graph_h)
        self._paint_grid(painter, left, right)
        self._paint_traces(painter)
        self._paint_highlights(painter, graph_h, left, right)
        self._paint_markers(painter, graph_h, left, right)
        self._paint_axis(painter, graph_h, left, right)

        painter.end()

    def _paint_trim(self, painter: QPainter, graph_h: float) -> None:
        trim = self.model.trim_overlay()
        painter.setPen(Qt.NoPen)
        painter.setBrush(self._trim_brush)
        if trim.left_width > 0:
            painter.drawRect(QRectF(0, 0, trim.left_width, graph_h))
        if trim.right_width > 0:
            painter.drawRect(QRectF(trim.right_x, 0, trim.right_width, graph_h))

    def _paint_grid(self, painter: QPainter, left: float, right: float) -> None:
        pen = QPen(QColor(220, 220, 220))
        pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        for y in self.model.grid_lines():
            painter.drawLine(QPointF(left, y), QPointF(right, y))

    def _paint_traces(self, painter: QPainter) -> None:
        first, last = self.model.visible_scan_range()
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setBrush(Qt.NoBrush)
        for slot, points in self.model.trace_polylines(first, last).items():
            if len(points) < 2:
                continue
            path = QPainterPath(QPointF(*points[0]))
            for x, y in points[1:]:
                path.lineTo(x, y)
            painter.setPen(self._channel_pens[slot])
            painter.drawPath(path)
        painter.setRenderHint(QPainter.Antialiasing, False)

    def _paint_highlights(self, painter: QPainter, graph_h: float, left: float, right: float) -> None:
        painter.setFont(self.small_font)
        for glyph in self.model.highlight_glyphs():
            if not left - 10 <= glyph.x <= right + 10:
                continue
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(_qcolor(glyph.color)))
            painter.drawRect(QRectF(glyph.x - 4, 0, 8, graph_h))
            if glyph.label:
                painter.setPen(QPen(Qt.black))
                painter.drawText(QRectF(glyph.x - 6, 0, 12, 12), Qt.AlignCenter, glyph.label)

    def _paint_markers(self, painter: QPainter, graph_h: float, left: float, right: float) -> None:
        painter.setFont(self.small_font)
        for marker in self.model.variant_markers():
            if not left - 60 <= marker.x <= right + 60:
                continue
            color = self._marker_colors.get(marker.kind, QColor(Qt.black))
            pen = QPen(color)
            pen.setStyle(Qt.DashLine)
            painter.setPen(pen)
            painter.drawLine(QPointF(marker.x, 12), QPointF(marker.x, graph_h))
            painter.setPen(QPen(color))
            painter.drawText(QRectF(marker.x - 40, 0, 80, 12), Qt.AlignCenter, marker.label)

    def _paint_axis(self, painter: QPainter, graph_h: float, left: float, right: float) -> None:
        painter.setPen(QPen(QColor(150, 150, 150)))
        painter.drawLine(QPointF(left, graph_h), QPointF(right, graph_h))

        painter.setFont(self.font)
        for row, glyphs in enumerate((self.model.consensus_bases(), self.model.reference_bases())):
            y = graph_h + 2 + row * 15
            for glyph in glyphs:
                if not left - 10 <= glyph.x <= right + 10:
                    continue
                painter.setPen(QPen(self._nucleotide_colors.get(glyph.base.upper(), QColor(Qt.black))))
                painter.drawText(QRectF(glyph.x - 6, y, 12, 14), Qt.AlignCenter, glyph.base)

        painter.setFont(self.small_font)
        painter.setPen(QPen(QColor(90, 90, 90)))
        tick_y = graph_h + 34
        for tick in self.model.ticks():
            if not left - 20 <= tick.x <= right + 20:
                continue
            painter.drawLine(QPointF(tick.x, tick_y), QPointF(tick.x, tick_y + 3))
            painter.drawText(QRectF(tick.x - 20, tick_y + 3, 40, 12), Qt.AlignCenter, str(tick.label))

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)


class ChromatogramWidget(QWidget):
    """
    One read's chromatogram with its toolbar and horizontal scroll bar.

    Signals:
    - baseInspected : BaseSignals of a clicked base
    """

    baseInspected = pyqtSignal(object)

    def __init__(
        self,
        read: ReadResult,
        parent: Optional[QWidget] = None,
        *,
        settings: Optional[ChromatogramSettings] = None,
        palette: Optional[ColorPalette] = None,
        static_mode: bool = False,
    ) -> None:
        super().__init__(parent)
        settings = settings or ChromatogramSettings()

        self.model = ChromatogramModel(
            read,
            height=settings.height,
            zoom_x=settings.default_zoom_x,
            static_mode=static_mode,
        )

        canvas_kwargs = {"zoom_frame_ms": settings.zoom_frame_ms}
        if palette is not None:
            canvas_kwargs.update(
                channel_colors={base: palette.get_channel_color(base) for base in CHANNELS},
                nucleotide_colors=dict(palette.nucleotide_colors),
                trim_color=palette.get_feature_color("trim") or "#E0E0E0",
                snv_color=palette.get_feature_color("snv_marker") or "#D32F2F",
                deletion_color=palette.get_feature_color("deletion_marker") or "#7B1FA2",
            )
        self.canvas = ChromatogramCanvas(self.model, self, **canvas_kwargs)
        self.canvas.baseInspected.connect(self.baseInspected)

        self.scrollbar = QScrollBar(Qt.Horizontal, self)
        self._syncing_scrollbar = False
        self.scrollbar.valueChanged.connect(self._on_scrollbar_changed)

        title = QLabel(read.read_name or read.read_id, self)
        title.setStyleSheet("font-weight: bold;")

        toolbar = QHBoxLayout()
        toolbar.setContentsMargins(0, 0, 0, 0)
        toolbar.addWidget(title)
        toolbar.addStretch(1)
        for text, tip, slot in (
            ("X+", "Zoom in horizontally", lambda: self.canvas.schedule_zoom(self.model.zoom_in_x())),
            ("X-", "Zoom out horizontally", lambda: self.canvas.schedule_zoom(self.model.zoom_out_x())),
            ("X=", "Fit whole trace", self.model.zoom_full_x),
            ("Y+", "Zoom in vertically", self.model.zoom_in_y),
            ("Y-", "Zoom out vertically", self.model.zoom_out_y),
            ("Y=", "Reset vertical zoom", self.model.zoom_full_y),
        ):
            toolbar.addWidget(self._tool_button(text, tip, slot))

        self.reverse_button = self._tool_button("Rev", "Show reverse complement", self.model.toggle_reverse)
        self.reverse_button.setCheckable(True)
        self.reverse_button.setEnabled(self.model.can_reverse)
        toolbar.addWidget(self.reverse_button)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)
        layout.addLayout(toolbar)
        layout.addWidget(self.canvas)
        layout.addWidget(self.scrollbar)

        self._unsubscribers = [
            self.model.geometry_changed.subscribe(lambda _v: self._sync_scrollbar()),
            self.model.scroll_changed.subscribe(lambda _v: self._sync_scrollbar()),
        ]

    def _tool_button(self, text: str, tooltip: str, slot) -> QToolButton:
        button = QToolButton(self)
        button.setText(text)
        button.setToolTip(tooltip)
        button.setAutoRaise(True)
        button.clicked.connect(lambda _checked=False: slot())
        return button

    # ------------------------------------------------------------------
    # Scroll bar <-> model
    # ------------------------------------------------------------------

    def _sync_scrollbar(self) -> None:
        self._syncing_scrollbar = True
        try:
            self.scrollbar.setRange(0, int(self.model.max_scroll_x))
            self.scrollbar.setPageStep(max(1, int(self.model.width)))
            self.scrollbar.setSingleStep(max(1, int(self.model.zoom_x * 10)))
            self.scrollbar.setValue(int(self.model.scroll_x))
        finally:
            self._syncing_scrollbar = False

    def _on_scrollbar_changed(self, value: int) -> None:
        if not self._syncing_scrollbar:
            self.model.set_scroll_x(float(value))

    # ------------------------------------------------------------------
    # Synchronization entry points
    # ------------------------------------------------------------------

    @property
    def read_id(self) -> str:
        return self.model.read.read_id

    def fit_viewport(self, viewport: Viewport) -> None:
        """
        Fits the shared reference window; the scroll half runs on the next
        event loop turn, after the new geometry is in place.
        """
        start = RefPos(viewport.position + 1)
        end = RefPos(max(viewport.position + 1, viewport.end))
        if self.model.fit_reference_window(start, end):
            QTimer.singleShot(0, self.model.commit_pending_scroll)

    def center_on_base_index(self, base: BaseIndex) -> bool:
        return self.model.center_on_base_index(base)

    def center_on_ref_pos(self, ref_pos: RefPos) -> bool:
        return self.model.center_on_ref_pos(ref_pos)

    def highlight_ref_pos(self, ref_pos: RefPos, genotype: str = "") -> None:
        self.model.highlight_ref_pos(ref_pos, genotype)

    def inspect(self, base: BaseIndex) -> Optional[BaseSignals]:
        return self.model.inspect_base(base)

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)
