# sanger_viewer/features/minimap/minimap_widget.py

from typing import Optional

from PyQt5.QtCore import Qt, QRectF
from PyQt5.QtGui import QBrush, QColor, QFont, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QWidget

from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.model.job_results import JobResults
from sanger_viewer.settings.color_palette import ColorPalette

from .minimap_model import MinimapModel, Rect


def _qrect(rect: Rect) -> QRectF:
    return QRectF(rect.x, rect.y, rect.width, rect.height)


class MinimapWidget(QWidget):
    """
    Whole-reference overview above the alignment rows.

    MVC:
    - Model : MinimapModel (x <-> refPos, coverage columns, feature boxes, ticks)
    - View  : this QWidget (QPainter + pixmap cache for the static layers)
    - Control: click / drag re-centers the shared viewport, also in this class
    """

    def __init__(
        self,
        session: AnalysisSession,
        parent: Optional[QWidget] = None,
        *,
        palette: Optional[ColorPalette] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session

        self.setMinimumHeight(48)
        self.setMaximumHeight(48)
        self.setMouseTracking(True)

        self.font = QFont("Arial", 7)

        coverage = QColor((palette.get_feature_color("coverage") if palette else None) or "#90A4AE")
        self._coverage_brush = QBrush(coverage)
        viewport_color = QColor((palette.get_feature_color("viewport") if palette else None) or "#E53935")
        self._viewport_pen = QPen(viewport_color, 1.5)
        viewport_fill = QColor(viewport_color)
        viewport_fill.setAlpha(40)
        self._viewport_brush = QBrush(viewport_fill)

        self._model = MinimapModel()
        self._dragging = False

        # Static layers: ticks, coverage, features
        self._pixmap: Optional[QPixmap] = None

        self._unsubscribers = [
            session.job_loaded.subscribe(self._on_job_loaded),
            session.viewport.viewport_changed.subscribe(lambda _v: self.update()),
        ]
        if session.job is not None:
            self._on_job_loaded(session.job)

    @property
    def model(self) -> MinimapModel:
        return self._model

    # ------------------------------------------------------------------ #
    # Data
    # ------------------------------------------------------------------ #

    def _on_job_loaded(self, job: JobResults) -> None:
        self._model.set_reference_length(len(job.reference_sequence))
        self._model.set_coverage(self._session.coverage_map)
        self._model.set_features(job.features)
        self._invalidate_pixmap()

    def _invalidate_pixmap(self) -> None:
        self._pixmap = None
        self.update()

    def _rebuild_pixmap(self, width: int, height: int) -> None:
        pm = QPixmap(width, height)
        pm.fill(Qt.white)

        p = QPainter(pm)
        p.setRenderHint(QPainter.Antialiasing, False)
        p.setRenderHint(QPainter.TextAntialiasing, True)

        # Coverage histogram, bottom aligned
        p.setPen(Qt.NoPen)
        p.setBrush(self._coverage_brush)
        for column in self._model.coverage_columns(width, height):
            p.drawRect(_qrect(column.rect))

        # Feature track
        for box in self._model.feature_boxes(width, height):
            p.setBrush(QBrush(QColor(box.color)))
            p.drawRect(_qrect(box.rect))

        # Ticks + labels
        layout = self._model.compute_tick_layout(width)
        if layout is not None and layout.max_len > 0:
            p.setFont(self.font)
            p.setPen(QPen(Qt.black))
            baseline_y = height - 1
            for nt in layout.minor_ticks:
                x = int(nt / layout.max_len * width)
                p.drawLine(x, baseline_y, x, baseline_y - 3)

            label_box_width = 50.0
            for t in layout.major_ticks:
                x = int(t / layout.max_len * width)
                p.drawLine(x, baseline_y, x, baseline_y - 6)
                text = self._model.format_label(1 if t == 0 else t)
                if t == 0:
                    text_rect = QRectF(2, height - 20, label_box_width, 12)
                    align = Qt.AlignLeft | Qt.AlignVCenter
                elif t == layout.max_len:
                    text_rect = QRectF(width - label_box_width - 2, height - 20, label_box_width, 12)
                    align = Qt.AlignRight | Qt.AlignVCenter
                else:
                    text_rect = QRectF(x - label_box_width / 2.0, height - 20, label_box_width, 12)
                    align = Qt.AlignHCenter | Qt.AlignVCenter
                p.drawText(text_rect, align, text)

        p.setPen(QPen(QColor(180, 180, 180)))
        p.setBrush(Qt.NoBrush)
        p.drawRect(QRectF(0, 0, width, height).adjusted(0, 0, -1, -1))
        p.end()
        self._pixmap = pm

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def resizeEvent(self, event) -> None:
        self._invalidate_pixmap()
        super().resizeEvent(event)

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        width = self.width()
        height = self.height()

        if self._model.max_len <= 0 or width <= 0:
            painter.fillRect(self.rect(), QBrush(Qt.white))
            painter.end()
            return

        if self._pixmap is None or self._pixmap.width() != width or self._pixmap.height() != height:
            self._rebuild_pixmap(width, height)
        if self._pixmap is not None:
            painter.drawPixmap(0, 0, self._pixmap)

        # Viewport overlay
        rect = self._model.viewport_rect(self._session.viewport.viewport, width, height)
        if rect is not None:
            painter.setPen(self._viewport_pen)
            painter.setBrush(self._viewport_brush)
            painter.drawRect(_qrect(rect).adjusted(0.5, 0.5, -0.5, -0.5))
        painter.end()

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton or self._model.max_len <= 0:
            super().mousePressEvent(event)
            return
        self._dragging = True
        self._recenter(event.pos().x())
        event.accept()

    def mouseMoveEvent(self, event) -> None:
        if self._dragging:
            self._recenter(event.pos().x())
            event.accept()
            return
        if self._model.max_len > 0:
            ref = int(self._model.x_to_ref(event.pos().x(), self.width())) + 1
            self.setToolTip(f"Position {min(ref, self._model.max_len)}")
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:
        if event.button() == Qt.LeftButton and self._dragging:
            self._dragging = False
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def _recenter(self, x: float) -> None:
        viewport = self._session.viewport
        viewport.set_position(self._model.position_for_click(x, self.width(), viewport.zoom))

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)
