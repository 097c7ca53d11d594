# sanger_viewer/features/nucleotide_rows/nucleotide_rows_view.py

from typing import Any, Dict, List, Optional, Tuple

from PyQt5.QtCore import Qt, QPointF
from PyQt5.QtGui import QPainter, QColor
from PyQt5.QtWidgets import QGraphicsView, QGraphicsScene

from sanger_viewer.model.depth_map import DepthMap
from sanger_viewer.model.viewport_state import Highlight, Viewport

from .nucleotide_row_item import NucleotideRowItem
from .nucleotide_row_model import NucleotideRowModel, RowCell, WindowLayout, compute_window_layout


class NucleotideRowsView(QGraphicsView):
    """
    Low-level QGraphicsView that stacks one NucleotideRowItem per track.

    MVC:
    - Model  : NucleotideRowModel per track + shared ViewportState / DepthMap
    - View   : this class (scene, vertical layout, window geometry)
    - Control: NucleotideRowsController (mouse / wheel handling)

    The horizontal axis is never scrolled: the window always spans the whole
    viewport width and is recomputed from the shared viewport on every change.
    """

    def __init__(
        self,
        parent=None,
        *,
        char_height: float = 18.0,
        label_width: float = 160.0,
    ) -> None:
        super().__init__(parent)

        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)

        self.char_height: int = int(round(char_height))
        self.label_width: float = float(label_width)

        self.row_items: List[NucleotideRowItem] = []
        self._items_by_track: Dict[str, NucleotideRowItem] = {}

        self._depth_map = DepthMap({})
        self._viewport: Optional[Viewport] = None
        self._highlight: Optional[Highlight] = None
        self._selected_track: Optional[str] = None
        self._layout = WindowLayout((), 0)

        self.setRenderHint(QPainter.Antialiasing, False)
        self.setRenderHint(QPainter.TextAntialiasing, True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setMouseTracking(True)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setBackgroundBrush(QColor(Qt.white))

        self._controller: Optional[Any] = None

    # ---------------------------------------------------------------------
    # Controller
    # ---------------------------------------------------------------------

    def set_controller(self, controller: Any) -> None:
        self._controller = controller

    # ---------------------------------------------------------------------
    # Items
    # ---------------------------------------------------------------------

    def add_row_item(self, model: NucleotideRowModel, **item_kwargs) -> NucleotideRowItem:
        item = NucleotideRowItem(model, label_width=self.label_width, **item_kwargs)
        self.scene.addItem(item)
        self.row_items.append(item)
        self._items_by_track[model.track_id] = item
        self.relayout()
        return item

    def clear_items(self) -> None:
        self.row_items.clear()
        self._items_by_track.clear()
        self.scene.clear()
        self.scene.setSceneRect(0, 0, 0, 0)
        self._layout = WindowLayout((), 0)

    def item_for(self, track_id: str) -> Optional[NucleotideRowItem]:
        return self._items_by_track.get(track_id)

    def toggle_expanded(self, track_id: str) -> None:
        item = self.item_for(track_id)
        if item is None:
            return
        item.set_expanded(not item.model.expanded)
        self.relayout()

    # ---------------------------------------------------------------------
    # Window geometry
    # ---------------------------------------------------------------------

    @property
    def window_layout(self) -> WindowLayout:
        return self._layout

    def set_depth_map(self, depth_map: DepthMap) -> None:
        self._depth_map = depth_map
        self.relayout()

    def set_viewport(self, viewport: Viewport) -> None:
        self._viewport = viewport
        self.relayout()

    def set_highlight(self, highlight: Optional[Highlight], selected_track: Optional[str] = None) -> None:
        self._highlight = highlight
        self._selected_track = selected_track
        self._push_window()

    def available_width(self) -> float:
        return max(1.0, float(self.viewport().width()) - self.label_width)

    def relayout(self) -> None:
        """
        Recomputes the shared slot layout, stacks the rows and repaints.
        """
        if self._viewport is not None:
            start, end = self._viewport.position, self._viewport.end
            self._layout = compute_window_layout(self._depth_map, start, end)

        y = 0.0
        for item in self.row_items:
            item.setPos(0, y)
            y += item.height
        self._push_window()
        self.scene.setSceneRect(0, 0, self.label_width + self.available_width(), y)

    def _push_window(self) -> None:
        slot_count = max(1, self._layout.slot_count)
        slot_width = self.available_width() / slot_count
        for item in self.row_items:
            item.set_window(
                self._layout,
                slot_width,
                self._highlight,
                item.track_id == self._selected_track,
            )
        self.viewport().update()

    # ---------------------------------------------------------------------
    # Hit testing
    # ---------------------------------------------------------------------

    def hit_test(self, scene_pos: QPointF) -> Tuple[Optional[NucleotideRowItem], Optional[int], Optional[RowCell]]:
        """
        Scene position -> (row item, allele row, cell). Any part can be None.
        """
        for item in self.row_items:
            local = item.mapFromScene(scene_pos)
            if not 0 <= local.y() < item.height:
                continue
            row = item.row_at(local.y())
            slot = item.slot_at(local.x())
            cell = item.model.cell_at(self._layout, row, slot) if row is not None and slot is not None else None
            return item, row, cell
        return None, None, None

    # ---------------------------------------------------------------------
    # Qt events (delegated to the controller)
    # ---------------------------------------------------------------------

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.relayout()

    def mousePressEvent(self, event) -> None:
        if self._controller is not None and self._controller.handle_mouse_press(event):
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:
        if self._controller is not None and self._controller.handle_mouse_move(event):
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:
        if self._controller is not None and self._controller.handle_mouse_release(event):
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def contextMenuEvent(self, event) -> None:
        if self._controller is not None and self._controller.handle_context_menu(event):
            event.accept()
            return
        super().contextMenuEvent(event)

    def wheelEvent(self, event) -> None:
        if self._controller is not None and self._controller.handle_wheel_event(event):
            event.accept()
            return
        super().wheelEvent(event)
