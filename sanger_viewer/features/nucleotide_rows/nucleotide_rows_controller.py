# sanger_viewer/features/nucleotide_rows/nucleotide_rows_controller.py

import math
from math import pow
from typing import Callable, Optional

from PyQt5.QtCore import Qt, QTimer

from sanger_viewer.features.selection.selection_controller import (
    CopyAffordance,
    SelectionController,
    SignalPopupData,
)
from sanger_viewer.model.coordinates import ViewportIndex
from sanger_viewer.model.viewport_state import ViewportState

from .nucleotide_row_model import RowCell
from .nucleotide_rows_view import NucleotideRowsView


class NucleotideRowsController:
    """
    Controller layer of the alignment rows.

    Responsibilities:
    - mouse press / move / release -> SelectionController
    - label gutter clicks -> expand / collapse a track
    - right click -> signal popup data
    - Ctrl + wheel zoom around the cursor (one viewport update per frame),
      Shift + wheel horizontal moves
    """

    def __init__(
        self,
        viewport: ViewportState,
        selection: SelectionController,
        view: NucleotideRowsView,
        *,
        on_copy_affordance: Optional[Callable[[CopyAffordance], None]] = None,
        on_signal_popup: Optional[Callable[[SignalPopupData, int, int], None]] = None,
        on_popups_dismissed: Optional[Callable[[], None]] = None,
        zoom_frame_ms: int = 16,
    ) -> None:
        self._viewport = viewport
        self._selection = selection
        self._view = view

        self._pressed_cell: Optional[RowCell] = None
        self._pressed_track: Optional[str] = None

        # Ctrl + wheel streak acceleration
        self._wheel_zoom_streak_dir: Optional[int] = None
        self._wheel_zoom_streak_len: int = 0
        self._wheel_zoom_base_factor: float = 1.22
        self._wheel_zoom_accel_factor: float = 1.06

        # Wheel zoom coalesced into one viewport update per frame
        self.zoom_frame_ms = zoom_frame_ms
        self._pending_zoom_factor: float = 1.0
        self._pending_zoom_ratio: float = 0.5
        self._zoom_frame_requested = False

        self._on_copy_affordance = on_copy_affordance
        self._on_signal_popup = on_signal_popup
        self._on_popups_dismissed = on_popups_dismissed

    # ------------------------------------------------------------------
    # Selection (mouse events)
    # ------------------------------------------------------------------

    def handle_mouse_press(self, event) -> bool:
        if event.button() != Qt.LeftButton:
            return False

        # A press while a popup is open only closes it
        if self._selection.copy_affordance is not None or self._selection.signal_popup is not None:
            self._dismiss()
            return True

        scene_pos = self._view.mapToScene(event.pos())
        item, row, cell = self._view.hit_test(scene_pos)
        if item is None:
            self._dismiss()
            return True

        if cell is None:
            # Label gutter of the first line toggles the extra allele rows
            if row == 0 and item.model.has_multiple_alleles and not item.model.is_reference:
                self._view.toggle_expanded(item.track_id)
            return True

        self._pressed_cell = cell
        self._pressed_track = item.track_id
        self._selection.press(item.track_id, cell.viewport_index, cell.allele)
        return True

    def handle_mouse_move(self, event) -> bool:
        if not self._selection.is_selecting:
            return False

        index = self._index_at_x(self._view.mapToScene(event.pos()).x())
        if index is not None:
            self._selection.drag(index)
        return True

    def handle_mouse_release(self, event) -> bool:
        if event.button() != Qt.LeftButton or not self._selection.is_selecting:
            return False

        pos = event.pos()
        viewport = self._view.viewport()
        affordance = self._selection.release(pos.x(), pos.y(), viewport.width(), viewport.height())

        if affordance is not None:
            # The click produced by this release must not close the popup
            self._selection.dismiss()
            if self._on_copy_affordance is not None:
                self._on_copy_affordance(affordance)
        elif self._pressed_cell is not None and self._pressed_track is not None:
            cell = self._pressed_cell
            self._selection.click(self._pressed_track, cell.ref_pos, cell.is_insertion)

        self._pressed_cell = None
        self._pressed_track = None
        return True

    def handle_context_menu(self, event) -> bool:
        scene_pos = self._view.mapToScene(event.pos())
        item, _row, cell = self._view.hit_test(scene_pos)
        if item is None or cell is None:
            self._dismiss()
            return True

        data = self._selection.open_signal_popup(item.track_id, cell.ref_pos, cell.sub_index)
        if data is not None and self._on_signal_popup is not None:
            global_pos = event.globalPos()
            self._on_signal_popup(data, global_pos.x(), global_pos.y())
        return True

    def _dismiss(self) -> None:
        self._selection.dismiss()
        if self._on_popups_dismissed is not None:
            self._on_popups_dismissed()

    def _index_at_x(self, scene_x: float) -> Optional[ViewportIndex]:
        """
        Scene x -> viewport index, clamped onto the first / last slot so
        dragging past the edges keeps extending the range.
        """
        layout = self._view.window_layout
        if layout.slot_count <= 0 or not self._view.row_items:
            return None
        item = self._view.row_items[0]
        raw = (scene_x - item.label_width) / max(item.slot_width, 0.001)
        slot = max(0, min(layout.slot_count - 1, int(math.floor(raw))))
        return layout.index_at_slot(slot)

    # ------------------------------------------------------------------
    # Zoom / WheelEvent
    # ------------------------------------------------------------------

    def handle_wheel_event(self, event) -> bool:
        modifiers = event.modifiers()
        delta = event.angleDelta().y()

        if modifiers & Qt.ShiftModifier:
            if delta == 0:
                delta = event.angleDelta().x()
            if delta == 0:
                return True
            step = max(1, int(round(self._viewport.zoom * 0.1)))
            self._viewport.move_by(-step if delta > 0 else step)
            return True

        if not (modifiers & Qt.ControlModifier):
            return False

        if delta == 0:
            return True

        available = self._view.available_width()
        cursor_x = float(event.pos().x()) - self._view.label_width
        ratio = cursor_x / available if available > 0 else 0.5

        if self.request_wheel_zoom(delta / 120.0, ratio):
            QTimer.singleShot(self.zoom_frame_ms, self.apply_pending_zoom)
        return True

    def request_wheel_zoom(self, steps: float, ratio: float) -> bool:
        """
        Folds one wheel notch burst into the pending zoom factor. Returns True
        for the first request of a frame, when the caller must schedule
        apply_pending_zoom.
        """
        direction = 1 if steps > 0 else -1

        if self._wheel_zoom_streak_dir == direction:
            self._wheel_zoom_streak_len += 1
        else:
            self._wheel_zoom_streak_dir = direction
            self._wheel_zoom_streak_len = 1

        streak_boost = pow(
            self._wheel_zoom_accel_factor,
            max(0, self._wheel_zoom_streak_len - 1),
        )
        per_step_factor = self._wheel_zoom_base_factor * streak_boost
        magnitude_factor = pow(per_step_factor, abs(steps))
        # Zooming in shows fewer positions
        self._pending_zoom_factor *= 1.0 / magnitude_factor if direction > 0 else magnitude_factor
        self._pending_zoom_ratio = min(max(ratio, 0.0), 1.0)

        if self._zoom_frame_requested:
            return False
        self._zoom_frame_requested = True
        return True

    @property
    def zoom_frame_requested(self) -> bool:
        return self._zoom_frame_requested

    def apply_pending_zoom(self) -> None:
        """
        Applies the accumulated factor once, keeping the position under the
        cursor in place. Zoom and position change in a single viewport update.
        """
        factor = self._pending_zoom_factor
        ratio = self._pending_zoom_ratio
        self._pending_zoom_factor = 1.0
        self._pending_zoom_ratio = 0.5
        self._zoom_frame_requested = False

        if abs(factor - 1.0) < 1e-9:
            return

        current_zoom = self._viewport.zoom
        new_zoom = max(1, int(round(current_zoom * factor)))
        if new_zoom == current_zoom:
            new_zoom = current_zoom - 1 if factor < 1.0 else current_zoom + 1
        new_zoom = max(1, new_zoom)

        pivot = self._viewport.position + ratio * current_zoom
        start = max(0, int(math.floor(pivot - ratio * new_zoom)))
        self._viewport.set_range(start, start + new_zoom)
