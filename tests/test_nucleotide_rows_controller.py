"""Tests for the rows controller's frame-coalesced wheel zoom."""

import pytest

from sanger_viewer.features.nucleotide_rows.nucleotide_rows_controller import NucleotideRowsController
from sanger_viewer.features.selection.selection_controller import SelectionController
from sanger_viewer.model.viewport_state import ViewportState


@pytest.fixture
def viewport() -> ViewportState:
    state = ViewportState(zoom=100, position=200)
    state.set_max_position(1000)
    return state


@pytest.fixture
def controller(viewport, session) -> NucleotideRowsController:
    # The zoom path never touches the view
    return NucleotideRowsController(viewport, SelectionController(session), view=None)


class TestWheelZoom:
    """Bursts of Ctrl + wheel notches."""

    def test_burst_is_one_viewport_update(self, controller, viewport):
        seen = []
        viewport.viewport_changed.subscribe(seen.append)

        scheduled = [controller.request_wheel_zoom(1.0, 0.5) for _ in range(8)]
        assert scheduled == [True] + [False] * 7
        assert seen == []
        assert controller.zoom_frame_requested

        controller.apply_pending_zoom()
        assert len(seen) == 1
        assert not controller.zoom_frame_requested
        assert viewport.zoom < 100

    def test_position_under_cursor_stays(self, controller, viewport):
        controller.request_wheel_zoom(1.0, 0.5)
        controller.apply_pending_zoom()
        assert viewport.position + viewport.zoom / 2 == pytest.approx(250, abs=1)

    def test_opposite_notches_cancel(self, controller, viewport):
        controller.request_wheel_zoom(1.0, 0.5)
        controller.request_wheel_zoom(-1.0, 0.5)
        controller.apply_pending_zoom()
        assert (viewport.zoom, viewport.position) == (100, 200)

    def test_zoom_out_moves_at_least_one_position(self, controller, viewport):
        viewport.set_zoom(1)
        controller.request_wheel_zoom(-0.1, 0.0)
        controller.apply_pending_zoom()
        assert viewport.zoom == 2

    def test_next_frame_starts_fresh(self, controller, viewport):
        controller.request_wheel_zoom(-1.0, 0.0)
        controller.apply_pending_zoom()
        zoom = viewport.zoom
        assert controller.request_wheel_zoom(-1.0, 0.0)
        controller.apply_pending_zoom()
        assert viewport.zoom > zoom
