"""Tests for the shared viewport state and coordinate conversions."""

import math
import random

import pytest

from sanger_viewer.model.coordinates import (
    BaseIndex,
    ReadPos,
    RefPos,
    ScanIndex,
    ViewportIndex,
    base_index_to_scan,
    clamp_base_index,
    pixel_to_scan,
    read_pos_to_base_index,
    ref_to_viewport,
    scan_to_pixel,
    viewport_to_ref,
)
from sanger_viewer.model.observable import Observable
from sanger_viewer.model.viewport_state import Highlight, ViewportState


class TestCoordinates:
    """Named conversions between the coordinate spaces."""

    def test_ref_viewport_round_trip(self):
        assert ref_to_viewport(RefPos(1)) == ViewportIndex(0)
        assert viewport_to_ref(ViewportIndex(41)) == RefPos(42)

    def test_read_pos_is_one_based(self):
        assert read_pos_to_base_index(ReadPos(1)) == BaseIndex(0)

    def test_base_index_to_scan_clamps(self):
        peaks = [5, 15, 25]
        assert base_index_to_scan(BaseIndex(1), peaks) == ScanIndex(15)
        assert base_index_to_scan(BaseIndex(-3), peaks) == ScanIndex(5)
        assert base_index_to_scan(BaseIndex(99), peaks) == ScanIndex(25)

    def test_empty_peak_table(self):
        assert clamp_base_index(BaseIndex(0), []) is None
        assert base_index_to_scan(BaseIndex(0), []) is None

    def test_pixels(self):
        assert scan_to_pixel(ScanIndex(10), 2.5) == 25.0
        assert pixel_to_scan(25.9, 2.5) == ScanIndex(10)
        assert pixel_to_scan(10.0, 0) == ScanIndex(0)


class TestObservable:
    def test_subscribe_and_unsubscribe(self):
        observable = Observable()
        seen = []
        unsubscribe = observable.subscribe(seen.append)
        observable.notify(1)
        unsubscribe()
        observable.notify(2)
        assert seen == [1]
        assert len(observable) == 0


class TestViewportState:
    """Clamping rules of every transition."""

    def test_defaults(self):
        state = ViewportState()
        assert state.zoom == 100
        assert state.position == 0
        assert math.isinf(state.max_position)
        assert state.highlight is None

    def test_set_position_clamps_to_end(self):
        state = ViewportState()
        state.set_max_position(1000)
        state.set_position(950)
        assert state.position == 900
        assert state.view_range == (900, 1000)

    def test_set_position_floors_and_clamps_low(self):
        state = ViewportState()
        state.set_max_position(1000)
        state.set_position(12.7)
        assert state.position == 12
        state.set_position(-5)
        assert state.position == 0

    def test_set_range_floors_start(self):
        state = ViewportState()
        state.set_max_position(1000)
        state.set_range(10.6, 30.6)
        assert state.zoom == 20
        assert state.position == 10

    def test_set_range_minimum_zoom(self):
        state = ViewportState()
        state.set_range(50, 50)
        assert state.zoom == 1
        assert state.position == 50

    def test_set_zoom_minimum(self):
        state = ViewportState()
        state.set_zoom(0)
        assert state.zoom == 1

    def test_zoom_larger_than_reference(self):
        state = ViewportState()
        state.set_max_position(40)
        assert state.zoom == 40
        assert state.position == 0

    def test_non_positive_max_is_ignored(self):
        state = ViewportState()
        state.set_max_position(0)
        state.set_max_position(-10)
        assert math.isinf(state.max_position)

    def test_move_by_and_boundaries(self):
        state = ViewportState()
        state.set_max_position(500)
        state.move_by(30)
        assert state.position == 30
        state.scroll_to_boundary(True)
        assert state.position == 400
        state.scroll_to_boundary(False)
        assert state.position == 0

    def test_scroll_to_end_without_bound_is_noop(self):
        state = ViewportState(position=20)
        state.scroll_to_boundary(True)
        assert state.position == 20

    def test_invariants_hold_for_random_sequences(self):
        rng = random.Random(7)
        state = ViewportState()
        for _ in range(500):
            op = rng.choice(["max", "zoom", "pos", "range", "move"])
            if op == "max":
                state.set_max_position(rng.randint(-5, 2000))
            elif op == "zoom":
                state.set_zoom(rng.uniform(-50, 3000))
            elif op == "pos":
                state.set_position(rng.uniform(-100, 3000))
            elif op == "range":
                state.set_range(rng.uniform(-100, 2000), rng.uniform(-100, 2000))
            else:
                state.move_by(rng.randint(-300, 300))

            assert state.zoom >= 1
            assert state.position >= 0
            if math.isfinite(state.max_position) and state.zoom <= state.max_position:
                assert state.position + state.zoom <= state.max_position


class TestViewportNotifications:
    def test_notifies_only_on_change(self):
        state = ViewportState()
        seen = []
        state.viewport_changed.subscribe(seen.append)
        state.set_position(10)
        state.set_position(10)
        assert len(seen) == 1
        assert seen[0].position == 10

    def test_highlight_replaces(self):
        state = ViewportState()
        seen = []
        state.highlight_changed.subscribe(seen.append)
        state.set_highlight(ViewportIndex(5), ViewportIndex(8))
        state.set_highlight(ViewportIndex(20), ViewportIndex(20))
        assert state.highlight == Highlight(ViewportIndex(20), ViewportIndex(20))
        assert len(seen) == 2

    def test_reversed_highlight_is_normalized(self):
        state = ViewportState()
        state.set_highlight(ViewportIndex(9), ViewportIndex(3))
        assert state.highlight == Highlight(ViewportIndex(3), ViewportIndex(9))

    def test_clear_highlight(self):
        state = ViewportState()
        seen = []
        state.highlight_changed.subscribe(seen.append)
        state.clear_highlight()
        state.set_highlight(ViewportIndex(1), ViewportIndex(1))
        state.clear_highlight()
        assert seen[-1] is None
        assert len(seen) == 2

    @pytest.mark.parametrize("index,expected", [(2, False), (3, True), (6, True), (7, False)])
    def test_highlight_contains(self, index, expected):
        highlight = Highlight(ViewportIndex(3), ViewportIndex(6))
        assert highlight.contains(ViewportIndex(index)) is expected
