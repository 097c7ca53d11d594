"""Tests for the per-read chromatogram model."""

import dataclasses

import pytest

from conftest import entry, make_read

from sanger_viewer.features.chromatogram.chromatogram_model import (
    CENTER_COLOR,
    PEAK1_COLOR,
    SAME_PEAK_COLOR,
    ChromatogramModel,
)
from sanger_viewer.model.coordinates import BaseIndex, ReadPos, RefPos, ScanIndex
from sanger_viewer.model.variant import HET


@pytest.fixture
def chart(read_one) -> ChromatogramModel:
    model = ChromatogramModel(read_one, height=150, zoom_x=10)
    model.set_size(200)
    return model


class TestReferenceResolution:
    """RefPos -> base index -> scan."""

    def test_uses_first_sense_peak(self, chart):
        assert chart.resolve_base_index(RefPos(1)) == BaseIndex(0)
        assert chart.resolve_scan(RefPos(5)) == ScanIndex(55)

    def test_falls_back_to_offset_and_clamps(self, chart):
        # refPos 8 is not covered: offset from ref_start, clamped to the last peak
        assert chart.resolve_base_index(RefPos(8)) == BaseIndex(5)

    def test_without_trace(self, read_two):
        model = ChromatogramModel(read_two)
        assert model.trace is None
        assert model.resolve_scan(RefPos(3)) is None
        assert not model.fit_reference_window(RefPos(2), RefPos(4))


class TestFitWindow:
    """Zoom to a reference window, scroll on the following turn."""

    def test_fit_then_commit(self, chart):
        chart.set_size(400)
        assert chart.fit_reference_window(RefPos(1), RefPos(5))
        assert chart.zoom_x == pytest.approx(8.0)
        # Geometry first; the scroll waits for the next turn
        assert chart.scroll_x == 0.0
        assert chart.pending_scroll_x == pytest.approx(40.0)

        assert chart.commit_pending_scroll()
        assert chart.scroll_x == pytest.approx(40.0)
        assert not chart.commit_pending_scroll()

    def test_empty_range_is_rejected(self, chart):
        assert not chart.fit_reference_window(RefPos(2), RefPos(2))

    def test_static_mode_has_no_scroll(self, read_one):
        model = ChromatogramModel(read_one, static_mode=True)
        model.set_size(400)
        assert model.fit_reference_window(RefPos(1), RefPos(5))
        assert model.pending_scroll_x is None

    def test_static_view_box(self, read_one):
        model = ChromatogramModel(read_one, zoom_x=10, static_mode=True)
        assert model.static_view_box(RefPos(1), RefPos(2)) == (0.0, 0.0, 200.0, 150.0)

    def test_fitted_static_chart_frames_its_window(self, read_one):
        model = ChromatogramModel(read_one, static_mode=True)
        assert model.static_frame() is None
        model.set_size(400)
        assert model.fit_reference_window(RefPos(1), RefPos(2))
        x, y, width, _height = model.static_frame()
        assert (y, width) == (0.0, pytest.approx(500.0))
        assert model.visible_x_range() == (x, x + width)


class TestZoom:
    """Coalesced zoom requests."""

    def test_requests_coalesce_into_one_frame(self, chart):
        assert chart.request_zoom(2.0, 100.0)
        assert not chart.request_zoom(2.0, 100.0)
        assert chart.zoom_frame_requested

        chart.apply_pending_zoom()
        assert chart.zoom_x == pytest.approx(40.0)
        assert not chart.zoom_frame_requested
        # Content under the focal point stays put
        assert chart.pending_scroll_x == pytest.approx(300.0)
        chart.commit_pending_scroll()
        assert chart.scroll_x == pytest.approx(300.0)

    def test_frame_factor_is_clamped(self, chart):
        chart.request_zoom(100.0)
        chart.apply_pending_zoom()
        assert chart.zoom_x == pytest.approx(100.0)

    def test_minimum_zoom(self, read_one):
        model = ChromatogramModel(read_one, zoom_x=0.2)
        model.set_size(100)
        model.request_zoom(0.1)
        model.apply_pending_zoom()
        assert model.zoom_x == pytest.approx(0.1)

    def test_static_mode_ignores_zoom(self, read_one):
        model = ChromatogramModel(read_one, static_mode=True)
        assert not model.request_zoom(2.0)
        assert not model.zoom_in_x()

    def test_zoom_full_x(self, chart):
        chart.set_size(140)
        chart.set_scroll_x(100)
        chart.zoom_full_x()
        assert chart.zoom_x == pytest.approx(2.0)
        assert chart.scroll_x == 0.0

    def test_vertical_zoom(self, chart):
        chart.zoom_in_y()
        assert chart.zoom_y == pytest.approx(1.5)
        chart.zoom_full_y()
        assert chart.zoom_y == 1.0
        for _ in range(20):
            chart.zoom_out_y()
        assert chart.zoom_y == pytest.approx(ChromatogramModel.MIN_ZOOM_Y)


class TestPanAndCenter:
    def test_drag_pans(self, chart):
        chart.start_drag(100)
        chart.drag_to(60)
        assert chart.scroll_x == 40.0
        chart.end_drag()
        assert not chart.is_dragging

    def test_scroll_is_clamped(self, chart):
        chart.set_scroll_x(10_000)
        assert chart.scroll_x == chart.max_scroll_x == 500.0
        chart.set_scroll_x(-10)
        assert chart.scroll_x == 0.0

    def test_center_on_base_index(self, chart):
        assert chart.center_on_base_index(BaseIndex(2))
        assert chart.scroll_x == 150.0
        glyphs = chart.highlight_glyphs()
        assert [(g.x, g.color) for g in glyphs] == [(250.0, CENTER_COLOR)]

    def test_center_outside_read(self, chart):
        assert not chart.center_on_base_index(BaseIndex(99))

    def test_center_on_ref_pos(self, chart):
        assert chart.center_on_ref_pos(RefPos(3))
        assert chart.peak_highlights[0].read_pos == ReadPos(3)


class TestHighlights:
    def test_same_peak_is_purple(self, chart):
        chart.highlight_ref_pos(RefPos(4), HET)
        assert [(h.read_pos, h.color) for h in chart.peak_highlights] == [(ReadPos(5), SAME_PEAK_COLOR)]

    def test_sense_only_peak(self, chart):
        chart.highlight_ref_pos(RefPos(3))
        assert [(h.read_pos, h.color, h.label) for h in chart.peak_highlights] == [
            (ReadPos(3), PEAK1_COLOR, "1")
        ]

    def test_absent_position_clears(self, chart):
        chart.highlight_ref_pos(RefPos(4))
        chart.highlight_ref_pos(RefPos(9))
        assert chart.peak_highlights == []


class TestDrawables:
    def test_signal_y(self, chart):
        assert chart.graph_height == 100.0
        assert chart.signal_y(chart.trace.max_amplitude) == pytest.approx(0.0)
        assert chart.signal_y(0) == pytest.approx(100.0)

    def test_reverse_swaps_channels(self, trace):
        read = make_read("rev", [entry(1, "A", scan1=[1])], trace=trace, ref_forward=False)
        model = ChromatogramModel(read, zoom_x=1)
        forward_t = model.trace_polylines()["T"]
        assert model.toggle_reverse()
        assert model.trace_polylines()["A"] == forward_t

    def test_forward_reads_cannot_reverse(self, chart):
        assert not chart.toggle_reverse()
        assert not chart.is_reverse

    def test_visible_polylines_are_windowed(self, chart):
        first, last = chart.visible_scan_range()
        assert (first, last) == (0, 22)
        assert len(chart.trace_polylines(first, last)["A"]) == 22

    def test_ticks_every_fifth_base(self, chart):
        assert [(t.x, t.label) for t in chart.ticks()] == [(450.0, 5)]

    def test_base_glyphs(self, chart):
        glyphs = chart.consensus_bases()
        assert "".join(g.base for g in glyphs) == "ACGTTA"
        assert glyphs[1].x == 150.0

    def test_trim_overlay(self, read_one):
        model = ChromatogramModel(dataclasses.replace(read_one, trim_left=2, trim_right=1), zoom_x=10)
        overlay = model.trim_overlay()
        assert overlay.left_width == 150.0
        assert overlay.right_x == 550.0
        assert overlay.right_width == 150.0

    def test_variant_marker(self, chart):
        markers = chart.variant_markers()
        assert len(markers) == 1
        assert markers[0].kind == "snv"
        assert markers[0].x == 350.0
        assert markers[0].label == "SNV (het)"
        assert "T -> C" in markers[0].tooltip

    def test_inspect_base(self, chart):
        signals = chart.inspect_base(BaseIndex(1))
        assert signals.read_pos == ReadPos(2)
        assert signals.scan == ScanIndex(15)
        assert signals.signals.c == 101.0

    def test_inspect_out_of_range_reads_zero(self, chart):
        signals = chart.inspect_base(BaseIndex(50))
        assert signals.scan is None
        assert signals.signals.a == 0.0

    def test_base_at_x(self, chart):
        assert chart.base_at_x(160.0) == BaseIndex(1)
