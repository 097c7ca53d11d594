"""Tests for the whole-reference minimap model."""

from conftest import entry

from sanger_viewer.features.minimap.minimap_model import MinimapModel
from sanger_viewer.model.alignment import AlignmentIndex
from sanger_viewer.model.depth_map import CoverageMap
from sanger_viewer.model.job_results import GeneFeature
from sanger_viewer.model.viewport_state import Viewport


def _model(length=1000) -> MinimapModel:
    model = MinimapModel()
    model.set_reference_length(length)
    return model


class TestMapping:
    def test_ref_to_x(self):
        model = _model()
        assert model.ref_to_x(500, 200) == 100.0
        assert MinimapModel().ref_to_x(500, 200) == 0.0

    def test_click_recenters(self):
        model = _model()
        assert model.position_for_click(950, 1000, 100) == 900

    def test_click_is_clamped(self):
        model = _model()
        assert model.position_for_click(10, 1000, 100) == 0
        assert model.position_for_click(5000, 1000, 100) == 900
        assert model.position_for_click(-20, 1000, 100) == 0

    def test_click_without_reference(self):
        assert MinimapModel().position_for_click(50, 100, 10) == 0


class TestDrawables:
    def test_coverage_columns_take_stride_max(self):
        model = _model(8)
        model.set_coverage(CoverageMap.build([
            AlignmentIndex([entry(1, "A"), entry(2, "C")]),
            AlignmentIndex([entry(2, "C")]),
        ]))
        columns = model.coverage_columns(4, 100)
        # stride 2: [1, 2] is the only covered column, with max coverage 2
        assert [(c.x, c.coverage) for c in columns] == [(0.0, 2)]
        rect = columns[0].rect
        assert rect.height == 60.0
        assert rect.y + rect.height == 100.0

    def test_coverage_without_data(self):
        assert _model().coverage_columns(100, 50) == []

    def test_feature_boxes(self):
        model = _model(100)
        model.set_features([GeneFeature("exon", 11, 20), GeneFeature("gene", 1, 100), GeneFeature("CDS", 50, 50)])
        boxes = model.feature_boxes(200, 40)
        assert [b.feature_type for b in boxes] == ["exon", "CDS"]
        assert boxes[0].rect.x == 20.0
        assert boxes[0].rect.width == 20.0
        assert boxes[1].rect.width == MinimapModel.MIN_FEATURE_WIDTH

    def test_viewport_rect_minimum_width(self):
        model = _model(10_000)
        rect = model.viewport_rect(Viewport(zoom=1, position=5000, max_position=10_000), 100, 40)
        assert rect.x == 50.0
        assert rect.width == MinimapModel.MIN_VIEWPORT_WIDTH


class TestTicks:
    def test_nice_steps(self):
        assert MinimapModel._nice_tick_step(1000, 600) == 100
        assert MinimapModel._nice_tick_step(1000, 300) == 200

    def test_last_tick_snaps_to_end(self):
        layout = _model(1030).compute_tick_layout(618)
        assert layout.major_ticks[-1] == 1030

    def test_labels(self):
        assert _model(5000).format_label(1) == "1"
        assert _model(5000).format_label(2500) == "2500"
        assert _model(2_000_000).format_label(1_500_000) == "1500K"
