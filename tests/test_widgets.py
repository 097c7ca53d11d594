"""Offscreen smoke tests for the Qt surfaces wired to one session."""

import pytest

from sanger_viewer.features.chromatogram.chromatogram_model import CENTER_COLOR, SAME_PEAK_COLOR
from sanger_viewer.features.chromatogram.chromatogram_widget import ChromatogramWidget
from sanger_viewer.features.selection.selection_controller import NucleotideSelection, SignalPopupData
from sanger_viewer.features.selection.signal_popup import format_popup
from sanger_viewer.model.alignment import REFERENCE_TRACK_ID, Allele
from sanger_viewer.model.coordinates import BaseIndex, ReadPos, RefPos
from sanger_viewer.settings.config import AppConfig
from sanger_viewer.widgets.workspace import AnalysisWorkspaceWidget


@pytest.fixture
def workspace(qapp, job, tmp_path):
    widget = AnalysisWorkspaceWidget(config=AppConfig(user_config_path=tmp_path / "config.json"))
    widget.load_job(job)
    yield widget
    widget.close()


class TestWorkspace:
    """Loading a job fans out to every component."""

    def test_builds_one_chart_per_read(self, workspace):
        assert workspace.chart_ids() == ["r1", "r2"]
        assert workspace.rows.track_ids() == [REFERENCE_TRACK_ID, "r1", "r2"]
        assert workspace.minimap.model.max_len == 10
        assert workspace.status_label.text() == "Test job: 2 reads, 1 variants"

    def test_viewport_is_bounded_by_reference(self, workspace):
        assert workspace.session.viewport.zoom == 10

    def test_reload_replaces_charts(self, workspace, job):
        workspace.load_job(job)
        assert workspace.chart_ids() == ["r1", "r2"]

    def test_nucleotide_selection_centers_charts(self, workspace):
        workspace._on_nucleotide_selected(NucleotideSelection(REFERENCE_TRACK_ID, RefPos(3)))
        highlights = workspace.charts["r1"].model.peak_highlights
        assert [(h.read_pos, h.color) for h in highlights] == [(ReadPos(3), CENTER_COLOR)]

    def test_zoom_to_variant(self, workspace, snv):
        workspace.zoom_to_variant(snv)
        highlights = workspace.charts["r1"].model.peak_highlights
        assert [(h.read_pos, h.color) for h in highlights] == [(ReadPos(5), SAME_PEAK_COLOR)]
        assert workspace.status_label.text() == "4 T>C het."


class TestRows:
    def test_copy_to_clipboard(self, workspace, qapp):
        text = workspace.rows.copy_to_clipboard(Allele.CONSENSUS, REFERENCE_TRACK_ID)
        assert text == "ACGTACGTAC"
        assert qapp.clipboard().text() == "ACGTACGTAC"


class TestNavigationControls:
    def test_search_updates_label(self, workspace):
        controls = workspace.controls
        controls.search_edit.setText("acg")
        controls.search_edit.returnPressed.emit()
        assert controls.match_label.text() == "1/2"
        controls.next_button.click()
        assert controls.match_label.text() == "2/2"
        assert workspace.session.viewport.position == 0

    def test_cursor_box_follows_viewport(self, workspace):
        workspace.session.viewport.set_zoom(4)
        workspace.session.viewport.set_position(3)
        assert workspace.controls.cursor_box.value() == 4


class TestChromatogramWidget:
    def test_reverse_button_state(self, qapp, read_one, read_two):
        forward = ChromatogramWidget(read_one)
        reverse = ChromatogramWidget(read_two)
        assert not forward.reverse_button.isEnabled()
        assert forward.read_id == "r1"
        assert reverse.reverse_button.isEnabled()
        forward.close()
        reverse.close()

    def test_inspect(self, qapp, read_one):
        chart = ChromatogramWidget(read_one)
        signals = chart.inspect(BaseIndex(0))
        assert signals.signals.a == 100.0
        assert chart.center_on_ref_pos(RefPos(2))
        assert chart.model.peak_highlights[0].read_pos == ReadPos(2)
        chart.close()

    def test_static_chart_paints_its_frame(self, qapp, read_one):
        chart = ChromatogramWidget(read_one, static_mode=True)
        chart.canvas.resize(400, 150)
        chart.canvas.grab()
        chart.model.set_size(400, 150)
        assert chart.model.fit_reference_window(RefPos(1), RefPos(2))
        assert chart.model.static_frame() is not None
        assert not chart.canvas.grab().isNull()
        chart.close()


def test_popup_text_without_signal():
    text = format_popup(SignalPopupData("r2", RefPos(2), 1, (), ()))
    assert text == "r2\nRef pos 2 (+1)\nNo signal"


class TestGlyphCache:
    def test_cells_are_slot_sized_and_shared(self, qapp):
        from PyQt5.QtGui import QColor, QFont

        from sanger_viewer.graphics.glyph_cache import BaseGlyphCache

        cache = BaseGlyphCache(max_entries=2)
        font = QFont("Courier New", 10)
        first = cache.cell("A", font, QColor("#32CD32"), 12.0, 18.0)
        assert (first.width(), first.height()) == (12, 18)
        assert cache.cell("A", font, QColor("#32CD32"), 12.0, 18.0) is first

        faded = QColor("#32CD32")
        faded.setAlpha(80)
        cache.cell("A", font, faded, 12.0, 18.0)
        assert len(cache) == 2
        cache.cell("C", font, QColor("#0000FF"), 12.0, 18.0)
        assert len(cache) == 1
