# sanger_viewer/widgets/workspace.py

import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QLabel,
    QScrollArea,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from sanger_viewer.features.chromatogram.chromatogram_widget import ChromatogramWidget
from sanger_viewer.features.minimap.minimap_widget import MinimapWidget
from sanger_viewer.features.navigation_controls.navigation_controls_widget import NavigationControlsWidget
from sanger_viewer.features.nucleotide_rows.nucleotide_rows_widget import NucleotideRowsWidget
from sanger_viewer.features.selection.selection_controller import NucleotideSelection
from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.model.job_results import JobResults
from sanger_viewer.model.variant import VariantMarker
from sanger_viewer.model.viewport_state import Viewport
from sanger_viewer.settings.color_palette import ColorPalette
from sanger_viewer.settings.config import AppConfig

logger = logging.getLogger(__name__)


class AnalysisWorkspaceWidget(QWidget):
    """
    Top:    navigation controls + minimap + alignment rows
    Bottom: one chromatogram per read, in a scroll area

    Every view reads the same AnalysisSession; the workspace only forwards
    cross-component requests (centering, variant highlights, window fits)
    to the charts.
    """

    def __init__(
        self,
        session: Optional[AnalysisSession] = None,
        parent: Optional[QWidget] = None,
        *,
        config: Optional[AppConfig] = None,
    ) -> None:
        super().__init__(parent)

        self.config = config or AppConfig()
        self.palette = ColorPalette(self.config)
        self.session = session or AnalysisSession()
        self.session.viewport.set_zoom(self.config.viewport.default_zoom)

        # --- Top panel: controls + minimap + rows ---
        self.controls = NavigationControlsWidget(self.session, parent=self)
        self.minimap = MinimapWidget(self.session, parent=self, palette=self.palette)
        self.rows = NucleotideRowsWidget(
            self.session,
            parent=self,
            row_settings=self.config.rows,
            palette=self.palette,
        )

        top_panel = QWidget(self)
        top_layout = QVBoxLayout(top_panel)
        top_layout.setContentsMargins(0, 0, 0, 0)
        top_layout.setSpacing(0)
        top_layout.addWidget(self.controls)
        top_layout.addWidget(self.minimap)
        top_layout.addWidget(self.rows)

        # --- Bottom panel: chromatograms ---
        self.charts_container = QWidget(self)
        self.charts_layout = QVBoxLayout(self.charts_container)
        self.charts_layout.setContentsMargins(0, 0, 0, 0)
        self.charts_layout.setSpacing(6)
        self.charts_layout.addStretch(1)

        self.charts_scroll = QScrollArea(self)
        self.charts_scroll.setWidgetResizable(True)
        self.charts_scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.charts_scroll.setWidget(self.charts_container)

        self.splitter = QSplitter(Qt.Vertical, self)
        self.splitter.addWidget(top_panel)
        self.splitter.addWidget(self.charts_scroll)
        self.splitter.setSizes([300, 500])

        self.status_label = QLabel(self)
        self.status_label.setStyleSheet("color: #616161;")

        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)
        main_layout.addWidget(self.splitter)
        main_layout.addWidget(self.status_label)

        self.charts: Dict[str, ChromatogramWidget] = {}

        self._unsubscribers = [
            self.session.job_loaded.subscribe(self._on_job_loaded),
            self.session.viewport.viewport_changed.subscribe(self._on_viewport_changed),
            self.rows.selection.nucleotide_selected.subscribe(self._on_nucleotide_selected),
            self.session.variant_selected.subscribe(self._on_variant_selected),
        ]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_job(self, job: JobResults) -> None:
        self.session.load(job)

    def _on_job_loaded(self, job: JobResults) -> None:
        self._clear_charts()
        for read in job.reads:
            chart = ChromatogramWidget(
                read,
                parent=self.charts_container,
                settings=self.config.chromatogram,
                palette=self.palette,
            )
            chart.baseInspected.connect(self._on_base_inspected)
            # Before the trailing stretch
            self.charts_layout.insertWidget(self.charts_layout.count() - 1, chart)
            self.charts[read.read_id] = chart

        errors = len(job.errors)
        self.status_label.setText(
            f"{job.name}: {len(job.reads)} reads, {len(self.session.variants)} variants"
            + (f", {errors} failed" if errors else "")
        )
        self._on_viewport_changed(self.session.viewport.viewport)

    def _clear_charts(self) -> None:
        for chart in self.charts.values():
            self.charts_layout.removeWidget(chart)
            chart.close()
            chart.deleteLater()
        self.charts.clear()

    # ------------------------------------------------------------------
    # Cross-component synchronization
    # ------------------------------------------------------------------

    def _on_viewport_changed(self, viewport: Viewport) -> None:
        for chart in self.charts.values():
            chart.fit_viewport(viewport)

    def _on_nucleotide_selected(self, selection: NucleotideSelection) -> None:
        requests = self.session.select_nucleotide(
            selection.track_id,
            selection.ref_pos,
            selection.is_insertion,
        )
        for request in requests:
            chart = self.charts.get(request.read_id)
            if chart is not None:
                chart.center_on_base_index(request.base_index)

    def _on_variant_selected(self, variant: Optional[VariantMarker]) -> None:
        if variant is None:
            return
        self.status_label.setText(
            f"{variant.ref_pos.value} {variant.ref}>{variant.alt} {variant.genotype}".strip()
        )

    def zoom_to_variant(self, variant: VariantMarker) -> None:
        requests = self.session.zoom_to_variant(variant, self.config.viewport.variant_window)
        for request in requests:
            chart = self.charts.get(request.read_id)
            if chart is not None:
                chart.highlight_ref_pos(request.ref_pos, request.genotype)

    def _on_base_inspected(self, signals) -> None:
        s = signals.signals
        self.status_label.setText(
            f"{signals.read_id} base {signals.read_pos.value}: "
            f"A {s.a:.0f}  C {s.c:.0f}  G {s.g:.0f}  T {s.t:.0f}"
        )

    def chart_ids(self) -> List[str]:
        return list(self.charts)

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)
