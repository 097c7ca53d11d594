# sanger_viewer/features/nucleotide_rows/nucleotide_rows_widget.py

from typing import Dict, List, Optional

from PyQt5.QtCore import QPoint, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QApplication, QMenu

from sanger_viewer.features.selection.selection_controller import (
    CopyAffordance,
    NucleotideSelection,
    SelectionController,
    SignalPopupData,
)
from sanger_viewer.features.selection.signal_popup import SignalPopup
from sanger_viewer.graphics.glyph_cache import nucleotide_color_map
from sanger_viewer.model.alignment import REFERENCE_TRACK_ID, Allele
from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.model.job_results import JobResults
from sanger_viewer.model.viewport_state import Highlight, Viewport
from sanger_viewer.settings.color_palette import ColorPalette
from sanger_viewer.settings.config import RowSettings

from .nucleotide_row_model import NucleotideRowModel
from .nucleotide_rows_controller import NucleotideRowsController
from .nucleotide_rows_view import NucleotideRowsView


class NucleotideRowsWidget(NucleotideRowsView):
    """
    Alignment rows seen from outside as a single widget, organized inside as
    Model - View - Controller.

    Signals:
    - selectionChanged   : the highlight range changed
    - nucleotideSelected : (track_id, ref_pos, is_insertion) after a single click
    - highlightChanged   : Optional[Highlight]
    """

    selectionChanged = pyqtSignal()
    nucleotideSelected = pyqtSignal(str, int, bool)
    highlightChanged = pyqtSignal(object)

    def __init__(
        self,
        session: AnalysisSession,
        parent=None,
        *,
        row_settings: Optional[RowSettings] = None,
        palette: Optional[ColorPalette] = None,
    ) -> None:
        self._settings = row_settings or RowSettings()
        super().__init__(
            parent=parent,
            char_height=self._settings.char_height,
            label_width=self._settings.label_width,
        )

        self._session = session
        self._palette = palette
        self._color_map: Dict[str, QColor] = nucleotide_color_map(palette)
        if palette is not None:
            self.setBackgroundBrush(QColor(palette.get_background_color()))

        self.selection = SelectionController(session)
        self._controller = NucleotideRowsController(
            viewport=session.viewport,
            selection=self.selection,
            view=self,
            on_copy_affordance=self._show_copy_menu,
            on_signal_popup=self._show_signal_popup,
            on_popups_dismissed=self._hide_popups,
            zoom_frame_ms=self._settings.zoom_frame_ms,
        )
        self.set_controller(self._controller)

        self._signal_popup = SignalPopup(self)

        self._unsubscribers = [
            session.viewport.viewport_changed.subscribe(self._on_viewport_changed),
            session.viewport.highlight_changed.subscribe(self._on_highlight_changed),
            session.job_loaded.subscribe(self._on_job_loaded),
            self.selection.nucleotide_selected.subscribe(self._on_nucleotide_selected),
        ]
        self.set_viewport(session.viewport.viewport)

    # ------------------------------------------------------------------
    # Session bridge
    # ------------------------------------------------------------------

    def _on_job_loaded(self, job: JobResults) -> None:
        self.load_tracks()

    def load_tracks(self) -> None:
        """
        Rebuilds one row per track, reference first.
        """
        self.clear_items()
        item_kwargs = {"color_map": self._color_map}
        if self._palette is not None:
            item_kwargs["highlight_color"] = self._palette.get_feature_color("highlight") or "#FFF59D"
            item_kwargs["selection_color"] = self._palette.get_feature_color("selection") or "#4A90D9"

        for track_id, alignment in self._session.tracks().items():
            read = self._session.read(track_id)
            model = NucleotideRowModel(
                track_id,
                alignment,
                label=read.read_name if read is not None else track_id,
                is_reference=track_id == REFERENCE_TRACK_ID,
                char_width=self._settings.char_width,
                char_height=self._settings.char_height,
            )
            model.show_all_bases = self._settings.show_all_bases
            self.add_row_item(model, **item_kwargs)

        self.set_depth_map(self._session.depth_map)
        self.set_viewport(self._session.viewport.viewport)

    def _on_viewport_changed(self, viewport: Viewport) -> None:
        self.set_viewport(viewport)

    def _on_highlight_changed(self, highlight: Optional[Highlight]) -> None:
        self.set_highlight(highlight, self.selection.selecting_track)
        self.highlightChanged.emit(highlight)
        self.selectionChanged.emit()

    def _on_nucleotide_selected(self, selection: NucleotideSelection) -> None:
        self.nucleotideSelected.emit(selection.track_id, selection.ref_pos.value, selection.is_insertion)

    def track_ids(self) -> List[str]:
        return [item.track_id for item in self.row_items]

    # ------------------------------------------------------------------
    # Popups
    # ------------------------------------------------------------------

    def _show_copy_menu(self, affordance: CopyAffordance) -> None:
        menu = QMenu(self)
        item = self.item_for(affordance.track_id)
        alleles = [Allele.CONSENSUS]
        if item is not None and item.model.has_multiple_alleles:
            alleles += [Allele.ALT1, Allele.ALT2]

        for allele in alleles:
            action = menu.addAction(f"Copy {allele.value} sequence")
            action.triggered.connect(
                lambda _checked=False, a=allele, t=affordance.track_id: self.copy_to_clipboard(a, t)
            )
        menu.aboutToHide.connect(self._hide_popups)
        menu.popup(self.viewport().mapToGlobal(QPoint(int(affordance.x), int(affordance.y))))

    def copy_to_clipboard(self, allele: Allele, track_id: Optional[str] = None) -> str:
        text = self.selection.copy_sequence(allele, track_id)
        QApplication.clipboard().setText(text)
        return text

    def _show_signal_popup(self, data: SignalPopupData, global_x: int, global_y: int) -> None:
        self._signal_popup.show_data(data, global_x, global_y)

    def _hide_popups(self) -> None:
        self._signal_popup.hide()

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)
