# sanger_viewer/features/navigation_controls/navigation_controls_widget.py

from typing import Optional

from PyQt5.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QWidget,
)

from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.model.job_results import JobResults
from sanger_viewer.model.viewport_state import Viewport

from .navigation_controls_model import NavigationControlsModel


class NavigationControlsWidget(QWidget):
    """
    Toolbar of the alignment rows: zoom, move, go-to position and search.
    """

    def __init__(self, session: AnalysisSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session = session
        self.model = NavigationControlsModel(session.viewport)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 2, 4, 2)
        layout.setSpacing(4)

        for text, tooltip, slot in (
            ("|<", "Go to start", lambda: self.model.scroll_to_boundary(False)),
            ("<", "Move left", lambda: self.model.move(-1)),
            (">", "Move right", lambda: self.model.move(1)),
            (">|", "Go to end", lambda: self.model.scroll_to_boundary(True)),
            ("+", "Zoom in", self.model.zoom_in),
            ("-", "Zoom out", self.model.zoom_out),
        ):
            layout.addWidget(self._button(text, tooltip, slot))

        layout.addWidget(QLabel("Position:", self))
        self.cursor_box = QSpinBox(self)
        self.cursor_box.setRange(1, 1)
        self.cursor_box.setKeyboardTracking(False)
        self.cursor_box.valueChanged.connect(self._on_cursor_edited)
        layout.addWidget(self.cursor_box)

        layout.addStretch(1)

        self.search_edit = QLineEdit(self)
        self.search_edit.setPlaceholderText("Search reference")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.returnPressed.connect(self._on_search)
        layout.addWidget(self.search_edit)

        self.prev_button = self._button("Prev", "Previous match", self._on_prev_match)
        self.next_button = self._button("Next", "Next match", self._on_next_match)
        layout.addWidget(self.prev_button)
        layout.addWidget(self.next_button)
        self.match_label = QLabel(self.model.match_label, self)
        layout.addWidget(self.match_label)

        self._syncing = False
        self._unsubscribers = [
            session.viewport.viewport_changed.subscribe(self._on_viewport_changed),
            session.job_loaded.subscribe(self._on_job_loaded),
        ]
        self._on_viewport_changed(session.viewport.viewport)

    def _button(self, text: str, tooltip: str, slot) -> QPushButton:
        button = QPushButton(text, self)
        button.setToolTip(tooltip)
        button.setFixedWidth(max(28, 10 * len(text) + 12))
        button.clicked.connect(lambda _checked=False: slot())
        return button

    # ------------------------------------------------------------------
    # Session bridge
    # ------------------------------------------------------------------

    def _on_job_loaded(self, job: JobResults) -> None:
        self.model.set_reference(self._session.reference_index)
        self.match_label.setText(self.model.match_label)

    def _on_viewport_changed(self, viewport: Viewport) -> None:
        self._syncing = True
        try:
            upper = viewport.max_position
            self.cursor_box.setRange(1, int(upper) if upper != float("inf") else 2_147_483_647)
            self.cursor_box.setValue(self.model.cursor)
        finally:
            self._syncing = False

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    def _on_cursor_edited(self, value: int) -> None:
        if not self._syncing:
            self.model.set_cursor(value)

    def _on_search(self) -> None:
        self.model.search(self.search_edit.text())
        self.match_label.setText(self.model.match_label)

    def _on_next_match(self) -> None:
        self.model.next_match()
        self.match_label.setText(self.model.match_label)

    def _on_prev_match(self) -> None:
        self.model.prev_match()
        self.match_label.setText(self.model.match_label)

    def closeEvent(self, event) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        super().closeEvent(event)
