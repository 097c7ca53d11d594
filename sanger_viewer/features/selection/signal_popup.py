# sanger_viewer/features/selection/signal_popup.py

from typing import Iterable, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import QFrame, QLabel, QVBoxLayout, QWidget

from .selection_controller import PeakSignals, SignalPopupData


def format_peaks(title: str, peaks: Iterable[PeakSignals]) -> str:
    lines = []
    for peak in peaks:
        s = peak.signals
        lines.append(
            f"{title} {peak.read_pos.value}:  "
            f"A {s.a:.0f}  C {s.c:.0f}  G {s.g:.0f}  T {s.t:.0f}"
        )
    return "\n".join(lines)


def format_popup(data: SignalPopupData) -> str:
    header = f"{data.track_id}\nRef pos {data.ref_pos.value}"
    if data.sub_index:
        header += f" (+{data.sub_index})"
    parts = [header]
    sense = format_peaks("Sanger pos 1", data.sense)
    antisense = format_peaks("Sanger pos 2", data.antisense)
    if sense:
        parts.append(sense)
    if antisense:
        parts.append(antisense)
    if not sense and not antisense:
        parts.append("No signal")
    return "\n".join(parts)


class SignalPopup(QFrame):
    """
    Small floating panel listing the four channel amplitudes under the
    peaks of a clicked cell.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent, Qt.ToolTip)
        self.setFrameShape(QFrame.StyledPanel)
        self.setStyleSheet("background: #FFFFFF; border: 1px solid #9E9E9E;")

        self._label = QLabel(self)
        self._label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)
        layout.addWidget(self._label)

    def show_data(self, data: SignalPopupData, global_x: int, global_y: int) -> None:
        self._label.setText(format_popup(data))
        self.adjustSize()
        self.move(global_x + 8, global_y + 8)
        self.show()
        self.raise_()
