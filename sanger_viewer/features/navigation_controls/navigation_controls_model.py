# sanger_viewer/features/navigation_controls/navigation_controls_model.py

import math
from typing import List, Optional

from sanger_viewer.model.alignment import AlignmentIndex
from sanger_viewer.model.viewport_state import ViewportState


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class NavigationControlsModel:
    """
    Model layer of the toolbar above the alignment rows.

    Responsibilities:
    - stepwise zoom in / out (always at least one position)
    - moving the window by a tenth of its width
    - jumping to a 1-based cursor position typed by the user
    - searching the reference consensus with wrap-around match navigation
    """

    ZOOM_FACTOR = 1.2
    MOVE_RATIO = 0.1

    def __init__(self, viewport: ViewportState) -> None:
        self._viewport = viewport
        self._reference: Optional[AlignmentIndex] = None
        self._reference_text: str = ""

        self.query: str = ""
        self.matches: List[int] = []
        self.current_match: int = -1

    # ------------------------------------------------------------------
    # Zoom / move
    # ------------------------------------------------------------------

    def zoom_in(self) -> None:
        """
        Fewer positions on screen.
        """
        current = self._viewport.zoom
        self._viewport.set_zoom(min(current - 1, _round_half_up(current / self.ZOOM_FACTOR)))

    def zoom_out(self) -> None:
        current = self._viewport.zoom
        self._viewport.set_zoom(max(current + 1, _round_half_up(current * self.ZOOM_FACTOR)))

    def move_step(self) -> int:
        return max(1, _round_half_up(self._viewport.zoom * self.MOVE_RATIO))

    def move(self, direction: int) -> None:
        self._viewport.move_by(direction * self.move_step())

    def scroll_to_boundary(self, to_end: bool) -> None:
        self._viewport.scroll_to_boundary(to_end)

    def set_cursor(self, value: int) -> None:
        """
        value is what the user sees: 1-based.
        """
        self._viewport.set_position(max(1, int(value)) - 1)

    @property
    def cursor(self) -> int:
        return self._viewport.position + 1

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def set_reference(self, reference: Optional[AlignmentIndex]) -> None:
        self._reference = reference
        self._reference_text = ""
        self.search(self.query)

    def _searchable_text(self) -> str:
        if self._reference is None:
            return ""
        if not self._reference_text:
            max_position = self._viewport.max_position
            if math.isinf(max_position):
                last = self._reference.last_position
                length = last.value if last is not None else 0
            else:
                length = int(max_position)
            self._reference_text = self._reference.consensus_string(length)
        return self._reference_text

    def search(self, query: str) -> List[int]:
        """
        All (overlapping) 0-based match starts; jumps to the first one.
        """
        self.query = query
        needle = query.strip().upper()
        text = self._searchable_text()

        self.matches = []
        self.current_match = -1
        if not needle or not text:
            return self.matches

        pos = text.find(needle)
        while pos != -1:
            self.matches.append(pos)
            pos = text.find(needle, pos + 1)

        if self.matches:
            self.current_match = 0
            self._viewport.set_position(self.matches[0])
        return self.matches

    def next_match(self) -> Optional[int]:
        if not self.matches:
            return None
        self.current_match = (self.current_match + 1) % len(self.matches)
        self._viewport.set_position(self.matches[self.current_match])
        return self.matches[self.current_match]

    def prev_match(self) -> Optional[int]:
        if not self.matches:
            return None
        self.current_match = (self.current_match - 1) % len(self.matches)
        self._viewport.set_position(self.matches[self.current_match])
        return self.matches[self.current_match]

    @property
    def match_label(self) -> str:
        if not self.matches:
            return "0/0"
        return f"{self.current_match + 1}/{len(self.matches)}"
