# sanger_viewer/model/viewport_state.py

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .coordinates import ViewportIndex
from .observable import Observable

Number = Union[int, float]


@dataclass(frozen=True)
class Viewport:
    """
    Snapshot of the shared pan/zoom window.

    zoom         : number of reference positions visible at once (>= 1)
    position     : first visible viewport index (>= 0)
    max_position : reference length, or math.inf before a job is loaded
    """
    zoom: int
    position: int
    max_position: Number

    @property
    def end(self) -> int:
        return self.position + self.zoom


@dataclass(frozen=True)
class Highlight:
    """
    Inclusive highlighted range on the viewport-index axis, start <= end.
    """
    start: ViewportIndex
    end: ViewportIndex

    def contains(self, index: ViewportIndex) -> bool:
        return self.start <= index <= self.end

    @property
    def is_single(self) -> bool:
        return self.start == self.end


class ViewportState:
    """
    Shared viewport state of one analysis session.

    Responsibilities:
    - zoom / position / max_position with clamping on every mutation
    - the optional highlight range
    - notifying subscribers synchronously when either actually changes:
        * viewport_changed  -> Viewport
        * highlight_changed -> Optional[Highlight]

    Every operation is total: out-of-range input is clamped, never rejected.
    """

    def __init__(
        self,
        zoom: int = 100,
        position: int = 0,
        max_position: Number = math.inf,
    ) -> None:
        self._zoom: int = max(1, int(zoom))
        self._position: int = max(0, int(position))
        self._max_position: Number = max_position
        self._highlight: Optional[Highlight] = None

        self.viewport_changed: Observable[Viewport] = Observable()
        self.highlight_changed: Observable[Optional[Highlight]] = Observable()

        self._apply(self._zoom, self._position, self._max_position, notify=False)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def zoom(self) -> int:
        return self._zoom

    @property
    def position(self) -> int:
        return self._position

    @property
    def max_position(self) -> Number:
        return self._max_position

    @property
    def highlight(self) -> Optional[Highlight]:
        return self._highlight

    @property
    def viewport(self) -> Viewport:
        return Viewport(self._zoom, self._position, self._max_position)

    @property
    def view_range(self) -> Tuple[int, int]:
        """
        (start, end) of the visible window, end exclusive.
        """
        return self._position, self._position + self._zoom

    # ------------------------------------------------------------------
    # Viewport transitions
    # ------------------------------------------------------------------

    def set_max_position(self, max_position: Number) -> None:
        if max_position <= 0:
            return
        if not math.isinf(max_position):
            max_position = int(max_position)
        self._apply(self._zoom, self._position, max_position)

    def set_zoom(self, zoom: Number) -> None:
        self._apply(zoom, self._position, self._max_position)

    def set_position(self, position: Number) -> None:
        self._apply(self._zoom, position, self._max_position)

    def set_range(self, start: Number, end: Number) -> None:
        self._apply(max(1, end - start), start, self._max_position)

    def move_by(self, delta: Number) -> None:
        self.set_position(self._position + delta)

    def scroll_to_boundary(self, to_end: bool) -> None:
        if to_end:
            # No end to scroll to before a reference is loaded
            if math.isinf(self._max_position):
                return
            self.set_position(self._max_position)
        else:
            self.set_position(0)

    # ------------------------------------------------------------------
    # Highlight
    # ------------------------------------------------------------------

    def set_highlight(self, start: ViewportIndex, end: ViewportIndex) -> None:
        """
        Replaces the highlight; a reversed range is stored normalized.
        """
        if end < start:
            start, end = end, start
        new = Highlight(start, end)
        if new == self._highlight:
            return
        self._highlight = new
        self.highlight_changed.notify(new)

    def clear_highlight(self) -> None:
        if self._highlight is None:
            return
        self._highlight = None
        self.highlight_changed.notify(None)

    # ------------------------------------------------------------------
    # Clamping
    # ------------------------------------------------------------------

    @staticmethod
    def _clamp_zoom(zoom: Number, max_position: Number) -> int:
        if math.isnan(zoom):
            zoom = 1
        elif math.isinf(zoom):
            zoom = max_position if zoom > 0 and math.isfinite(max_position) else 1
        zoom = max(1, int(zoom))
        # A window wider than the reference could never satisfy
        # position + zoom <= max_position
        if not math.isinf(max_position):
            zoom = min(zoom, max(1, int(max_position)))
        return zoom

    @staticmethod
    def _clamp_position(position: Number, zoom: int, max_position: Number) -> int:
        if math.isnan(position):
            position = 0
        max_allowed_start = max(0, max_position - zoom)
        clamped = min(max(0, position), max_allowed_start)
        if math.isinf(clamped):
            return 0
        return int(math.floor(clamped))

    def _apply(
        self,
        zoom: Number,
        position: Number,
        max_position: Number,
        notify: bool = True,
    ) -> None:
        new_zoom = self._clamp_zoom(zoom, max_position)
        new_position = self._clamp_position(position, new_zoom, max_position)

        changed = (
            new_zoom != self._zoom
            or new_position != self._position
            or max_position != self._max_position
        )
        self._zoom = new_zoom
        self._position = new_position
        self._max_position = max_position

        if changed and notify:
            self.viewport_changed.notify(self.viewport)
