# sanger_viewer/features/minimap/minimap_model.py

from dataclasses import dataclass
from typing import List, Optional, Sequence
import math

from sanger_viewer.model.coordinates import RefPos
from sanger_viewer.model.depth_map import CoverageMap
from sanger_viewer.model.job_results import GeneFeature
from sanger_viewer.model.viewport_state import Viewport


@dataclass
class MinimapTickLayout:
    """
    Tick layout computed for the minimap ruler; the painter only draws it.
    """
    max_len: int
    tick_step: int
    major_ticks: List[int]
    minor_ticks: List[int]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CoverageColumn:
    x: float
    coverage: int
    rect: Rect


@dataclass(frozen=True)
class FeatureBox:
    feature_type: str
    rect: Rect
    color: str


class MinimapModel:
    """
    Model layer of the whole-reference overview.

    Responsibilities:
    - reference length (the viewport's max_position)
    - x (pixel) <-> refPos mapping
    - coverage histogram columns sampled with a per-pixel stride
    - exon / CDS boxes of the feature track
    - the viewport rectangle and click-to-recenter positions
    - "nice" tick steps and K-suffixed labels for long references
    """

    COVERAGE_HEIGHT_RATIO = 0.6
    FEATURE_TRACK_Y = 4.0
    FEATURE_HEIGHT_RATIO = 0.3
    MIN_FEATURE_WIDTH = 2.0
    MIN_VIEWPORT_WIDTH = 4.0

    FEATURE_COLORS = {
        "CDS": "#00796b",
        "exon": "#26a69a",
    }

    def __init__(self) -> None:
        self._max_len: int = 0
        self._coverage: CoverageMap = CoverageMap({})
        self._features: List[GeneFeature] = []

    # --------------------------------------------------------------
    # Data
    # --------------------------------------------------------------

    @property
    def max_len(self) -> int:
        return self._max_len

    def set_reference_length(self, length: int) -> None:
        self._max_len = max(0, int(length))

    def set_coverage(self, coverage: CoverageMap) -> None:
        self._coverage = coverage

    def set_features(self, features: Sequence[GeneFeature]) -> None:
        self._features = [f for f in features if f.type in self.FEATURE_COLORS]

    # --------------------------------------------------------------
    # Coordinate mapping
    # --------------------------------------------------------------

    def ref_to_x(self, ref_pos: float, pixel_width: float) -> float:
        if self._max_len <= 0 or pixel_width <= 0:
            return 0.0
        return ref_pos / self._max_len * pixel_width

    def x_to_ratio(self, x: float, pixel_width: float) -> float:
        if pixel_width <= 0:
            return 0.0
        return min(max(x / float(pixel_width), 0.0), 1.0)

    def x_to_ref(self, x: float, pixel_width: float) -> float:
        return self.x_to_ratio(x, pixel_width) * self._max_len

    def position_for_click(self, x: float, pixel_width: float, zoom: int) -> int:
        """
        Viewport position that centers the window on the clicked point.
        """
        if self._max_len <= 0:
            return 0
        ratio = self.x_to_ratio(x, pixel_width)
        target = int(math.floor(math.floor(ratio * self._max_len) - zoom / 2))
        return max(0, min(target, max(0, self._max_len - zoom)))

    # --------------------------------------------------------------
    # Drawables
    # --------------------------------------------------------------

    def coverage_columns(self, pixel_width: int, height: float) -> List[CoverageColumn]:
        """
        One bar per stride of reference positions; a bar shows the highest
        coverage inside its stride.
        """
        max_cov = self._coverage.max_coverage
        if self._max_len <= 0 or pixel_width <= 0 or max_cov <= 0:
            return []

        stride = max(1, self._max_len // int(pixel_width))
        bar_width = max(1.0, stride / self._max_len * pixel_width)
        columns: List[CoverageColumn] = []

        for start in range(1, self._max_len + 1, stride):
            stop = min(start + stride, self._max_len + 1)
            coverage = max(self._coverage.get(RefPos(p)) for p in range(start, stop))
            if coverage <= 0:
                continue
            x = self.ref_to_x(start - 1, pixel_width)
            bar_height = coverage / max_cov * height * self.COVERAGE_HEIGHT_RATIO
            columns.append(
                CoverageColumn(
                    x=x,
                    coverage=coverage,
                    rect=Rect(x, height - bar_height, bar_width, bar_height),
                )
            )
        return columns

    def feature_boxes(self, pixel_width: float, height: float) -> List[FeatureBox]:
        boxes: List[FeatureBox] = []
        if self._max_len <= 0 or pixel_width <= 0:
            return boxes

        box_height = height * self.FEATURE_HEIGHT_RATIO
        for feature in self._features:
            x = self.ref_to_x(feature.start - 1, pixel_width)
            width = max(self.MIN_FEATURE_WIDTH, self.ref_to_x(feature.end - feature.start + 1, pixel_width))
            boxes.append(
                FeatureBox(
                    feature_type=feature.type,
                    rect=Rect(x, self.FEATURE_TRACK_Y, width, box_height),
                    color=self.FEATURE_COLORS[feature.type],
                )
            )
        return boxes

    def viewport_rect(self, viewport: Viewport, pixel_width: float, height: float) -> Optional[Rect]:
        if self._max_len <= 0 or pixel_width <= 0:
            return None
        x = self.ref_to_x(viewport.position, pixel_width)
        width = max(self.MIN_VIEWPORT_WIDTH, self.ref_to_x(viewport.zoom, pixel_width))
        return Rect(x, 0.0, width, height)

    # --------------------------------------------------------------
    # Ticks
    # --------------------------------------------------------------

    def compute_tick_layout(
        self,
        pixel_width: int,
        target_px: int = 60,
    ) -> Optional[MinimapTickLayout]:
        max_nt = self._max_len
        if max_nt <= 0 or pixel_width <= 0:
            return None

        step = self._nice_tick_step(max_nt, pixel_width, target_px)

        minor_step = max(step // 5, 1)
        minor_ticks = list(range(0, max_nt + 1, minor_step))
        major_ticks = list(range(0, max_nt + 1, step))

        # Last major tick snaps onto the end when it is close enough
        if major_ticks:
            delta = max_nt - major_ticks[-1]
            if delta != 0:
                if delta < step * 0.5:
                    major_ticks[-1] = max_nt
                else:
                    major_ticks.append(max_nt)

        return MinimapTickLayout(
            max_len=max_nt,
            tick_step=step,
            major_ticks=major_ticks,
            minor_ticks=minor_ticks,
        )

    def format_label(self, value: int) -> str:
        """
        Plain numbers up to 1M positions, K-suffixed beyond. 1 is always "1".
        """
        if value == 1:
            return "1"
        if self._max_len > 1_000_000:
            return f"{int(round(value / 1000.0))}K"
        return str(value)

    @staticmethod
    def _nice_tick_step(
        max_nt: int,
        pixel_width: int,
        target_px: int = 60,
    ) -> int:
        """
        1, 2 or 5 x 10^k step closest above the target pixel spacing.
        """
        if max_nt <= 0 or pixel_width <= 0:
            return max_nt if max_nt > 0 else 1

        raw_step = (max_nt * target_px) / float(pixel_width)
        if raw_step <= 0:
            return 1

        power = 10 ** int(math.floor(math.log10(raw_step)))
        base = raw_step / power

        if base <= 1:
            nice = 1
        elif base <= 2:
            nice = 2
        elif base <= 5:
            nice = 5
        else:
            nice = 10

        return int(nice * power)
