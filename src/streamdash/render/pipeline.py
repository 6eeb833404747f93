"""Glue between a summary series, a chart policy and a render backend."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Sequence

from ..core.models import Observation, ViewBounds
from ..tools.debug import time_block
from .backends import RenderBackend
from .charts import (
    BAR_MAX_BINS,
    DEFAULT_WINDOW_MS,
    HEATMAP_COLS,
    HEATMAP_ROWS,
    LINE_MAX_POINTS,
    SCATTER_MAX_POINTS,
    ChartFrame,
    build_bar_commands,
    build_heatmap_commands,
    build_line_commands,
    build_scatter_commands,
    default_bounds,
)

logger = logging.getLogger(__name__)


class ChartKind(str, Enum):
    LINE = "line"
    BAR = "bar"
    SCATTER = "scatter"
    HEATMAP = "heatmap"


CHART_TITLES = {
    ChartKind.LINE: "Real-time Line Chart",
    ChartKind.BAR: "Bar Chart",
    ChartKind.SCATTER: "Scatter Plot",
    ChartKind.HEATMAP: "Heatmap",
}


class RenderPipeline:
    """
    Owns the view bounds for one chart and turns each series into a frame.

    Until the user pans or zooms the pipeline holds no bounds and every
    builder derives them from the series it is given, so the view follows
    the sliding time window. :meth:`set_bounds` (driven by the viewport
    controller) pins the view; :meth:`reset_view` unpins it again.
    """

    def __init__(
        self,
        kind: ChartKind,
        backend: RenderBackend,
        width: int,
        height: int,
        *,
        line_max_points: int = LINE_MAX_POINTS,
        bar_max_bins: int = BAR_MAX_BINS,
        scatter_max_points: int = SCATTER_MAX_POINTS,
        heatmap_cols: int = HEATMAP_COLS,
        heatmap_rows: int = HEATMAP_ROWS,
    ) -> None:
        self.kind = ChartKind(kind)
        self.backend = backend
        self.width = width
        self.height = height
        self._bounds: Optional[ViewBounds] = None
        self._last_indices: tuple[int, ...] = ()
        self.last_build_ms: Optional[float] = None
        self._builder: Callable[[Sequence[Observation], Optional[ViewBounds]], ChartFrame] = self._make_builder(
            line_max_points, bar_max_bins, scatter_max_points, heatmap_cols, heatmap_rows
        )

    def _make_builder(
        self,
        line_max_points: int,
        bar_max_bins: int,
        scatter_max_points: int,
        heatmap_cols: int,
        heatmap_rows: int,
    ) -> Callable[[Sequence[Observation], Optional[ViewBounds]], ChartFrame]:
        if self.kind is ChartKind.LINE:
            return lambda s, b: build_line_commands(s, b, self.width, self.height, max_points=line_max_points)
        if self.kind is ChartKind.BAR:
            return lambda s, b: build_bar_commands(s, b, self.width, self.height, max_bins=bar_max_bins)
        if self.kind is ChartKind.SCATTER:
            return lambda s, b: build_scatter_commands(s, b, self.width, self.height, max_points=scatter_max_points)
        if self.kind is ChartKind.HEATMAP:
            return lambda s, b: build_heatmap_commands(
                s, b, self.width, self.height, cols=heatmap_cols, rows=heatmap_rows
            )
        raise ValueError(f"Unsupported chart kind {self.kind!r}")

    @property
    def bounds(self) -> Optional[ViewBounds]:
        return self._bounds

    @property
    def last_indices(self) -> tuple[int, ...]:
        """Series indices plotted by the most recent :meth:`render`."""
        return self._last_indices

    @property
    def using_offscreen(self) -> bool:
        return self.backend.using_offscreen

    def effective_bounds(self, series: Sequence[Observation]) -> Optional[ViewBounds]:
        """
        Bounds the next frame is drawn with: the pinned view, or the
        automatic bounds for ``series``. Zero spans are widened so the
        result can seed a pan or zoom.
        """
        if self._bounds is not None:
            return self._bounds
        if self.kind is ChartKind.LINE:
            auto = default_bounds(series)
        else:
            auto = ViewBounds.from_series(series)
        return None if auto is None else widen_degenerate(auto)

    def set_bounds(self, bounds: ViewBounds) -> None:
        if bounds.span_x <= 0 or bounds.span_y <= 0:
            logger.debug("Ignoring degenerate %s bounds %r", self.kind.value, bounds)
            return
        self._bounds = bounds

    def reset_view(self) -> None:
        self._bounds = None

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            return
        self.width = width
        self.height = height
        self.backend.resize(width, height)

    def build(self, series: Sequence[Observation]) -> ChartFrame:
        return self._builder(series, self._bounds)

    def render(self, series: Sequence[Observation]) -> ChartFrame:
        with time_block(f"build[{self.kind.value}, {len(series)} points]") as timing:
            frame = self.build(series)
        self.last_build_ms = timing.elapsed_ms
        self._last_indices = frame.indices
        self.backend.submit(frame.commands)
        return frame

    def close(self) -> None:
        self.backend.close()


def widen_degenerate(bounds: ViewBounds) -> ViewBounds:
    """Give a zero time span a five-minute window and a zero value span one unit each way."""
    min_x, max_x, min_y, max_y = bounds.min_x, bounds.max_x, bounds.min_y, bounds.max_y
    if max_x <= min_x:
        half = DEFAULT_WINDOW_MS / 2.0
        min_x, max_x = min_x - half, min_x + half
    if max_y <= min_y:
        min_y, max_y = min_y - 1.0, min_y + 1.0
    return ViewBounds(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)
