"""Chart drawing policies: summary series + bounds in, draw commands out.

Every builder returns a :class:`ChartFrame` holding the command list and the
indices of the series that were actually plotted, so downsampling can be
checked without a surface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import numpy as np
from matplotlib.colors import LinearSegmentedColormap, to_hex

from ..core.models import Observation, ViewBounds
from .commands import CircleCommand, DrawCommand, PathCommand, RectCommand, TextCommand

DEFAULT_WINDOW_MS = 5 * 60 * 1000

BACKGROUND = "#ffffff"
GRID_COLOR = "#f1f5f9"
AXIS_COLOR = "#cbd5e1"
LABEL_COLOR = "#1e293b"
LABEL_FONT = "12px Arial"
MARKER_BORDER = "#ffffff"

LINE_COLOR = "#3b82f6"
BAR_COLOR = "#8b5cf6"
SCATTER_COLOR = "#06b6d4"

LINE_MAX_POINTS = 80
LINE_RECENT_MARKERS = 15
BAR_MAX_BINS = 200
SCATTER_MAX_POINTS = 2000
HEATMAP_COLS = 40
HEATMAP_ROWS = 10

HEAT_COLORMAP = LinearSegmentedColormap.from_list(
    "streamdash_heat",
    [(0.0, 100 / 255, 200 / 255), (1.0, 0.0, 0.0)],
)


@dataclass(frozen=True)
class Padding:
    top: float
    right: float
    bottom: float
    left: float

    def plot_size(self, width: float, height: float) -> tuple[float, float]:
        return width - self.left - self.right, height - self.top - self.bottom


LINE_PADDING = Padding(top=40, right=40, bottom=50, left=70)
COMPACT_PADDING = Padding(top=30, right=30, bottom=50, left=50)


@dataclass(frozen=True)
class ChartFrame:
    commands: tuple[DrawCommand, ...]
    indices: tuple[int, ...] = ()


def sample_stride(n: int, max_points: int, *, round_up: bool = False) -> int:
    if n <= 0 or max_points <= 0:
        return 1
    if round_up:
        return max(1, math.ceil(n / max_points))
    return max(1, n // max_points)


def sample_indices(n: int, max_points: int, *, round_up: bool = False) -> range:
    """
    Evenly strided indices over a series of length ``n``.

    The default stride is ``max(1, n // max_points)``; ``round_up`` uses the
    ceiling instead so the result never exceeds ``max_points`` entries.
    Identical inputs always produce the identical index set.
    """
    return range(0, max(0, n), sample_stride(n, max_points, round_up=round_up))


def default_bounds(series: Sequence[Observation]) -> Optional[ViewBounds]:
    """Bounds used before any interaction: at least a five-minute window."""
    if not series:
        return None
    values = [p.value for p in series]
    first_ts = series[0].timestamp
    last_ts = series[-1].timestamp
    window = max(DEFAULT_WINDOW_MS, max(1, last_ts - first_ts))
    return ViewBounds(min_x=float(last_ts - window), max_x=float(last_ts), min_y=min(values), max_y=max(values))


def format_time_label(timestamp_ms: float) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000.0).strftime("%H:%M")


def _span(lo: float, hi: float) -> float:
    return (hi - lo) or 1.0


def _y_labels(
    lo: float,
    span: float,
    padding: Padding,
    plot_h: float,
    label_x: float,
) -> list[DrawCommand]:
    labels: list[DrawCommand] = []
    for i in range(6):
        value = lo + (1 - i / 5) * span
        y = padding.top + (i / 5) * plot_h
        labels.append(TextCommand(f"{value:.0f}", label_x, y, LABEL_FONT, LABEL_COLOR, "right", "middle"))
    return labels


def _axes(padding: Padding, width: float, height: float, line_width: float) -> list[DrawCommand]:
    bottom = height - padding.bottom
    return [
        PathCommand(((padding.left, padding.top), (padding.left, bottom)), AXIS_COLOR, line_width),
        PathCommand(((padding.left, bottom), (width - padding.right, bottom)), AXIS_COLOR, line_width),
    ]


# --------------------------------------------------------------------- line
def build_line_commands(
    series: Sequence[Observation],
    bounds: Optional[ViewBounds],
    width: float,
    height: float,
    *,
    max_points: int = LINE_MAX_POINTS,
    color: str = LINE_COLOR,
    line_width: float = 2.0,
    padding: Padding = LINE_PADDING,
) -> ChartFrame:
    commands: list[DrawCommand] = [RectCommand(0.0, 0.0, width, height, BACKGROUND)]
    if len(series) < 2:
        return ChartFrame(tuple(commands))

    bounds = bounds or default_bounds(series)
    value_span = _span(bounds.min_y, bounds.max_y)
    time_span = _span(bounds.min_x, bounds.max_x)
    plot_w, plot_h = padding.plot_size(width, height)
    left, top = padding.left, padding.top
    right, bottom = width - padding.right, height - padding.bottom

    for i in range(6):
        y = top + (i / 5) * plot_h
        commands.append(PathCommand(((left, y), (right, y)), GRID_COLOR, 1.0))
    for i in range(5):
        x = left + (i / 4) * plot_w
        commands.append(PathCommand(((x, top), (x, bottom)), GRID_COLOR, 1.0))
    commands.extend(_axes(padding, width, height, 2.0))
    commands.extend(_y_labels(bounds.min_y, value_span, padding, plot_h, left - 15))
    for i in range(5):
        ts = bounds.min_x + (i / 4) * time_span
        x = left + (i / 4) * plot_w
        commands.append(TextCommand(format_time_label(ts), x, bottom + 15, LABEL_FONT, LABEL_COLOR, "center", "top"))

    def project(point: Observation) -> tuple[float, float]:
        x = left + (point.timestamp - bounds.min_x) / time_span * plot_w
        y = top + (bounds.max_y - point.value) / value_span * plot_h
        return x, y

    def clamp(x: float, y: float) -> tuple[float, float]:
        return max(left, min(right, x)), max(top, min(bottom, y))

    n = len(series)
    indices = sample_indices(n, max_points, round_up=True)
    step = indices.step
    commands.append(PathCommand(tuple(clamp(*project(series[i])) for i in indices), color, line_width))

    # Markers only on the most recent strided points.
    recent = min(LINE_RECENT_MARKERS, n // step)
    for i in range(max(0, n - recent * step), n, step * 2):
        x, y = clamp(*project(series[i]))
        commands.append(CircleCommand(x, y, 4.0, color, MARKER_BORDER, 1.0))

    latest_x, latest_y = clamp(*project(series[-1]))
    commands.append(CircleCommand(latest_x, latest_y, 6.0, color, MARKER_BORDER, 2.0))
    return ChartFrame(tuple(commands), tuple(indices))


# ---------------------------------------------------------------------- bar
def build_bar_commands(
    series: Sequence[Observation],
    bounds: Optional[ViewBounds],
    width: float,
    height: float,
    *,
    max_bins: int = BAR_MAX_BINS,
    color: str = BAR_COLOR,
    padding: Padding = COMPACT_PADDING,
) -> ChartFrame:
    """Histogram-style bars scaled to the observed value range; ``bounds`` is unused."""
    if not series:
        return ChartFrame(())

    values = [p.value for p in series]
    min_v = min(values)
    value_span = _span(min_v, max(values))
    plot_w, plot_h = padding.plot_size(width, height)
    commands: list[DrawCommand] = list(_axes(padding, width, height, 1.0))

    n = len(series)
    bins = min(n, max_bins)
    bar_w = max(2, math.floor(plot_w / bins) - 2)
    x = padding.left
    drawn: list[int] = []
    for i in sample_indices(n, bins):
        h = (values[i] - min_v) / value_span * plot_h
        commands.append(RectCommand(x, padding.top + (plot_h - h), bar_w, h, color))
        drawn.append(i)
        x += bar_w + 4
        if x > padding.left + plot_w:
            break

    commands.extend(_y_labels(min_v, value_span, padding, plot_h, padding.left - 10))
    return ChartFrame(tuple(commands), tuple(drawn))


# ------------------------------------------------------------------ scatter
def build_scatter_commands(
    series: Sequence[Observation],
    bounds: Optional[ViewBounds],
    width: float,
    height: float,
    *,
    max_points: int = SCATTER_MAX_POINTS,
    color: str = SCATTER_COLOR,
    point_size: float = 4.0,
    padding: Padding = COMPACT_PADDING,
) -> ChartFrame:
    """
    Points in data coordinates; anything outside ``bounds`` is skipped.

    Without pinned bounds the observed range of ``series`` is used on every
    call. The stride is the ceiling of ``n / max_points`` so no more than
    ``max_points`` dots are drawn; a floor stride would allow up to twice
    that many for ``max_points < n < 2 * max_points``.
    """
    commands: list[DrawCommand] = [RectCommand(0.0, 0.0, width, height, BACKGROUND)]
    if not series:
        return ChartFrame(tuple(commands))

    bounds = bounds or ViewBounds.from_series(series)
    value_span = _span(bounds.min_y, bounds.max_y)
    time_span = _span(bounds.min_x, bounds.max_x)
    plot_w, plot_h = padding.plot_size(width, height)
    commands.extend(_axes(padding, width, height, 1.0))

    drawn: list[int] = []
    for i in sample_indices(len(series), max_points, round_up=True):
        p = series[i]
        if not (bounds.min_x <= p.timestamp <= bounds.max_x and bounds.min_y <= p.value <= bounds.max_y):
            continue
        x = padding.left + (p.timestamp - bounds.min_x) / time_span * plot_w
        y = padding.top + (plot_h - (p.value - bounds.min_y) / value_span * plot_h)
        commands.append(CircleCommand(x, y, point_size / 2.0, color))
        drawn.append(i)

    commands.extend(_y_labels(bounds.min_y, value_span, padding, plot_h, padding.left - 10))
    return ChartFrame(tuple(commands), tuple(drawn))


# ------------------------------------------------------------------ heatmap
def heatmap_counts(series: Sequence[Observation], cols: int = HEATMAP_COLS, rows: int = HEATMAP_ROWS) -> np.ndarray:
    """
    Count points per (value row, time column) cell.

    Columns span the observed time range; rows cover values 0..100 with the
    highest values in row 0.
    """
    grid = np.zeros((rows, cols), dtype=np.int64)
    if not series:
        return grid
    times = np.fromiter((p.timestamp for p in series), dtype=np.float64, count=len(series))
    values = np.fromiter((p.value for p in series), dtype=np.float64, count=len(series))
    min_t = times.min()
    t_span = (times.max() - min_t) or 1.0

    col = np.minimum(cols - 1, np.floor((times - min_t) / t_span * cols)).astype(np.int64)
    value_norm = np.clip(values / 100.0, 0.0, 1.0)
    row = np.minimum(rows - 1, np.floor((1.0 - value_norm) * rows)).astype(np.int64)
    np.add.at(grid, (row, col), 1)
    return grid


def intensity_color(intensity: float) -> str:
    return to_hex(HEAT_COLORMAP(float(intensity)))


def build_heatmap_commands(
    series: Sequence[Observation],
    bounds: Optional[ViewBounds],
    width: float,
    height: float,
    *,
    cols: int = HEATMAP_COLS,
    rows: int = HEATMAP_ROWS,
    padding: Padding = COMPACT_PADDING,
) -> ChartFrame:
    if not series:
        return ChartFrame(())

    grid = heatmap_counts(series, cols, rows)
    max_count = grid.max() or 1
    intensities = grid / max_count
    colors = HEAT_COLORMAP(intensities)

    plot_w, plot_h = padding.plot_size(width, height)
    cell_w = plot_w / cols
    cell_h = plot_h / rows
    commands: list[DrawCommand] = []
    for r in range(rows):
        for c in range(cols):
            commands.append(
                RectCommand(
                    padding.left + c * cell_w,
                    padding.top + r * cell_h,
                    cell_w,
                    cell_h,
                    to_hex(colors[r, c]),
                )
            )
    return ChartFrame(tuple(commands), tuple(range(len(series))))
