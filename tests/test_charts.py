from __future__ import annotations

import pytest

from helpers import make_point, make_series
from streamdash.core.models import ViewBounds
from streamdash.render.charts import (
    COMPACT_PADDING,
    LINE_PADDING,
    build_bar_commands,
    build_heatmap_commands,
    build_line_commands,
    build_scatter_commands,
    default_bounds,
    heatmap_counts,
    intensity_color,
    sample_indices,
)
from streamdash.render.commands import CircleCommand, PathCommand, RectCommand, TextCommand

WIDTH, HEIGHT = 400, 240


def _wave(n: int):
    return make_series([float((i * 7) % 100) for i in range(n)], step_ms=1_000)


def test_sample_indices_fixed_stride() -> None:
    assert list(sample_indices(10, 3)) == [0, 3, 6, 9]
    assert list(sample_indices(5, 80)) == [0, 1, 2, 3, 4]
    assert list(sample_indices(0, 80)) == []
    assert len(sample_indices(200, 80, round_up=True)) <= 80


def test_sampling_is_deterministic() -> None:
    series = _wave(1_000)
    first = build_line_commands(series, None, WIDTH, HEIGHT)
    second = build_line_commands(series, None, WIDTH, HEIGHT)

    assert first.indices == second.indices
    assert first.commands == second.commands


def test_line_chart_downsamples_to_at_most_80_points() -> None:
    series = _wave(1_000)
    frame = build_line_commands(series, ViewBounds.from_series(series), WIDTH, HEIGHT)

    polyline = [c for c in frame.commands if isinstance(c, PathCommand) and c.stroke_style == "#3b82f6"]
    assert len(polyline) == 1
    assert 2 <= len(polyline[0].points) <= 80
    assert len(frame.indices) == len(polyline[0].points)
    assert frame.indices[0] == 0


def test_line_chart_layout() -> None:
    series = _wave(300)
    frame = build_line_commands(series, None, WIDTH, HEIGHT)

    texts = [c for c in frame.commands if isinstance(c, TextCommand)]
    assert len([t for t in texts if t.align == "right"]) == 6
    time_labels = [t for t in texts if t.align == "center"]
    assert len(time_labels) == 5
    assert all(len(t.text) == 5 and t.text[2] == ":" for t in time_labels)

    circles = [c for c in frame.commands if isinstance(c, CircleCommand)]
    assert circles[-1].radius == 6.0
    assert 1 <= len([c for c in circles if c.radius == 4.0]) <= 8


def test_line_chart_clamps_to_plot_area() -> None:
    series = _wave(200)
    narrow = ViewBounds(series[50].timestamp, series[100].timestamp, 40.0, 60.0)
    frame = build_line_commands(series, narrow, WIDTH, HEIGHT)

    (polyline,) = [c for c in frame.commands if isinstance(c, PathCommand) and c.stroke_style == "#3b82f6"]
    for x, y in polyline.points:
        assert LINE_PADDING.left <= x <= WIDTH - LINE_PADDING.right
        assert LINE_PADDING.top <= y <= HEIGHT - LINE_PADDING.bottom


def test_line_chart_needs_two_points() -> None:
    frame = build_line_commands([make_point(0, 1.0)], None, WIDTH, HEIGHT)
    assert len(frame.commands) == 1
    assert isinstance(frame.commands[0], RectCommand)


def test_default_bounds_spans_at_least_five_minutes() -> None:
    series = make_series([1.0, 2.0], start_ms=1_000_000, step_ms=1_000)
    bounds = default_bounds(series)
    assert bounds.max_x == 1_001_000
    assert bounds.span_x == 5 * 60 * 1000
    assert default_bounds([]) is None


def test_bar_chart_respects_bin_limit_and_plot_width() -> None:
    series = _wave(1_000)
    frame = build_bar_commands(series, None, WIDTH, HEIGHT)

    bars = [c for c in frame.commands if isinstance(c, RectCommand)]
    plot_w, plot_h = COMPACT_PADDING.plot_size(WIDTH, HEIGHT)
    assert 0 < len(bars) <= 200
    assert all(b.x <= COMPACT_PADDING.left + plot_w for b in bars)
    assert all(0.0 <= b.height <= plot_h for b in bars)
    assert list(frame.indices) == list(range(0, 5 * len(bars), 5))


def test_bar_height_tracks_value_range() -> None:
    series = make_series([10.0, 20.0, 30.0])
    frame = build_bar_commands(series, None, WIDTH, HEIGHT)

    bars = [c for c in frame.commands if isinstance(c, RectCommand)]
    _, plot_h = COMPACT_PADDING.plot_size(WIDTH, HEIGHT)
    assert [b.height for b in bars] == pytest.approx([0.0, plot_h / 2, plot_h])


def test_scatter_downsamples_and_skips_points_outside_bounds() -> None:
    series = _wave(5_000)
    frame = build_scatter_commands(series, ViewBounds.from_series(series), WIDTH, HEIGHT)
    assert 0 < len([c for c in frame.commands if isinstance(c, CircleCommand)]) <= 2000

    window = ViewBounds(series[0].timestamp, series[99].timestamp, 0.0, 100.0)
    clipped = build_scatter_commands(series, window, WIDTH, HEIGHT)
    assert all(i < 100 for i in clipped.indices)


def test_heatmap_counts_cells() -> None:
    series = [make_point(0, 100.0), make_point(500, 0.0), make_point(1_000, 0.0), make_point(1_000, 55.0)]

    grid = heatmap_counts(series, cols=4, rows=10)

    assert grid.sum() == 4
    assert grid[0, 0] == 1
    assert grid[9, 2] == 1
    assert grid[9, 3] == 1
    assert grid[4, 3] == 1


def test_heatmap_grid_and_colours() -> None:
    series = [make_point(0, 95.0)] * 3 + [make_point(60_000, 5.0)]
    frame = build_heatmap_commands(series, None, WIDTH, HEIGHT, cols=40, rows=10)

    cells = [c for c in frame.commands if isinstance(c, RectCommand)]
    assert len(cells) == 400
    assert cells[0].fill_style == "#ff0000"
    assert cells[1].fill_style == intensity_color(0.0) == "#0064c8"


def test_empty_series_produce_no_plot_marks() -> None:
    for build in (build_line_commands, build_bar_commands, build_scatter_commands, build_heatmap_commands):
        frame = build([], None, WIDTH, HEIGHT)
        assert not [c for c in frame.commands if isinstance(c, CircleCommand)]
        assert frame.indices == ()


def test_scatter_stride_never_exceeds_max_points() -> None:
    series = _wave(3_999)

    frame = build_scatter_commands(series, None, WIDTH, HEIGHT)

    assert len(frame.indices) == 2_000
    assert frame.indices[:3] == (0, 2, 4)


def test_latest_marker_stays_inside_plot_after_pan() -> None:
    series = _wave(10)
    panned = ViewBounds(0.0, 4_000.0, 0.0, 100.0)

    frame = build_line_commands(series, panned, WIDTH, HEIGHT)

    (latest,) = [c for c in frame.commands if isinstance(c, CircleCommand) and c.radius == 6.0]
    assert latest.x == WIDTH - 40
    assert 40 <= latest.y <= HEIGHT - 50
