from __future__ import annotations

import csv
from pathlib import Path

import pytest
from PySide6.QtWidgets import QLabel

from streamdash.config.runtime import DashboardConfig
from streamdash.core.models import AggregationPeriod, Category, PerformanceSnapshot
from streamdash.gui.application import _parse_cli_args, create_app, resolve_config
from streamdash.gui.benchmark import CSV_FIELDS, BenchmarkDriver, BenchmarkOptions, summarize
from streamdash.gui.main_window import MainWindow, format_memory, format_snapshot
from streamdash.render import backends
from streamdash.render.painter import SurfaceUnavailableError
from streamdash.render.pipeline import ChartKind

CONFIG = DashboardConfig(initial_seed_count=300, tick_interval_ms=1000, frame_interval_ms=1000)


@pytest.fixture
def window(qapp):
    win = MainWindow(CONFIG, streaming=False, use_offscreen=False)
    yield win
    win.close()


def test_window_builds_four_charts(window: MainWindow) -> None:
    assert set(window.charts) == set(ChartKind)
    assert not any(chart.using_offscreen for chart in window.charts.values())


def test_summary_reaches_charts(window: MainWindow, wait_until) -> None:
    window.start()
    assert wait_until(lambda: bool(window.controller.latest_summary))
    assert window.stream_button.text() == "Resume"

    window._on_frame()

    for chart in window.charts.values():
        assert chart.pipeline.last_build_ms is not None
    line = window.charts[ChartKind.LINE].pipeline
    assert line.bounds is None
    assert line.effective_bounds(window.controller.latest_summary) is not None


def test_controls_update_filter(window: MainWindow) -> None:
    window.start()

    window.period_combo.setCurrentIndex(window.period_combo.findText("5min"))
    window.category_boxes["log"].setChecked(False)
    window.stream_button.click()

    flt = window.controller.filter_config
    assert flt.period is AggregationPeriod.FIVE_MINUTES
    assert Category.LOG not in flt.categories
    assert window.controller.is_streaming
    assert window.stream_button.text() == "Pause"


def test_format_helpers() -> None:
    assert format_memory(0) == "0 B"
    assert format_memory(2 * 1024 * 1024) == "2.0 MB"
    text = format_snapshot(PerformanceSnapshot(worker_processing_time_ms=1.25, using_offscreen=False))
    assert "worker 1.25 ms" in text
    assert "main-thread" in text


def test_benchmark_writes_csv(qapp, window: MainWindow, tmp_path: Path) -> None:
    csv_path = tmp_path / "bench" / "metrics.csv"
    driver = BenchmarkDriver(
        qapp, window, BenchmarkOptions(duration_s=0.0, csv_path=csv_path, keep_open=True)
    )

    summaries: list[dict] = []
    driver.completed.connect(summaries.append)

    driver.sample()

    assert driver.finished
    assert summaries and summaries[0]["samples"] == 1
    assert len(driver.rows) == 1
    with csv_path.open(newline="") as fh:
        reader = csv.DictReader(fh)
        assert reader.fieldnames == CSV_FIELDS
        assert len(list(reader)) == 1


def test_cli_args_split_qt_arguments() -> None:
    args, qt_argv = _parse_cli_args(
        ["streamdash", "--no-stream", "--main-thread", "--log-level", "DEBUG", "-platform", "offscreen"]
    )
    assert args.no_stream and args.main_thread
    assert args.log_level == "DEBUG"
    assert qt_argv == ["streamdash", "-platform", "offscreen"]


def test_resolve_config_reads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text("tick_interval_ms: 250\n", encoding="utf-8")
    assert resolve_config(str(path)).tick_interval_ms == 250


def test_create_app_reuses_instance(qapp) -> None:
    app, win = create_app(["streamdash"], config=CONFIG, streaming=False, use_offscreen=False)
    try:
        assert app is qapp
        assert isinstance(win, MainWindow)
    finally:
        win.close()


def test_benchmark_options_from_cli() -> None:
    args, _ = _parse_cli_args(["streamdash", "--benchmark", "--bench-duration", "5", "--bench-interval", "0.01"])
    options = BenchmarkOptions.from_args(args)
    assert options.duration_s == 5.0
    assert options.sample_interval_s == 0.1
    assert options.csv_path is None
    assert not options.keep_open


def test_summarize_rows() -> None:
    rows = [
        {"current_fps": 50, "frame_render_time_ms": 2.0, "memory_usage_bytes": 1024 * 1024, "data_point_count": 10},
        {"current_fps": 60, "frame_render_time_ms": 4.0, "memory_usage_bytes": 3 * 1024 * 1024, "data_point_count": 20},
    ]
    summary = summarize(rows)
    assert summary["samples"] == 2
    assert summary["fps_min"] == 50.0
    assert summary["fps_mean"] == 55.0
    assert summary["memory_peak_mb"] == 3.0
    assert summary["final_points"] == 20.0
    assert summarize([]) == {"samples": 0}


def test_offscreen_surface_failure_marks_charts_unavailable(qapp, monkeypatch: pytest.MonkeyPatch) -> None:
    def no_surface(width, height, dpr=1.0):
        raise SurfaceUnavailableError("no surface")

    monkeypatch.setattr(backends, "offscreen_supported", lambda: True)
    monkeypatch.setattr(backends, "create_surface", no_surface)

    win = MainWindow(CONFIG, streaming=False, use_offscreen=True)
    try:
        assert win.charts == {}
        labels = [label.text() for label in win.findChildren(QLabel)]
        assert sum(text.startswith("Chart unavailable") for text in labels) == len(ChartKind)
    finally:
        win.close()
