"""Headless-friendly benchmark runs: sample the HUD snapshot, summarize, quit."""

from __future__ import annotations

import argparse
import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np
from PySide6.QtCore import QElapsedTimer, QObject, QTimer, Qt, Signal
from PySide6.QtWidgets import QApplication

from ..perf_system import get_process_cpu_percent
from .main_window import MainWindow

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "t",
    "current_fps",
    "average_fps",
    "frame_render_time_ms",
    "memory_usage_bytes",
    "data_point_count",
    "worker_processing_time_ms",
    "using_offscreen",
    "gc_pause_count",
    "cpu_percent",
]


@dataclass(frozen=True)
class BenchmarkOptions:
    duration_s: float = 30.0
    sample_interval_s: float = 1.0
    csv_path: Optional[Path] = None
    keep_open: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> BenchmarkOptions:
        csv_path = Path(args.bench_csv).expanduser().resolve() if args.bench_csv else None
        return cls(
            duration_s=float(args.bench_duration),
            sample_interval_s=max(0.1, float(args.bench_interval)),
            csv_path=csv_path,
            keep_open=bool(args.bench_keep_open),
        )


def summarize(rows: Sequence[dict[str, Any]]) -> dict[str, float]:
    """Aggregate benchmark rows into the figures printed at the end of a run."""
    if not rows:
        return {"samples": 0}
    fps = np.array([float(r["current_fps"]) for r in rows])
    frame_ms = np.array([float(r["frame_render_time_ms"]) for r in rows])
    memory = np.array([float(r["memory_usage_bytes"]) for r in rows])
    return {
        "samples": len(rows),
        "fps_min": float(fps.min()),
        "fps_mean": float(fps.mean()),
        "fps_max": float(fps.max()),
        "frame_ms_p95": float(np.percentile(frame_ms, 95)),
        "memory_peak_mb": float(memory.max()) / (1024.0 * 1024.0),
        "final_points": float(rows[-1]["data_point_count"]),
    }


class BenchmarkDriver(QObject):
    """
    Samples :meth:`MainWindow.latest_snapshot` on a fixed interval.

    When the duration elapses the rows go to CSV (if requested), a summary is
    logged and emitted through :attr:`completed`, and the application quits
    unless ``keep_open`` is set.
    """

    completed = Signal(object)  # dict[str, float]

    def __init__(self, app: QApplication, window: MainWindow, options: BenchmarkOptions) -> None:
        super().__init__(window)
        self._app = app
        self._window = window
        self._options = options
        self._clock = QElapsedTimer()
        self._rows: list[dict[str, Any]] = []
        self._finished = False

        self._sampler = QTimer(self)
        self._sampler.setTimerType(Qt.PreciseTimer)
        self._sampler.setInterval(int(max(100, round(options.sample_interval_s * 1000.0))))
        self._sampler.timeout.connect(self.sample)

    @property
    def rows(self) -> list[dict[str, Any]]:
        return list(self._rows)

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self) -> None:
        if self._clock.isValid():
            return
        self._clock.start()
        self._sampler.start()
        logger.info(
            "[benchmark] sampling every %.1f s for %.1f s",
            self._options.sample_interval_s,
            self._options.duration_s,
        )
        if self._options.duration_s <= 0.0:
            QTimer.singleShot(0, self.finish)

    def elapsed_s(self) -> float:
        return self._clock.elapsed() / 1000.0 if self._clock.isValid() else 0.0

    def sample(self) -> None:
        elapsed = self.elapsed_s()
        snap = self._window.latest_snapshot()
        row: dict[str, Any] = {"t": round(elapsed, 3), **snap.as_dict(), "cpu_percent": get_process_cpu_percent()}
        self._rows.append(row)
        logger.info(
            "[benchmark] t=%5.1fs fps=%3.0f/%3.0f frame=%5.2fms mem=%6.1fMB points=%d cpu=%5.1f%%",
            elapsed,
            snap.current_fps,
            snap.average_fps,
            snap.frame_render_time_ms,
            snap.memory_usage_bytes / (1024.0 * 1024.0),
            snap.data_point_count,
            row["cpu_percent"],
        )
        if elapsed >= self._options.duration_s:
            self.finish()

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._sampler.stop()
        if self._options.csv_path is not None and self._rows:
            self.write_csv(self._options.csv_path)

        summary = summarize(self._rows)
        logger.info("[benchmark] done: %s", ", ".join(f"{k}={v:.2f}" for k, v in summary.items()))
        self.completed.emit(summary)
        if not self._options.keep_open:
            self._app.quit()

    def write_csv(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=CSV_FIELDS, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(self._rows)
        logger.info("[benchmark] %d rows written to %s", len(self._rows), path)
