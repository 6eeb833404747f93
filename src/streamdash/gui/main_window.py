"""Main window for the StreamDash GUI."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Signal, Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..config.runtime import DashboardConfig
from ..core.models import ALL_CATEGORIES, AggregationPeriod, PerformanceSnapshot, TimeRange, ValueRange
from ..core.performance import GcPauseRegistry, PerformanceSampler
from ..data.generator import now_ms
from ..render.painter import SurfaceUnavailableError
from ..render.pipeline import CHART_TITLES, ChartKind
from .chart_widget import ChartWidget, FrameClock
from .stream_controller import StreamController

TIME_WINDOW_CHOICES = (5, 15, 30, 60)
CHART_GRID = (
    (ChartKind.LINE, 0, 0),
    (ChartKind.BAR, 0, 1),
    (ChartKind.SCATTER, 1, 0),
    (ChartKind.HEATMAP, 1, 1),
)


def format_memory(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024.0 or unit == "GB":
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{value:.1f} GB"


def format_snapshot(snap: PerformanceSnapshot) -> str:
    parts = [
        f"FPS {snap.current_fps:.0f} (avg {snap.average_fps:.0f})",
        f"frame {snap.frame_render_time_ms:.2f} ms",
        f"mem {format_memory(snap.memory_usage_bytes)}",
        f"points {snap.data_point_count}",
    ]
    if snap.worker_processing_time_ms is not None:
        parts.append(f"worker {snap.worker_processing_time_ms:.2f} ms")
    if snap.using_offscreen is not None:
        parts.append("offscreen" if snap.using_offscreen else "main-thread")
    if snap.gc_pause_count is not None:
        parts.append(f"GC {snap.gc_pause_count}")
    return " | ".join(parts)


class MainWindow(QMainWindow):
    """Dashboard window: filter controls above a 2x2 grid of live charts."""

    perf_updated = Signal(object)  # PerformanceSnapshot

    def __init__(
        self,
        config: DashboardConfig | None = None,
        *,
        streaming: bool = True,
        use_offscreen: Optional[bool] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("StreamDash")

        self._config = config or DashboardConfig()
        self._initial_streaming = streaming
        self._logger = logging.getLogger(__name__)
        self._started = False

        self.controller = StreamController(self._config, parent=self)
        self.gc_registry = GcPauseRegistry()
        self.sampler = PerformanceSampler(
            gc_registry=self.gc_registry,
            history_size=self._config.fps_history_size,
        )
        self.frame_clock = FrameClock(self._config.frame_interval_ms, self)
        self.charts: dict[ChartKind, ChartWidget] = {}

        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.addLayout(self._build_controls())
        layout.addLayout(self._build_charts(use_offscreen))
        self.hud_label = QLabel("Waiting for first frame...")
        layout.addWidget(self.hud_label)
        self.setCentralWidget(central)

        self.controller.summary_updated.connect(self._on_summary_updated)
        self.controller.processing_error.connect(self._on_processing_error)
        self.controller.streaming_changed.connect(self._on_streaming_changed)
        self.controller.data_count_changed.connect(self.sampler.set_data_point_count)
        self.frame_clock.tick.connect(self._on_frame)

        if self.charts:
            self.sampler.set_using_offscreen(all(c.using_offscreen for c in self.charts.values()))

    # ---------------------------------------------------------------- layout
    def _build_controls(self) -> QHBoxLayout:
        row = QHBoxLayout()

        self.stream_button = QPushButton("Pause")
        self.stream_button.clicked.connect(self.controller.toggle_streaming)
        row.addWidget(self.stream_button)

        self.clear_button = QPushButton("Clear")
        self.clear_button.clicked.connect(self.controller.clear_data)
        row.addWidget(self.clear_button)

        row.addWidget(QLabel("Window:"))
        self.window_combo = QComboBox()
        for minutes in TIME_WINDOW_CHOICES:
            self.window_combo.addItem(f"{minutes}m", minutes)
        idx = self.window_combo.findData(int(self._config.time_window_minutes))
        if idx >= 0:
            self.window_combo.setCurrentIndex(idx)
        self.window_combo.currentIndexChanged.connect(self._on_window_changed)
        row.addWidget(self.window_combo)

        row.addWidget(QLabel("Aggregate:"))
        self.period_combo = QComboBox()
        for period in AggregationPeriod:
            self.period_combo.addItem(period.value, period)
        self.period_combo.setCurrentIndex(self.period_combo.findText(self._config.aggregation_period))
        self.period_combo.currentIndexChanged.connect(self._on_period_changed)
        row.addWidget(self.period_combo)

        self.category_boxes: dict[str, QCheckBox] = {}
        for category in ALL_CATEGORIES:
            box = QCheckBox(category.value)
            box.setChecked(category.value in self._config.categories)
            box.toggled.connect(self._on_categories_changed)
            self.category_boxes[category.value] = box
            row.addWidget(box)

        row.addWidget(QLabel("Value:"))
        self.value_min_spin = QDoubleSpinBox()
        self.value_max_spin = QDoubleSpinBox()
        for spin, value in ((self.value_min_spin, self._config.value_min), (self.value_max_spin, self._config.value_max)):
            spin.setRange(0.0, 100.0)
            spin.setDecimals(1)
            spin.setValue(value)
            spin.valueChanged.connect(self._on_value_range_changed)
            row.addWidget(spin)

        row.addStretch(1)
        return row

    def _build_charts(self, use_offscreen: Optional[bool]) -> QGridLayout:
        grid = QGridLayout()
        for kind, r, c in CHART_GRID:
            box = QGroupBox(CHART_TITLES[kind])
            box_layout = QVBoxLayout(box)
            try:
                chart = ChartWidget(kind, self._config, use_offscreen=use_offscreen, parent=box)
            except SurfaceUnavailableError as exc:
                self._logger.error("Chart %s unavailable: %s", kind.value, exc)
                box_layout.addWidget(QLabel(f"Chart unavailable: {exc}"))
            else:
                self.charts[kind] = chart
                box_layout.addWidget(chart)
            grid.addWidget(box, r, c)
        return grid

    # ------------------------------------------------------------- lifecycle
    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.controller.start(streaming=self._initial_streaming)
        self._on_streaming_changed(self.controller.is_streaming)
        self.sampler.start()
        self.frame_clock.start()

    def latest_snapshot(self) -> PerformanceSnapshot:
        return self.sampler.snapshot()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.frame_clock.stop()
        self.sampler.stop()
        self.controller.shutdown()
        for chart in self.charts.values():
            chart.close_backend()
        super().closeEvent(event)

    # ----------------------------------------------------------------- slots
    @Slot(object)
    def _on_summary_updated(self, series: list) -> None:
        for chart in self.charts.values():
            chart.set_series(series)

    @Slot(str)
    def _on_processing_error(self, message: str) -> None:
        self.statusBar().showMessage(f"Data processing error: {message}", 5000)

    @Slot(bool)
    def _on_streaming_changed(self, streaming: bool) -> None:
        self.stream_button.setText("Pause" if streaming else "Resume")

    @Slot()
    def _on_frame(self) -> None:
        render_ms = sum(chart.render_frame() for chart in self.charts.values())
        self.sampler.set_worker_processing_time(self.controller.client.last_processing_ms)
        snap = self.sampler.on_frame(render_ms)
        if snap is None:
            return
        self.hud_label.setText(format_snapshot(snap))
        self.perf_updated.emit(snap)

    @Slot(int)
    def _on_window_changed(self, index: int) -> None:
        minutes = self.window_combo.itemData(index)
        if minutes is None:
            return
        self.controller.set_time_range(TimeRange.last_minutes(float(minutes), end_ms=now_ms()))

    @Slot(int)
    def _on_period_changed(self, index: int) -> None:
        period = self.period_combo.itemData(index)
        if period is not None:
            self.controller.set_filter_options(period=AggregationPeriod(period))

    @Slot(bool)
    def _on_categories_changed(self, _checked: bool) -> None:
        selected = [name for name, box in self.category_boxes.items() if box.isChecked()]
        self.controller.set_filter_options(categories=selected)

    @Slot(float)
    def _on_value_range_changed(self, _value: float) -> None:
        lo = self.value_min_spin.value()
        hi = self.value_max_spin.value()
        self.controller.set_filter_options(value_range=ValueRange(min(lo, hi), max(lo, hi)))
