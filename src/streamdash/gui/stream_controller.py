"""Timer-driven ingestion: generator -> buffer -> aggregation worker."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, QTimer, Qt, Signal, Slot

from ..config.runtime import DashboardConfig
from ..core.aggregation_worker import AggregationClient
from ..core.models import AggregationPeriod, Category, FilterConfig, Observation, TimeRange, ValueRange
from ..data.generator import PointGenerator, now_ms
from ..data.stream_buffer import StreamBuffer

logger = logging.getLogger(__name__)


class StreamController(QObject):
    """
    Owns the point generator, the stream buffer and the aggregation client.

    Every tick appends one generated point and posts a fresh aggregation
    request built from the buffer snapshot and the current filter. While
    streaming, the filter's time range slides so that it always ends "now".
    The summary series arrives asynchronously through :attr:`summary_updated`.
    """

    summary_updated = Signal(object)  # list[Observation]
    processing_error = Signal(str)
    streaming_changed = Signal(bool)
    data_count_changed = Signal(int)

    def __init__(
        self,
        config: DashboardConfig | None = None,
        *,
        generator: PointGenerator | None = None,
        client: AggregationClient | None = None,
        clock: Callable[[], int] = now_ms,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = config or DashboardConfig()
        self._clock = clock
        self._generator = generator or PointGenerator()
        self._buffer = StreamBuffer(self._config.buffer_config())
        self._client = client or AggregationClient(self)
        self._filter = self._config.filter_config(now_ms=clock())
        self._streaming = False
        self._started = False

        self._client.result_ready.connect(self.summary_updated)
        self._client.processing_error.connect(self.processing_error)

        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.setInterval(self._config.tick_interval_ms)
        self._timer.timeout.connect(self.tick)

    # ----------------------------------------------------------------- state
    @property
    def buffer(self) -> StreamBuffer:
        return self._buffer

    @property
    def client(self) -> AggregationClient:
        return self._client

    @property
    def filter_config(self) -> FilterConfig:
        return self._filter

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def data_point_count(self) -> int:
        return len(self._buffer)

    @property
    def latest_summary(self) -> list[Observation]:
        return self._client.latest

    # ------------------------------------------------------------- lifecycle
    def start(self, *, streaming: bool = True) -> None:
        """Seed the buffer with back-dated history, then begin ticking."""
        if self._started:
            return
        self._started = True
        seed = self._generator.generate_initial_dataset(self._config.initial_seed_count, end_ms=self._clock())
        self._buffer.extend(seed)
        logger.info("Seeded stream buffer with %d points", len(seed))
        self.data_count_changed.emit(len(self._buffer))
        self._dispatch()
        self.set_streaming(streaming)

    def shutdown(self) -> None:
        self._timer.stop()
        self._client.shutdown()

    @Slot()
    def tick(self) -> None:
        latest = self._buffer.latest()
        now = self._clock()
        point = self._generator.next(latest.value if latest is not None else None, timestamp_ms=now)
        self._buffer.append(point)
        if self._streaming:
            self._slide_time_range(now)
        self.data_count_changed.emit(len(self._buffer))
        self._dispatch()

    # -------------------------------------------------------------- controls
    @Slot(bool)
    def set_streaming(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled:
            self._timer.start()
        else:
            self._timer.stop()
        if enabled == self._streaming:
            return
        self._streaming = enabled
        logger.info("Streaming %s", "resumed" if enabled else "paused")
        self.streaming_changed.emit(enabled)

    @Slot()
    def toggle_streaming(self) -> None:
        self.set_streaming(not self._streaming)

    @Slot()
    def clear_data(self) -> None:
        """Drop everything and re-seed a short back-dated history."""
        seed = self._generator.generate_initial_dataset(self._config.clear_seed_count, end_ms=self._clock())
        self._buffer.clear(seed)
        self.data_count_changed.emit(len(self._buffer))
        self._dispatch()

    def set_time_range(self, time_range: TimeRange) -> None:
        self._update_filter(time_range=time_range)

    def set_filter_options(
        self,
        *,
        categories: Optional[Iterable[Category]] = None,
        value_range: Optional[ValueRange] = None,
        period: Optional[AggregationPeriod] = None,
    ) -> None:
        """Replace any of the given filter options and re-aggregate right away."""
        self._update_filter(
            categories=None if categories is None else frozenset(Category(c) for c in categories),
            value_range=value_range,
            period=None if period is None else AggregationPeriod(period),
        )

    # --------------------------------------------------------------- helpers
    def _update_filter(
        self,
        *,
        time_range: Optional[TimeRange] = None,
        categories: Optional[frozenset[Category]] = None,
        value_range: Optional[ValueRange] = None,
        period: Optional[AggregationPeriod] = None,
    ) -> None:
        changes = {
            "period": period,
            "time_range": time_range,
            "value_range": value_range,
            "categories": categories,
        }
        self._filter = replace(self._filter, **{k: v for k, v in changes.items() if v is not None})
        self._dispatch()

    def _slide_time_range(self, end_ms: int) -> None:
        duration = self._filter.time_range.duration_ms
        self._filter = replace(self._filter, time_range=TimeRange(start=end_ms - duration, end=end_ms))

    def _dispatch(self) -> None:
        self._client.submit(self._buffer.snapshot(), self._filter)
