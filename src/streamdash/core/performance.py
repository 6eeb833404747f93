"""Frame-cadence, memory and GC-pause sampling for the render loop."""

from __future__ import annotations

import gc
import logging
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..perf_system import get_process_memory_bytes
from .models import PerformanceSnapshot

logger = logging.getLogger(__name__)

FPS_WINDOW_MS = 1000.0
FPS_HISTORY_SIZE = 60
MAX_GC_DURATIONS = 300


class GcPauseRegistry:
    """
    Counts garbage-collection pauses through ``gc.callbacks``.

    One registry is created by the application and handed to whichever
    sampler is active; that sampler owns the ``start``/``stop`` lifecycle.
    Interpreters without ``gc.callbacks`` leave :attr:`supported` false and
    the pause metric is simply omitted.
    """

    def __init__(self, *, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._callbacks: Optional[list] = getattr(gc, "callbacks", None)
        self._active = False
        self._pause_started: Optional[float] = None
        self._pause_count = 0
        self._durations_ms: Deque[float] = deque(maxlen=MAX_GC_DURATIONS)

    @property
    def supported(self) -> bool:
        return self._callbacks is not None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pause_count(self) -> int:
        return self._pause_count

    def average_pause_ms(self) -> float:
        if not self._durations_ms:
            return 0.0
        return sum(self._durations_ms) / len(self._durations_ms)

    def start(self) -> None:
        if self._active:
            return
        if self._callbacks is None:
            logger.info("GC pause observation not available on this interpreter")
            return
        self._callbacks.append(self._on_gc)
        self._active = True

    def stop(self) -> None:
        if not self._active or self._callbacks is None:
            return
        try:
            self._callbacks.remove(self._on_gc)
        except ValueError:
            pass
        self._active = False
        self._pause_started = None

    def reset(self) -> None:
        self._pause_count = 0
        self._durations_ms.clear()

    def _on_gc(self, phase: str, info: dict) -> None:
        if phase == "start":
            self._pause_started = self._clock()
        elif phase == "stop":
            self._pause_count += 1
            if self._pause_started is not None:
                self._durations_ms.append((self._clock() - self._pause_started) * 1000.0)
                self._pause_started = None


class PerformanceSampler:
    """
    Per-frame observer that publishes a :class:`PerformanceSnapshot` once per
    one-second window.

    ``on_frame`` is meant to be called once per display refresh (see
    :class:`streamdash.gui.chart_widget.FrameClock`). The host feeds in the
    figures the sampler cannot see itself: data point count, worker
    processing time and the active render mode.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.perf_counter,
        gc_registry: Optional[GcPauseRegistry] = None,
        memory_reader: Callable[[], int] = get_process_memory_bytes,
        history_size: int = FPS_HISTORY_SIZE,
        window_ms: float = FPS_WINDOW_MS,
    ) -> None:
        self._clock = clock
        self._gc = gc_registry
        self._memory_reader = memory_reader
        self._window_ms = float(window_ms)
        self._fps_history: Deque[int] = deque(maxlen=max(1, int(history_size)))

        self._running = False
        self._frame_count = 0
        self._window_start = 0.0
        self._last_frame = 0.0
        self._snapshot = PerformanceSnapshot()

        self._data_point_count = 0
        self._worker_ms: Optional[float] = None
        self._using_offscreen: Optional[bool] = None

    # -------------------------------------------------------------- lifecycle
    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        now = self._clock()
        self._window_start = now
        self._last_frame = now
        self._frame_count = 0
        self._running = True
        if self._gc is not None:
            self._gc.start()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._gc is not None:
            self._gc.stop()

    def reset(self) -> None:
        self._fps_history.clear()
        self._frame_count = 0
        self._window_start = self._last_frame = self._clock()
        self._snapshot = PerformanceSnapshot()

    # ----------------------------------------------------------------- inputs
    def set_data_point_count(self, count: int) -> None:
        self._data_point_count = int(count)

    def set_worker_processing_time(self, elapsed_ms: Optional[float]) -> None:
        self._worker_ms = None if elapsed_ms is None else float(elapsed_ms)

    def set_using_offscreen(self, using: Optional[bool]) -> None:
        self._using_offscreen = using

    def on_frame(self, render_time_ms: Optional[float] = None) -> Optional[PerformanceSnapshot]:
        """
        Record one frame; returns a new snapshot when a window closes.

        ``render_time_ms`` is the time spent drawing this frame; when omitted
        the interval since the previous frame is reported instead.
        """
        if not self._running:
            return None
        now = self._clock()
        frame_ms = (now - self._last_frame) * 1000.0
        self._last_frame = now
        self._frame_count += 1

        elapsed_ms = (now - self._window_start) * 1000.0
        if elapsed_ms < self._window_ms:
            return None

        fps = round(self._frame_count * 1000.0 / elapsed_ms)
        self._fps_history.append(fps)
        average = round(sum(self._fps_history) / len(self._fps_history))

        gc_count: Optional[int] = None
        if self._gc is not None and self._gc.supported:
            gc_count = self._gc.pause_count

        self._snapshot = PerformanceSnapshot(
            current_fps=float(fps),
            average_fps=float(average),
            frame_render_time_ms=float(render_time_ms) if render_time_ms is not None else frame_ms,
            memory_usage_bytes=int(self._memory_reader()),
            data_point_count=self._data_point_count,
            last_update_ms=int(time.time() * 1000),
            worker_processing_time_ms=self._worker_ms,
            using_offscreen=self._using_offscreen,
            gc_pause_count=gc_count,
        )
        self._frame_count = 0
        self._window_start = now
        return self._snapshot

    # ---------------------------------------------------------------- outputs
    def snapshot(self) -> PerformanceSnapshot:
        return self._snapshot

    @property
    def fps_history(self) -> tuple[int, ...]:
        return tuple(self._fps_history)
