from __future__ import annotations

import gc

from streamdash.core.performance import GcPauseRegistry, PerformanceSampler


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _run_window(sampler: PerformanceSampler, clock: FakeClock, frames: int, end: float, **kwargs):
    start = clock.now
    step = (end - start) / frames
    result = None
    for k in range(1, frames):
        clock.now = start + k * step
        result = sampler.on_frame(**kwargs)
        assert result is None
    clock.now = end
    result = sampler.on_frame(**kwargs)
    return result


def make_sampler(**kwargs) -> tuple[PerformanceSampler, FakeClock]:
    clock = FakeClock()
    sampler = PerformanceSampler(clock=clock, memory_reader=lambda: 1234, **kwargs)
    sampler.start()
    return sampler, clock


def test_snapshot_published_once_per_second() -> None:
    sampler, clock = make_sampler()

    snap = _run_window(sampler, clock, 60, 1.0)

    assert snap is not None
    assert snap.current_fps == 60
    assert snap.average_fps == 60
    assert snap.memory_usage_bytes == 1234
    assert sampler.snapshot() is snap


def test_average_covers_history() -> None:
    sampler, clock = make_sampler()
    _run_window(sampler, clock, 60, 1.0)

    snap = _run_window(sampler, clock, 30, 2.0)

    assert snap.current_fps == 30
    assert snap.average_fps == 45
    assert sampler.fps_history == (60, 30)


def test_history_is_bounded() -> None:
    sampler, clock = make_sampler(history_size=2)
    for end, frames in ((1.0, 10), (2.0, 20), (3.0, 30)):
        _run_window(sampler, clock, frames, end)
    assert sampler.fps_history == (20, 30)


def test_render_time_and_host_figures() -> None:
    sampler, clock = make_sampler()
    sampler.set_data_point_count(2500)
    sampler.set_worker_processing_time(1.5)
    sampler.set_using_offscreen(True)

    snap = _run_window(sampler, clock, 10, 1.0, render_time_ms=3.5)

    assert snap.frame_render_time_ms == 3.5
    assert snap.data_point_count == 2500
    assert snap.worker_processing_time_ms == 1.5
    assert snap.using_offscreen is True
    assert snap.gc_pause_count is None


def test_frame_interval_used_without_render_time() -> None:
    sampler, clock = make_sampler()
    snap = _run_window(sampler, clock, 4, 1.0)
    assert snap.frame_render_time_ms == 250.0


def test_frames_ignored_while_stopped() -> None:
    clock = FakeClock()
    sampler = PerformanceSampler(clock=clock, memory_reader=lambda: 0)
    clock.now = 5.0
    assert sampler.on_frame() is None
    assert not sampler.running


def test_gc_registry_counts_collections() -> None:
    registry = GcPauseRegistry()
    if not registry.supported:
        return
    registry.start()
    try:
        gc.collect()
        assert registry.pause_count >= 1
        assert registry.average_pause_ms() >= 0.0
    finally:
        registry.stop()

    counted = registry.pause_count
    gc.collect()
    assert registry.pause_count == counted
    assert not registry.active

    registry.reset()
    assert registry.pause_count == 0


def test_sampler_owns_gc_registry_lifecycle() -> None:
    registry = GcPauseRegistry()
    sampler, clock = make_sampler(gc_registry=registry)

    assert registry.active == registry.supported
    gc.collect()
    snap = _run_window(sampler, clock, 2, 1.0)
    if registry.supported:
        assert snap.gc_pause_count >= 1

    sampler.stop()
    assert not registry.active
