"""Timing blocks for the aggregation and render passes, logged when debugging."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

DEBUG_STREAMDASH = os.getenv("STREAMDASH_DEBUG", "").lower() in {"1", "true", "yes", "on"}

logger = logging.getLogger(__name__)


def debug_enabled() -> bool:
    """Return True when per-pass timings should be logged."""
    return DEBUG_STREAMDASH


@dataclass
class BlockTiming:
    label: str
    elapsed_ms: float = 0.0


@contextmanager
def time_block(label: str, *, emitter: Callable[[str], None] | None = None) -> Iterator[BlockTiming]:
    """
    Time the enclosed block.

    The yielded :class:`BlockTiming` is filled in on exit whether or not
    debugging is on, so callers can report the figure themselves. With
    ``STREAMDASH_DEBUG`` set the timing is also logged (or handed to
    ``emitter``).
    """
    timing = BlockTiming(label)
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing.elapsed_ms = (time.perf_counter() - start) * 1000.0
        if DEBUG_STREAMDASH:
            target = emitter or logger.debug
            target(f"[DEBUG] {label} took {timing.elapsed_ms:.3f} ms")
