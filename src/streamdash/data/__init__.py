"""Ingestion-side data: the synthetic generator and the bounded stream buffer.

These containers stay decoupled from Qt so they can be reused in the GUI,
the aggregation worker tests, and offline scripts.
"""

from __future__ import annotations

from .bootstrap import DEFAULT_BOOTSTRAP_COUNT, initial_dataset_payload
from .generator import (
    GeneratorState,
    PointGenerator,
    generate_initial_dataset,
    initial_state,
    next_point,
    reset_state,
    update_noise_level,
)
from .stream_buffer import DEFAULT_CAPACITY, BufferConfig, StreamBuffer

__all__ = [
    "BufferConfig",
    "DEFAULT_BOOTSTRAP_COUNT",
    "DEFAULT_CAPACITY",
    "GeneratorState",
    "PointGenerator",
    "StreamBuffer",
    "generate_initial_dataset",
    "initial_dataset_payload",
    "initial_state",
    "next_point",
    "reset_state",
    "update_noise_level",
]
