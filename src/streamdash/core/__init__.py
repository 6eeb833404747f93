"""Core streaming pipeline: data model, aggregation, viewport and sampling.

This package sits between the ingestion side (:mod:`streamdash.data`) and
the Qt layer by holding the pure aggregation engine, its worker-thread
client, the pan/zoom state machine and the performance sampler.
"""

from .aggregation import aggregate, filter_observations, period_ms
from .models import (
    ALL_CATEGORIES,
    AggregationPeriod,
    Category,
    FilterConfig,
    Observation,
    ObservationMetadata,
    PerformanceSnapshot,
    TimeRange,
    ValueRange,
    ViewBounds,
)
from .performance import GcPauseRegistry, PerformanceSampler
from .viewport import InteractionState, ViewportController

__all__ = [
    "ALL_CATEGORIES",
    "AggregationPeriod",
    "Category",
    "FilterConfig",
    "GcPauseRegistry",
    "InteractionState",
    "Observation",
    "ObservationMetadata",
    "PerformanceSampler",
    "PerformanceSnapshot",
    "TimeRange",
    "ValueRange",
    "ViewBounds",
    "ViewportController",
    "aggregate",
    "filter_observations",
    "period_ms",
]
