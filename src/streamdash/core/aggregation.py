"""Filter observations and reduce them into fixed-width time bins.

:func:`aggregate` is a pure function of its inputs; the worker in
:mod:`streamdash.core.aggregation_worker` runs it off the GUI thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .models import (
    AggregationPeriod,
    Category,
    FilterConfig,
    Observation,
    ObservationMetadata,
)

__all__ = ["Bin", "aggregate", "filter_observations", "bin_key", "period_ms"]


def period_ms(period: AggregationPeriod | str) -> int:
    return AggregationPeriod(period).ms


def bin_key(timestamp: int, width_ms: int) -> int:
    return (timestamp // width_ms) * width_ms


@dataclass
class Bin:
    """Accumulator for every observation mapped to one time bucket."""

    timestamp: int
    total: float = 0.0
    count: int = 0
    quality_total: float = 0.0
    unit: str = "units"
    # dict preserves insertion order, which doubles as first-seen order
    category_counts: dict[Category, int] = field(default_factory=dict)

    def add(self, point: Observation) -> None:
        if self.count == 0:
            self.unit = point.metadata.unit if point.metadata else "units"
        self.total += point.value
        self.count += 1
        self.quality_total += point.metadata.quality if point.metadata else 1.0
        self.category_counts[point.category] = self.category_counts.get(point.category, 0) + 1

    def dominant_category(self) -> Category:
        best: Category | None = None
        best_count = 0
        for category, count in self.category_counts.items():
            # strict '>' keeps the first-seen category on ties
            if count > best_count:
                best = category
                best_count = count
        assert best is not None
        return best

    def to_summary(self) -> Observation:
        return Observation(
            id=f"agg-{self.timestamp}",
            timestamp=self.timestamp,
            value=round(self.total / self.count, 2),
            category=self.dominant_category(),
            metadata=ObservationMetadata(
                unit=self.unit,
                source="aggregated",
                quality=self.quality_total / self.count,
            ),
        )


def filter_observations(observations: Iterable[Observation], config: FilterConfig) -> List[Observation]:
    """Keep points inside the time range, the value range and the category set."""
    return [
        p
        for p in observations
        if config.time_range.contains(p.timestamp)
        and config.value_range.contains(p.value)
        and p.category in config.categories
    ]


def aggregate(observations: Iterable[Observation], config: FilterConfig) -> List[Observation]:
    """
    Return one summary point per non-empty bin, ascending by bin timestamp.

    An empty (or fully filtered-out) input yields an empty list.
    """
    filtered = filter_observations(observations, config)
    if not filtered:
        return []

    width = config.period.ms
    bins: dict[int, Bin] = {}
    for point in filtered:
        key = bin_key(point.timestamp, width)
        bucket = bins.get(key)
        if bucket is None:
            bucket = bins[key] = Bin(timestamp=key)
        bucket.add(point)

    return [bins[key].to_summary() for key in sorted(bins)]
