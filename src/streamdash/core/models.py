"""Shared dataclasses for observations, filters, view bounds and perf snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence


class Category(str, Enum):
    SENSOR = "sensor"
    METRIC = "metric"
    LOG = "log"


ALL_CATEGORIES: tuple[Category, ...] = (Category.SENSOR, Category.METRIC, Category.LOG)


class AggregationPeriod(str, Enum):
    """Fixed bin widths supported by the aggregation engine."""

    ONE_MINUTE = "1min"
    FIVE_MINUTES = "5min"
    ONE_HOUR = "1hour"

    @property
    def ms(self) -> int:
        return _PERIOD_MS[self]


_PERIOD_MS = {
    AggregationPeriod.ONE_MINUTE: 60 * 1000,
    AggregationPeriod.FIVE_MINUTES: 5 * 60 * 1000,
    AggregationPeriod.ONE_HOUR: 60 * 60 * 1000,
}


@dataclass(frozen=True, slots=True)
class ObservationMetadata:
    unit: str = "units"
    source: str = "simulator"
    quality: float = 1.0


@dataclass(frozen=True, slots=True)
class Observation:
    """
    One timestamped value in the stream.

    Summary points produced by the aggregation engine share this type; they
    carry ``id="agg-<bin>"`` and ``metadata.source == "aggregated"``.
    """

    id: str
    timestamp: int
    value: float
    category: Category
    metadata: Optional[ObservationMetadata] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-shaped mapping used on the wire."""
        payload: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "value": self.value,
            "category": self.category.value,
        }
        if self.metadata is not None:
            payload["metadata"] = {
                "unit": self.metadata.unit,
                "source": self.metadata.source,
                "quality": self.metadata.quality,
            }
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Observation:
        meta_raw = data.get("metadata")
        metadata = None
        if isinstance(meta_raw, Mapping):
            metadata = ObservationMetadata(
                unit=str(meta_raw.get("unit", "units")),
                source=str(meta_raw.get("source", "simulator")),
                quality=float(meta_raw.get("quality", 1.0)),
            )
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            value=float(data["value"]),
            category=Category(data["category"]),
            metadata=metadata,
        )


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end

    @property
    def duration_ms(self) -> int:
        return self.end - self.start

    @classmethod
    def last_minutes(cls, minutes: float, *, end_ms: int) -> TimeRange:
        return cls(start=int(end_ms - minutes * 60 * 1000), end=int(end_ms))


@dataclass(frozen=True, slots=True)
class ValueRange:
    min: float = 0.0
    max: float = 100.0

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """Caller-supplied filter and bucketing options for one aggregation pass."""

    period: AggregationPeriod
    time_range: TimeRange
    value_range: ValueRange = field(default_factory=ValueRange)
    categories: frozenset[Category] = frozenset(ALL_CATEGORIES)

    @classmethod
    def pass_through(
        cls,
        period: AggregationPeriod = AggregationPeriod.ONE_MINUTE,
    ) -> FilterConfig:
        """Full time/value range and every category."""
        return cls(
            period=period,
            time_range=TimeRange(start=-(2**62), end=2**62),
            value_range=ValueRange(0.0, 100.0),
            categories=frozenset(ALL_CATEGORIES),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.value,
            "timeRange": {"start": self.time_range.start, "end": self.time_range.end},
            "valueRange": {"min": self.value_range.min, "max": self.value_range.max},
            "categories": sorted(c.value for c in self.categories),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FilterConfig:
        time_raw = data["timeRange"]
        value_raw = data["valueRange"]
        return cls(
            period=AggregationPeriod(data["period"]),
            time_range=TimeRange(start=int(time_raw["start"]), end=int(time_raw["end"])),
            value_range=ValueRange(min=float(value_raw["min"]), max=float(value_raw["max"])),
            categories=frozenset(Category(c) for c in data["categories"]),
        )


@dataclass(frozen=True, slots=True)
class ViewBounds:
    """Data-space rectangle (time on x, value on y) mapped onto a surface."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def span_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def span_y(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def from_series(cls, series: Sequence[Observation]) -> Optional[ViewBounds]:
        """Seed bounds from the observed time/value range of ``series``."""
        if not series:
            return None
        values = [p.value for p in series]
        return cls(
            min_x=float(series[0].timestamp),
            max_x=float(series[-1].timestamp),
            min_y=min(values),
            max_y=max(values),
        )

    def to_screen(self, x: float, y: float, width: float, height: float) -> tuple[float, float]:
        """Map a data point to surface pixels (y grows downward)."""
        sx = (x - self.min_x) / self.span_x * width
        sy = (self.max_y - y) / self.span_y * height
        return sx, sy

    def to_data(self, sx: float, sy: float, width: float, height: float) -> tuple[float, float]:
        """Inverse of :meth:`to_screen`."""
        x = self.min_x + self.span_x * (sx / width)
        y = self.max_y - self.span_y * (sy / height)
        return x, y


@dataclass(frozen=True, slots=True)
class PerformanceSnapshot:
    current_fps: float = 60.0
    average_fps: float = 60.0
    frame_render_time_ms: float = 0.0
    memory_usage_bytes: int = 0
    data_point_count: int = 0
    last_update_ms: int = 0
    worker_processing_time_ms: Optional[float] = None
    using_offscreen: Optional[bool] = None
    gc_pause_count: Optional[int] = None

    def as_dict(self) -> dict[str, Any]:
        """Flat mapping for structured logging / CSV rows."""
        return {
            "current_fps": self.current_fps,
            "average_fps": self.average_fps,
            "frame_render_time_ms": self.frame_render_time_ms,
            "memory_usage_bytes": self.memory_usage_bytes,
            "data_point_count": self.data_point_count,
            "worker_processing_time_ms": self.worker_processing_time_ms,
            "using_offscreen": self.using_offscreen,
            "gc_pause_count": self.gc_pause_count,
        }


def observations_to_dicts(points: Iterable[Observation]) -> list[dict[str, Any]]:
    return [p.to_dict() for p in points]


def observations_from_dicts(rows: Iterable[Mapping[str, Any]]) -> list[Observation]:
    return [Observation.from_dict(row) for row in rows]
