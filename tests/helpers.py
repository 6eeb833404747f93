"""Small builders shared by the test modules."""

from __future__ import annotations

from streamdash.core.models import Category, Observation, ObservationMetadata


def make_point(
    timestamp: int,
    value: float,
    category: Category = Category.SENSOR,
    *,
    quality: float = 1.0,
    unit: str = "units",
    point_id: str | None = None,
) -> Observation:
    return Observation(
        id=point_id or f"p-{timestamp}-{value}",
        timestamp=timestamp,
        value=value,
        category=category,
        metadata=ObservationMetadata(unit=unit, source="simulator", quality=quality),
    )


def make_series(values: list[float], *, start_ms: int = 0, step_ms: int = 60_000) -> list[Observation]:
    return [make_point(start_ms + i * step_ms, v) for i, v in enumerate(values)]
