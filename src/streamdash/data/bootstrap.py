"""Read-only initial dataset handed to clients before live ticking starts."""

from __future__ import annotations

from typing import Any, Optional

from ..core.models import observations_to_dicts
from .generator import PointGenerator

DEFAULT_BOOTSTRAP_COUNT = 2000


def initial_dataset_payload(
    count: int = DEFAULT_BOOTSTRAP_COUNT,
    *,
    generator: Optional[PointGenerator] = None,
    end_ms: Optional[int] = None,
) -> dict[str, Any]:
    """Return ``{"data": [...]}`` with ``count`` back-dated observations."""
    gen = generator or PointGenerator()
    points = gen.generate_initial_dataset(count, end_ms=end_ms)
    return {"data": observations_to_dicts(points)}
