"""Synthetic mean-reverting random walk used to feed the live dashboard.

The generator is split into an immutable :class:`GeneratorState` and pure
transition helpers so the ingestion side can own (and reset) the state
explicitly. :class:`PointGenerator` is a thin convenience owner around both.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from ..core.models import ALL_CATEGORIES, Observation, ObservationMetadata

DEFAULT_BASE_VALUE = 50.0
DEFAULT_NOISE_LEVEL = 5.0
MEAN_REVERSION = 0.05
TREND_CHANGE_PROBABILITY = 0.02
VALUE_MIN = 0.0
VALUE_MAX = 100.0
NOISE_LEVEL_LIMITS = (0.1, 20.0)
_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True, slots=True)
class GeneratorState:
    base_value: float = DEFAULT_BASE_VALUE
    trend: float = 0.0
    noise_level: float = DEFAULT_NOISE_LEVEL


def now_ms() -> int:
    return int(time.time() * 1000)


def initial_state(rng: np.random.Generator) -> GeneratorState:
    """Fresh state with a small random drift."""
    return GeneratorState(trend=float(rng.uniform(-0.05, 0.05)))


def reset_state(rng: np.random.Generator) -> GeneratorState:
    return initial_state(rng)


def update_noise_level(state: GeneratorState, level: float) -> GeneratorState:
    low, high = NOISE_LEVEL_LIMITS
    return replace(state, noise_level=max(low, min(high, float(level))))


def _random_suffix(rng: np.random.Generator, length: int = 9) -> str:
    picks = rng.integers(0, len(_ID_ALPHABET), size=length)
    return "".join(_ID_ALPHABET[i] for i in picks)


def next_point(
    state: GeneratorState,
    previous: Optional[float] = None,
    *,
    rng: np.random.Generator,
    timestamp_ms: Optional[int] = None,
) -> tuple[GeneratorState, Observation]:
    """
    Produce one observation and the state to use for the following call.

    Parameters
    ----------
    state:
        Current generator state (never mutated).
    previous:
        Value of the preceding observation. When ``None`` the walk is seeded
        near ``state.base_value`` (+/- 5).
    rng:
        Source of randomness; callers own it.
    timestamp_ms:
        Epoch milliseconds for the point, defaults to the wall clock.
    """
    ts = now_ms() if timestamp_ms is None else int(timestamp_ms)
    next_state = state

    if previous is not None:
        noise = float(rng.uniform(-1.0, 1.0)) * state.noise_level
        reversion = (state.base_value - previous) * MEAN_REVERSION
        value = previous + state.trend + noise + reversion
        if rng.random() < TREND_CHANGE_PROBABILITY:
            next_state = replace(state, trend=float(rng.uniform(-0.1, 0.1)))
    else:
        value = state.base_value + float(rng.uniform(-5.0, 5.0))

    value = round(max(VALUE_MIN, min(VALUE_MAX, value)), 2)
    category = ALL_CATEGORIES[int(rng.integers(0, len(ALL_CATEGORIES)))]

    point = Observation(
        id=f"point-{ts}-{_random_suffix(rng)}",
        timestamp=ts,
        value=value,
        category=category,
        metadata=ObservationMetadata(
            unit="units",
            source="simulator",
            quality=0.95 + float(rng.random()) * 0.05,
        ),
    )
    return next_state, point


def generate_initial_dataset(
    state: GeneratorState,
    count: int = 1000,
    *,
    rng: np.random.Generator,
    end_ms: Optional[int] = None,
) -> tuple[GeneratorState, list[Observation]]:
    """
    Build ``count`` chronologically ordered points ending at ``end_ms``.

    Timestamps are back-dated at one-second spacing so there is a history to
    aggregate before live ticking starts.
    """
    end = now_ms() if end_ms is None else int(end_ms)
    points: list[Observation] = []
    last_value: Optional[float] = None
    for i in range(count - 1, -1, -1):
        state, point = next_point(state, last_value, rng=rng, timestamp_ms=end - i * 1000)
        points.append(point)
        last_value = point.value
    return state, points


class PointGenerator:
    """Owner of one :class:`GeneratorState` plus the RNG that drives it."""

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._state = initial_state(self._rng)

    @property
    def state(self) -> GeneratorState:
        return self._state

    def next(self, previous: Optional[float] = None, *, timestamp_ms: Optional[int] = None) -> Observation:
        self._state, point = next_point(
            self._state, previous, rng=self._rng, timestamp_ms=timestamp_ms
        )
        return point

    def generate_initial_dataset(self, count: int = 1000, *, end_ms: Optional[int] = None) -> list[Observation]:
        self._state, points = generate_initial_dataset(
            self._state, count, rng=self._rng, end_ms=end_ms
        )
        return points

    def update_noise_level(self, level: float) -> None:
        self._state = update_noise_level(self._state, level)

    def reset(self) -> None:
        self._state = reset_state(self._rng)
