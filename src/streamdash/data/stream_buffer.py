"""Bounded FIFO buffer holding the most recent observations."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, Optional

from ..core.models import Observation

DEFAULT_CAPACITY = 10_000


@dataclass
class BufferConfig:
    """Configuration for :class:`StreamBuffer`."""

    capacity: int = DEFAULT_CAPACITY

    def __post_init__(self) -> None:
        if int(self.capacity) <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = int(self.capacity)


class StreamBuffer:
    """
    Append-only sequence of observations with oldest-first eviction.

    Instances are owned and mutated from the Qt main thread (the ingestion
    side). Consumers only ever see :meth:`snapshot` copies, so the
    aggregation worker never observes a buffer that is being appended to.
    """

    def __init__(self, config: BufferConfig | None = None) -> None:
        self._config = config or BufferConfig()
        self._points: Deque[Observation] = deque()

    @property
    def capacity(self) -> int:
        return self._config.capacity

    # ------------------------------------------------------------------ ingest
    def append(self, point: Observation) -> None:
        self._points.append(point)
        self._truncate()

    def extend(self, points: Iterable[Observation]) -> None:
        for point in points:
            self._points.append(point)
        self._truncate()

    def clear(self, seed_points: Iterable[Observation] = ()) -> None:
        """Replace the contents with ``seed_points`` (typically a small fresh dataset)."""
        self._points.clear()
        self.extend(seed_points)

    # ------------------------------------------------------------------- query
    def snapshot(self) -> tuple[Observation, ...]:
        """Return an immutable copy of the current contents, oldest first."""
        return tuple(self._points)

    def latest(self) -> Optional[Observation]:
        if not self._points:
            return None
        return self._points[-1]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.snapshot())

    # ----------------------------------------------------------------- helpers
    def _truncate(self) -> None:
        capacity = self._config.capacity
        while len(self._points) > capacity:
            self._points.popleft()
