"""Pan/zoom interaction state machine for a single chart surface.

The controller never stores bounds: callers pass the current
:class:`~streamdash.core.models.ViewBounds` with every event and receive the
recomputed bounds through ``on_change``. Only gesture state (anchor, offset,
cumulative scale) lives here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .models import ViewBounds

logger = logging.getLogger(__name__)

ZOOM_OUT_FACTOR = 1.1
ZOOM_IN_FACTOR = 0.9


class InteractionState(Enum):
    IDLE = "idle"
    PANNING = "panning"


@dataclass
class GestureState:
    start_x: float = 0.0
    start_y: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0


class ViewportController:
    """Translate pointer and wheel input into new data-space bounds."""

    def __init__(self, on_change: Callable[[ViewBounds], None]) -> None:
        self._on_change = on_change
        self._state = InteractionState.IDLE
        self._gesture = GestureState()

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def scale(self) -> float:
        """Cumulative zoom factor applied through wheel events."""
        return self._gesture.scale

    # ----------------------------------------------------------------- panning
    def pointer_down(self, x: float, y: float) -> None:
        g = self._gesture
        g.start_x = x - g.offset_x
        g.start_y = y - g.offset_y
        self._state = InteractionState.PANNING

    def pointer_move(self, x: float, y: float, bounds: ViewBounds, width: float, height: float) -> None:
        if self._state is not InteractionState.PANNING:
            return
        if not _usable(bounds, width, height):
            return

        g = self._gesture
        new_offset_x = x - g.start_x
        new_offset_y = y - g.start_y
        delta_x = new_offset_x - g.offset_x
        delta_y = new_offset_y - g.offset_y

        pixels_per_unit_x = width / bounds.span_x
        pixels_per_unit_y = height / bounds.span_y
        shift_x = delta_x / pixels_per_unit_x
        shift_y = delta_y / pixels_per_unit_y

        g.offset_x = new_offset_x
        g.offset_y = new_offset_y
        self._on_change(
            ViewBounds(
                min_x=bounds.min_x - shift_x,
                max_x=bounds.max_x - shift_x,
                min_y=bounds.min_y + shift_y,
                max_y=bounds.max_y + shift_y,
            )
        )

    def pointer_up(self) -> None:
        self._state = InteractionState.IDLE

    # ------------------------------------------------------------------ zoom
    def wheel(
        self,
        x: float,
        y: float,
        delta_y: float,
        bounds: ViewBounds,
        width: float,
        height: float,
    ) -> None:
        """
        Zoom around the data point under the cursor.

        ``delta_y > 0`` zooms out (x1.1), anything else zooms in (x0.9). The
        point under ``(x, y)`` keeps its screen position. No zoom limits are
        enforced here.
        """
        if not _usable(bounds, width, height):
            return

        factor = ZOOM_OUT_FACTOR if delta_y > 0 else ZOOM_IN_FACTOR
        x_pct = x / width
        y_pct = y / height
        data_x, data_y = bounds.to_data(x, y, width, height)

        range_x = bounds.span_x * factor
        range_y = bounds.span_y * factor
        self._gesture.scale *= factor
        self._on_change(
            ViewBounds(
                min_x=data_x - range_x * x_pct,
                max_x=data_x + range_x * (1.0 - x_pct),
                min_y=data_y - range_y * (1.0 - y_pct),
                max_y=data_y + range_y * y_pct,
            )
        )

    def reset(self) -> None:
        self._state = InteractionState.IDLE
        self._gesture = GestureState()


def _usable(bounds: ViewBounds, width: float, height: float) -> bool:
    if width <= 0 or height <= 0:
        return False
    if bounds.span_x == 0 or bounds.span_y == 0:
        logger.debug("Ignoring viewport event on degenerate bounds %r", bounds)
        return False
    return True
