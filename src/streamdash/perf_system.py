"""Helpers for querying local process performance metrics."""

from __future__ import annotations

import logging
import os
from typing import Final

import psutil

logger = logging.getLogger(__name__)

_PROCESS: Final[psutil.Process] = psutil.Process(os.getpid())


def get_process_memory_bytes() -> int:
    """
    Return the resident set size of the dashboard process.

    Reading memory is best-effort; a failure reports 0 so the HUD just omits
    the figure for that window.
    """
    try:
        return int(_PROCESS.memory_info().rss)
    except psutil.Error as exc:
        logger.debug("Failed to read process memory: %r", exc)
        return 0


def get_process_cpu_percent() -> float:
    """
    Return the current CPU usage of the GUI process.

    psutil's cpu_percent needs to be called periodically; the first call
    may return 0.0 which is acceptable for the lightweight HUD display.
    """
    try:
        return float(_PROCESS.cpu_percent(interval=None))
    except psutil.Error as exc:
        logger.debug("Failed to read process CPU percent: %r", exc)
        return 0.0
