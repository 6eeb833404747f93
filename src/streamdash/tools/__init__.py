"""Developer tooling: opt-in debug timers."""

from .debug import BlockTiming, debug_enabled, time_block

__all__ = ["BlockTiming", "debug_enabled", "time_block"]
