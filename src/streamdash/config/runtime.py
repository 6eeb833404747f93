"""Runtime configuration for the dashboard: buffer, ticking, filters and charts."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..core.models import ALL_CATEGORIES, AggregationPeriod, Category, FilterConfig, TimeRange, ValueRange
from ..data.stream_buffer import BufferConfig

CONFIG_ENV_VAR = "STREAMDASH_CONFIG"


@dataclass(slots=True)
class DashboardConfig:
    """
    Tuning knobs for ingestion, aggregation and chart rendering.

    The defaults stream one point every 100 ms into a 10k buffer and show the
    last five minutes bucketed per minute.
    """

    buffer_capacity: int = 10_000
    tick_interval_ms: int = 100
    initial_seed_count: int = 1000
    bootstrap_count: int = 2000
    clear_seed_count: int = 100

    # Filter defaults
    time_window_minutes: float = 5.0
    aggregation_period: str = AggregationPeriod.ONE_MINUTE.value
    categories: tuple[str, ...] = field(default_factory=lambda: tuple(c.value for c in ALL_CATEGORIES))
    value_min: float = 0.0
    value_max: float = 100.0

    # Rendering
    use_offscreen: bool = True
    frame_interval_ms: int = 16
    fps_history_size: int = 60
    line_max_points: int = 80
    bar_max_bins: int = 200
    scatter_max_points: int = 2000
    heatmap_cols: int = 40
    heatmap_rows: int = 10
    chart_width: int = 400
    chart_height: int = 240
    device_pixel_ratio: float = 1.0

    def sanitized(self) -> DashboardConfig:
        """Return a copy with limits applied and enum-valued fields validated."""
        period = AggregationPeriod(str(self.aggregation_period)).value
        categories = tuple(Category(str(c)).value for c in self.categories)
        value_min = float(self.value_min)
        value_max = float(self.value_max)
        if value_max < value_min:
            value_min, value_max = value_max, value_min
        return DashboardConfig(
            buffer_capacity=max(1, int(self.buffer_capacity)),
            tick_interval_ms=max(1, int(self.tick_interval_ms)),
            initial_seed_count=max(0, int(self.initial_seed_count)),
            bootstrap_count=max(0, int(self.bootstrap_count)),
            clear_seed_count=max(0, int(self.clear_seed_count)),
            time_window_minutes=max(0.1, float(self.time_window_minutes)),
            aggregation_period=period,
            categories=categories,
            value_min=value_min,
            value_max=value_max,
            use_offscreen=bool(self.use_offscreen),
            frame_interval_ms=max(1, int(self.frame_interval_ms)),
            fps_history_size=max(1, int(self.fps_history_size)),
            line_max_points=max(2, int(self.line_max_points)),
            bar_max_bins=max(1, int(self.bar_max_bins)),
            scatter_max_points=max(1, int(self.scatter_max_points)),
            heatmap_cols=max(1, int(self.heatmap_cols)),
            heatmap_rows=max(1, int(self.heatmap_rows)),
            chart_width=max(1, int(self.chart_width)),
            chart_height=max(1, int(self.chart_height)),
            device_pixel_ratio=max(0.1, float(self.device_pixel_ratio)),
        )

    def buffer_config(self) -> BufferConfig:
        return BufferConfig(capacity=self.buffer_capacity)

    def filter_config(self, *, now_ms: int) -> FilterConfig:
        """Initial filter: the last ``time_window_minutes`` ending at ``now_ms``."""
        return FilterConfig(
            period=AggregationPeriod(self.aggregation_period),
            time_range=TimeRange.last_minutes(self.time_window_minutes, end_ms=now_ms),
            value_range=ValueRange(self.value_min, self.value_max),
            categories=frozenset(Category(c) for c in self.categories),
        )


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`DashboardConfig`."""
    return {f.name for f in fields(DashboardConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``dashboard`` block into the root mapping."""
    if "dashboard" in data and isinstance(data["dashboard"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "dashboard":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> DashboardConfig:
    """Build :class:`DashboardConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return DashboardConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    if "categories" in payload:
        payload["categories"] = tuple(payload["categories"] or ())
    return DashboardConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> DashboardConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`DashboardConfig`.
    """
    if path is None:
        return DashboardConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return DashboardConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def config_path_from_env() -> Path | None:
    value = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(value) if value else None


__all__ = ["CONFIG_ENV_VAR", "DashboardConfig", "config_from_mapping", "config_path_from_env", "load_config"]
