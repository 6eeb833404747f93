from __future__ import annotations

from pathlib import Path

import pytest

from streamdash.config.runtime import (
    CONFIG_ENV_VAR,
    DashboardConfig,
    config_from_mapping,
    config_path_from_env,
    load_config,
)
from streamdash.core.models import ALL_CATEGORIES, AggregationPeriod, Category


def test_defaults() -> None:
    cfg = DashboardConfig()
    assert cfg.buffer_capacity == 10_000
    assert cfg.tick_interval_ms == 100
    assert cfg.aggregation_period == "1min"
    assert set(cfg.categories) == {c.value for c in ALL_CATEGORIES}
    assert cfg.buffer_config().capacity == 10_000


def test_dashboard_block_is_flattened() -> None:
    cfg = config_from_mapping(
        {"dashboard": {"buffer_capacity": 500, "aggregation_period": "5min"}, "frame_interval_ms": 20}
    )
    assert cfg.buffer_capacity == 500
    assert cfg.aggregation_period == "5min"
    assert cfg.frame_interval_ms == 20


def test_unknown_keys_are_ignored() -> None:
    assert config_from_mapping({"no_such_option": 1}) == DashboardConfig().sanitized()
    assert config_from_mapping(None) == DashboardConfig()


def test_values_are_clamped_and_ordered() -> None:
    cfg = config_from_mapping({"buffer_capacity": -5, "value_min": 90, "value_max": 10})
    assert cfg.buffer_capacity == 1
    assert (cfg.value_min, cfg.value_max) == (10.0, 90.0)


def test_invalid_enums_raise() -> None:
    with pytest.raises(ValueError):
        config_from_mapping({"aggregation_period": "2min"})
    with pytest.raises(ValueError):
        config_from_mapping({"categories": ["weather"]})


def test_filter_config_ends_at_now() -> None:
    cfg = config_from_mapping({"time_window_minutes": 15, "categories": ["sensor", "metric"]})

    flt = cfg.filter_config(now_ms=10_000_000)

    assert flt.period is AggregationPeriod.ONE_MINUTE
    assert flt.time_range.end == 10_000_000
    assert flt.time_range.duration_ms == 15 * 60_000
    assert flt.categories == frozenset({Category.SENSOR, Category.METRIC})


def test_load_config_missing_file(tmp_path: Path) -> None:
    assert load_config(tmp_path / "missing.yaml") == DashboardConfig()
    assert load_config(None) == DashboardConfig()


def test_load_config_yaml(tmp_path: Path) -> None:
    path = tmp_path / "streamdash.yaml"
    path.write_text("dashboard:\n  tick_interval_ms: 50\n  categories: [log]\n", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.tick_interval_ms == 50
    assert cfg.categories == ("log",)


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_config_path_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert config_path_from_env() is None
    monkeypatch.setenv(CONFIG_ENV_VAR, "/etc/streamdash.yaml")
    assert config_path_from_env() == Path("/etc/streamdash.yaml")
