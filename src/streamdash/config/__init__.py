"""Configuration objects and helpers for StreamDash.

Settings live in an optional YAML file (``--config`` on the command line or
the ``STREAMDASH_CONFIG`` environment variable). The resulting
:class:`~streamdash.config.runtime.DashboardConfig` sizes the stream buffer,
sets the default filter and tunes every chart.
"""

from .runtime import CONFIG_ENV_VAR, DashboardConfig, config_from_mapping, config_path_from_env, load_config

__all__ = ["CONFIG_ENV_VAR", "DashboardConfig", "config_from_mapping", "config_path_from_env", "load_config"]
