"""Config module exports."""

from logbridge.config.loader import load_config, resolve_project_path
from logbridge.config.models import (
    CacheConfig,
    LogBridgeConfig,
    LoggingConfig,
    LogsConfig,
    OrgsConfig,
    ToolConfig,
)

__all__ = [
    "load_config",
    "resolve_project_path",
    "LogBridgeConfig",
    "CacheConfig",
    "LoggingConfig",
    "LogsConfig",
    "OrgsConfig",
    "ToolConfig",
]
