"""Unified configuration system for compcat."""

from compcat.config.manager import (
    ConfigLoadError,
    ConfigManager,
    load_yaml,
    resolve_config_path,
    resolve_database_url,
)
from compcat.config.models import CompcatConfig, DatabaseConfig, LoggingConfig, MigrationsConfig

__all__ = [
    "CompcatConfig",
    "ConfigLoadError",
    "ConfigManager",
    "DatabaseConfig",
    "LoggingConfig",
    "MigrationsConfig",
    "load_yaml",
    "resolve_config_path",
    "resolve_database_url",
]
