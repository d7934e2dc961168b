"""Configuration loading: defaults < compcat.yaml < COMPCAT_* env < runtime overrides."""

from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import Any, ClassVar

import yaml  # type: ignore[import-untyped]

from compcat.config.models import CompcatConfig
from compcat.db.engine import DATABASE_URL_ENV

CONFIG_PATH_ENV = "COMPCAT_CONFIG"
DEFAULT_CONFIG_FILENAME = "compcat.yaml"
ENV_PREFIX = "COMPCAT_"


class ConfigLoadError(ValueError):
    """Raised when configuration YAML cannot be parsed."""


def resolve_config_path(cli_path: str | None = None) -> Path:
    """Resolve config path by priority: env -> cli -> cwd default."""
    env_path = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if env_path:
        return Path(env_path)
    if cli_path and cli_path.strip():
        return Path(cli_path.strip())
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_yaml(path: str | Path | None = None) -> dict[str, Any]:
    """Load a YAML mapping. Missing or empty file yields an empty dict."""
    target = Path(path) if path is not None else resolve_config_path()
    if not target.exists():
        return {}
    text = target.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f"{target}:{mark.line + 1}:{mark.column + 1}" if mark is not None else str(target)
        raise ConfigLoadError(f"Invalid YAML at {where}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config root must be mapping: {target}")
    return data


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in updates.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _collect_env_overrides(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Turn COMPCAT_SECTION__KEY=value into {"section": {"key": value}}.

    Only double-underscore paths are sections; COMPCAT_DATABASE_URL and
    COMPCAT_CONFIG are read directly by their consumers.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in os.environ.items():
        if not key.startswith(prefix) or "__" not in key:
            continue
        path = [p.strip().lower() for p in key[len(prefix) :].split("__") if p.strip()]
        if len(path) < 2:
            continue
        cursor = overrides
        for part in path[:-1]:
            existing = cursor.get(part)
            if not isinstance(existing, dict):
                existing = {}
                cursor[part] = existing
            cursor = existing
        # Left as text; the pydantic models coerce per field.
        cursor[path[-1]] = raw_value.strip()
    return overrides


class ConfigManager:
    """Thread-safe singleton for typed configuration access."""

    _instance: ClassVar[ConfigManager | None] = None
    _class_lock: ClassVar[Lock] = Lock()

    def __init__(self) -> None:
        self._lock = Lock()
        self._config = CompcatConfig()
        self._config_path: str | None = None

    @classmethod
    def instance(cls) -> ConfigManager:
        """Get singleton instance."""
        if cls._instance is not None:
            return cls._instance
        with cls._class_lock:
            if cls._instance is None:
                cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset_for_tests(cls) -> None:
        """Reset singleton state for isolated unit tests."""
        with cls._class_lock:
            cls._instance = None

    @classmethod
    def load(
        cls,
        config_path: str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> ConfigManager:
        """Load configuration from defaults + YAML + env + runtime overrides."""
        manager = cls.instance()
        merged = load_yaml(resolve_config_path(config_path))
        merged = _deep_merge(merged, _collect_env_overrides())
        merged = _deep_merge(merged, overrides or {})
        new_config = CompcatConfig.model_validate(merged)
        with manager._lock:
            manager._config = new_config
            manager._config_path = config_path
        return manager

    def get(self) -> CompcatConfig:
        """Return current config snapshot."""
        with self._lock:
            return self._config


def resolve_database_url(cli_value: str | None = None, config: CompcatConfig | None = None) -> str | None:
    """Pick the database URL: CLI value, then COMPCAT_DATABASE_URL, then config."""
    if cli_value and cli_value.strip():
        return cli_value.strip()
    env_value = os.environ.get(DATABASE_URL_ENV, "")
    if env_value.strip():
        return env_value.strip()
    if config is not None and config.database.url.strip():
        return config.database.url.strip()
    return None
