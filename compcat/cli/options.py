"""Shared option handling for compcat commands.

Commands are also called as plain functions (tests, library callers), in
which case unset parameters arrive as Typer OptionInfo defaults.
"""

from typing import NoReturn
from urllib.parse import urlsplit, urlunsplit

import typer
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from typer.models import OptionInfo

from compcat.config import ConfigManager, resolve_database_url
from compcat.db import DATABASE_URL_ENV, get_engine, translate_error


def normalize_str_option(value: object, default: str) -> str:
    if isinstance(value, OptionInfo):
        return default
    if not isinstance(value, str):
        return default
    return value


def normalize_optional_str_option(value: object) -> str | None:
    if isinstance(value, OptionInfo) or value is None:
        return None
    if not isinstance(value, str):
        return None
    return value


def normalize_int_option(value: object, default: int = 0) -> int:
    if isinstance(value, OptionInfo):
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip() or str(default))
        except ValueError:
            return default
    return default


def normalize_bool_option(value: object, default: bool) -> bool:
    if isinstance(value, OptionInfo):
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off", ""}:
            return False
    return default


def require_database_url(database_url: object) -> str:
    """Resolve the URL from option, env or config; exit 2 when none is set."""
    url = resolve_database_url(
        normalize_optional_str_option(database_url),
        ConfigManager.instance().get(),
    )
    if not url:
        typer.echo(f"Error: Set {DATABASE_URL_ENV} or pass --database-url.", err=True)
        raise typer.Exit(2)
    return url


def mask_url(url: str) -> str:
    """Hide password in URL."""
    if "://" not in url:
        return url
    split = urlsplit(url)
    if split.username is None:
        return url
    userinfo = split.username
    if split.password is not None:
        userinfo = f"{userinfo}:***"
    host = split.hostname or ""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    try:
        parsed_port = split.port
    except ValueError:
        return url
    port_suffix = f":{parsed_port}" if parsed_port is not None else ""
    netloc = f"{userinfo}@{host}{port_suffix}"
    return urlunsplit((split.scheme, netloc, split.path, split.query, split.fragment))


def fail_with_database_error(exc: Exception) -> NoReturn:
    """Print a one-line database error and exit 1."""
    translated = translate_error(exc) if isinstance(exc, DBAPIError) else None
    typer.echo(f"Error: {translated or exc}", err=True)
    raise typer.Exit(1) from exc


def catalog_engine(url: str) -> AsyncEngine:
    """Cached engine for ``url`` sized by the ``database`` config section."""
    settings = ConfigManager.instance().get().database
    return get_engine(
        url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_recycle=settings.pool_recycle,
        echo=settings.echo,
    )
