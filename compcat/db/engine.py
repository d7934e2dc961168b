"""Async engine creation and lifecycle for compcat."""

import os
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from compcat.db.exceptions import ConfigurationError

DATABASE_URL_ENV = "COMPCAT_DATABASE_URL"

_engines: dict[str, AsyncEngine] = {}


def _normalize_url(url: str) -> str:
    """Ensure URL uses an async driver (asyncpg for PostgreSQL, aiosqlite for SQLite)."""
    u = url.strip()
    if u.startswith("postgresql://"):
        return "postgresql+asyncpg://" + u[len("postgresql://") :]
    if u.startswith("postgresql+psycopg2://"):
        return "postgresql+asyncpg://" + u[len("postgresql+psycopg2://") :]
    if u.startswith("postgresql+asyncpg://"):
        return u
    if u.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + u[len("sqlite://") :]
    if u.startswith("sqlite+aiosqlite://"):
        return u
    raise ConfigurationError(
        "Database URL must be PostgreSQL (postgresql://, postgresql+asyncpg://) or SQLite (sqlite://)."
    )


def _get_url(database_url: str | None) -> str:
    """Resolve database URL from argument or environment."""
    if database_url is not None and database_url != "":
        return _normalize_url(database_url)
    url = os.environ.get(DATABASE_URL_ENV)
    if not url or not url.strip():
        raise ConfigurationError(
            f"Database URL not set. Set {DATABASE_URL_ENV} or pass database_url."
        )
    return _normalize_url(url)


def create_engine(
    database_url: str | None = None,
    *,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_timeout: float = 30.0,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async database engine.

    Args:
        database_url: PostgreSQL or SQLite URL. If None, uses COMPCAT_DATABASE_URL.
        pool_size: Connection pool size.
        max_overflow: Extra connections beyond pool_size when busy.
        pool_timeout: Seconds to wait for a connection.
        pool_recycle: Seconds after which connections are recycled.
        pool_pre_ping: Ping connections before use.
        echo: Log SQL (for development).

    Returns:
        Configured AsyncEngine.

    Raises:
        ConfigurationError: URL missing or invalid.
    """
    url = _get_url(database_url)
    if url.startswith("sqlite+aiosqlite://"):
        # SQLite has a single writer; pool sizing does not apply
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        echo=echo,
    )


def get_engine(database_url: str | None = None, **options: Any) -> AsyncEngine:
    """Get or create a cached engine for the given URL.

    Same URL returns the same engine instance; ``options`` (see create_engine)
    apply only when the engine is first created.

    Raises:
        ConfigurationError: URL missing or invalid.
    """
    url = _get_url(database_url)
    if url not in _engines:
        _engines[url] = create_engine(url, **options)
    return _engines[url]


async def dispose_engine(database_url: str | None = None) -> None:
    """Dispose engine and close all connections.

    Args:
        database_url: Which engine to dispose; if None, disposes all.
    """
    if database_url is None:
        for key in list(_engines.keys()):
            await _engines[key].dispose()
            del _engines[key]
        return
    url = _get_url(database_url)
    if url in _engines:
        await _engines[url].dispose()
        del _engines[url]
