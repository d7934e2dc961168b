"""Shared test fixtures for compcat."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import sqlalchemy as sa

from compcat.config import ConfigManager


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer env vars and the config singleton out of tests."""
    for key in list(os.environ):
        if key.startswith("COMPCAT_"):
            monkeypatch.delenv(key, raising=False)
    ConfigManager._reset_for_tests()
    yield
    ConfigManager._reset_for_tests()


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "catalog.db"


@pytest.fixture
def sqlite_url(sqlite_path: Path) -> str:
    return f"sqlite:///{sqlite_path}"


@pytest.fixture
def sqlite_engine(sqlite_url: str) -> sa.Engine:
    engine = sa.create_engine(sqlite_url)
    yield engine
    engine.dispose()


@pytest.fixture
def legacy_table(sqlite_engine: sa.Engine) -> sa.Engine:
    """skipped_compactions as it looked before the skip-limit columns, with two rows."""
    with sqlite_engine.begin() as conn:
        conn.execute(
            sa.text(
                "CREATE TABLE skipped_compactions ("
                "id INTEGER PRIMARY KEY, partition_id BIGINT NOT NULL, reason TEXT NOT NULL)"
            )
        )
        conn.execute(
            sa.text("INSERT INTO skipped_compactions (partition_id, reason) VALUES (1, 'over memory budget'), (2, 'timeout')")
        )
    return sqlite_engine
