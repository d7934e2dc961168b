"""Unit tests for compcat skipped CLI (list, delete)."""

from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from typer.testing import CliRunner

from compcat.cli import app
from compcat.migrate import MigrationRunner

runner = CliRunner()


@pytest.fixture
def catalog(sqlite_url: str, sqlite_engine: sa.Engine, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.chdir(tmp_path)
    MigrationRunner(sqlite_url, alembic_ini=None).upgrade()
    with sqlite_engine.begin() as conn:
        conn.execute(
            sa.text(
                "INSERT INTO skipped_compactions (partition_id, reason, num_files, limit_num_files) "
                "VALUES (42, 'too many files', 1500, 1000), (7, 'over memory budget', NULL, NULL)"
            )
        )
    monkeypatch.setenv("COMPCAT_DATABASE_URL", sqlite_url)
    monkeypatch.setenv("COLUMNS", "200")
    return sqlite_url


def test_list_requires_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["skipped", "list"])
    assert result.exit_code == 2
    assert "COMPCAT_DATABASE_URL" in result.output


def test_list_shows_records(catalog: str) -> None:
    result = runner.invoke(app, ["skipped", "list"])

    assert result.exit_code == 0, result.output
    assert "Skipped Compactions" in result.output
    assert "1,500" in result.output
    assert result.output.index("over memory budget") < result.output.index("too many files")


def test_list_respects_limit(catalog: str) -> None:
    result = runner.invoke(app, ["skipped", "list", "-n", "1"])
    assert result.exit_code == 0, result.output
    assert "1,500" not in result.output


def test_list_rejects_negative_limit(catalog: str) -> None:
    result = runner.invoke(app, ["skipped", "list", "--limit", "-1"])
    assert result.exit_code == 2


def test_delete_removes_record(catalog: str) -> None:
    result = runner.invoke(app, ["skipped", "delete", "42"])
    assert result.exit_code == 0, result.output
    assert "Deleted skipped compaction for partition 42." in result.output

    missing = runner.invoke(app, ["skipped", "delete", "42"])
    assert missing.exit_code == 1
    assert "No skipped compaction for partition 42." in missing.output


def test_list_empty_catalog(catalog: str) -> None:
    runner.invoke(app, ["skipped", "delete", "42"])
    runner.invoke(app, ["skipped", "delete", "7"])

    result = runner.invoke(app, ["skipped", "list"])
    assert result.exit_code == 0
    assert "No skipped compactions." in result.output
