"""Native-guard SQL rendering and dialect refusal."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, sqlite

from compcat.db import UnsupportedGuardError
from compcat.schema import (
    ColumnSpec,
    add_columns_if_missing,
    add_skip_limit_columns,
    drop_skip_limit_columns,
    render_add_columns_sql,
    render_drop_columns_sql,
    render_skip_limit_sql,
)
from compcat.schema.skip_limits import SKIP_LIMIT_COLUMNS


def test_postgres_statement_guards_table_and_every_column() -> None:
    sql = render_skip_limit_sql(postgresql.dialect())

    assert sql == (
        "ALTER TABLE IF EXISTS skipped_compactions\n"
        "    ADD COLUMN IF NOT EXISTS num_files BIGINT DEFAULT NULL,\n"
        "    ADD COLUMN IF NOT EXISTS limit_num_files BIGINT DEFAULT NULL,\n"
        "    ADD COLUMN IF NOT EXISTS estimated_bytes BIGINT DEFAULT NULL,\n"
        "    ADD COLUMN IF NOT EXISTS limit_bytes BIGINT DEFAULT NULL"
    )


def test_postgres_drop_statement_is_guarded() -> None:
    sql = render_drop_columns_sql(postgresql.dialect(), "skipped_compactions", SKIP_LIMIT_COLUMNS)

    assert sql.startswith("ALTER TABLE IF EXISTS skipped_compactions\n")
    assert sql.count("DROP COLUMN IF EXISTS") == 4


def test_identifiers_needing_quotes_are_quoted() -> None:
    spec = ColumnSpec("Mixed Case", sa.BigInteger, "BIGINT")

    rendered = render_add_columns_sql(postgresql.dialect(), "user", [spec])
    assert 'ALTER TABLE IF EXISTS "user"' in rendered
    assert 'ADD COLUMN IF NOT EXISTS "Mixed Case" BIGINT DEFAULT NULL' in rendered


@pytest.mark.parametrize("dialect", [sqlite.dialect(), mysql.dialect()])
def test_rendering_refuses_dialects_without_native_guards(dialect) -> None:
    with pytest.raises(UnsupportedGuardError) as exc_info:
        render_skip_limit_sql(dialect)
    assert exc_info.value.dialect == dialect.name


def test_unsupported_dialect_executes_nothing() -> None:
    connection = MagicMock()
    connection.dialect = mysql.dialect()

    with pytest.raises(UnsupportedGuardError, match="mysql"):
        add_skip_limit_columns(connection)
    with pytest.raises(UnsupportedGuardError):
        drop_skip_limit_columns(connection)
    connection.execute.assert_not_called()


def test_empty_column_list_is_rejected() -> None:
    connection = MagicMock()
    connection.dialect = postgresql.dialect()
    with pytest.raises(ValueError):
        add_columns_if_missing(connection, "skipped_compactions", [])


def test_postgres_path_issues_single_guarded_statement() -> None:
    connection = MagicMock()
    connection.dialect = postgresql.dialect()
    observed = {
        "partition_id": {"name": "partition_id", "type": sa.BIGINT()},
        "num_files": {"name": "num_files", "type": sa.BIGINT()},
    }
    with patch("compcat.schema.guarded.reflect_columns", return_value=observed):
        result = add_skip_limit_columns(connection)

    assert connection.execute.call_count == 1
    statement = str(connection.execute.call_args.args[0])
    assert statement == render_skip_limit_sql(postgresql.dialect())
    assert result.applied == ("limit_num_files", "estimated_bytes", "limit_bytes")
    assert result.unchanged == ("num_files",)


def test_postgres_path_runs_statement_even_when_table_missing() -> None:
    connection = MagicMock()
    connection.dialect = postgresql.dialect()
    with patch("compcat.schema.guarded.reflect_columns", return_value=None):
        result = add_skip_limit_columns(connection)

    assert connection.execute.call_count == 1
    assert result.table_present is False
