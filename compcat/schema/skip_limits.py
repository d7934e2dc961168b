"""Skip-limit columns on skipped_compactions.

Four nullable BIGINT columns record the size of a compaction candidate and
the limits it exceeded when the partition was skipped. Values are written by
whoever records the skip; this step only makes room for them.
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Dialect

from compcat.schema.columns import ColumnProblem, ColumnSpec
from compcat.schema.guarded import (
    GuardedAlterResult,
    add_columns_if_missing,
    drop_columns_if_present,
    render_add_columns_sql,
    verify_columns,
)

SKIPPED_COMPACTIONS_TABLE = "skipped_compactions"

SKIP_LIMIT_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("num_files", sa.BigInteger, "BIGINT"),
    ColumnSpec("limit_num_files", sa.BigInteger, "BIGINT"),
    ColumnSpec("estimated_bytes", sa.BigInteger, "BIGINT"),
    ColumnSpec("limit_bytes", sa.BigInteger, "BIGINT"),
)


def add_skip_limit_columns(connection: Connection) -> GuardedAlterResult:
    """Add the skip-limit columns to skipped_compactions if the table exists and lacks them."""
    return add_columns_if_missing(connection, SKIPPED_COMPACTIONS_TABLE, SKIP_LIMIT_COLUMNS)


def drop_skip_limit_columns(connection: Connection) -> GuardedAlterResult:
    return drop_columns_if_present(connection, SKIPPED_COMPACTIONS_TABLE, SKIP_LIMIT_COLUMNS)


def render_skip_limit_sql(dialect: Dialect) -> str:
    return render_add_columns_sql(dialect, SKIPPED_COMPACTIONS_TABLE, SKIP_LIMIT_COLUMNS)


def verify_skip_limit_columns(connection: Connection) -> list[ColumnProblem]:
    return verify_columns(connection, SKIPPED_COMPACTIONS_TABLE, SKIP_LIMIT_COLUMNS)
