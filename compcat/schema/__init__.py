"""Guarded schema changes for the compaction catalog."""

from compcat.schema.columns import ColumnProblem, ColumnSpec
from compcat.schema.guarded import (
    GuardedAlterResult,
    add_columns_if_missing,
    drop_columns_if_present,
    reflect_columns,
    render_add_columns_sql,
    render_drop_columns_sql,
    verify_columns,
)
from compcat.schema.lock import DEFAULT_MIGRATION_LOCK_ID, acquire_migration_lock
from compcat.schema.skip_limits import (
    SKIP_LIMIT_COLUMNS,
    SKIPPED_COMPACTIONS_TABLE,
    add_skip_limit_columns,
    drop_skip_limit_columns,
    render_skip_limit_sql,
    verify_skip_limit_columns,
)

__all__ = [
    "ColumnProblem",
    "ColumnSpec",
    "DEFAULT_MIGRATION_LOCK_ID",
    "GuardedAlterResult",
    "SKIP_LIMIT_COLUMNS",
    "SKIPPED_COMPACTIONS_TABLE",
    "acquire_migration_lock",
    "add_columns_if_missing",
    "add_skip_limit_columns",
    "drop_columns_if_present",
    "drop_skip_limit_columns",
    "reflect_columns",
    "render_add_columns_sql",
    "render_drop_columns_sql",
    "render_skip_limit_sql",
    "verify_columns",
    "verify_skip_limit_columns",
]
