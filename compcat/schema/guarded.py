"""Existence-guarded column DDL.

PostgreSQL expresses both guards natively (``ALTER TABLE IF EXISTS`` and
``ADD COLUMN IF NOT EXISTS``), so the whole change is one statement. SQLite
has no column guard; there the guard is an inspection of the live table
followed by one ``ADD COLUMN`` per missing column. Any other dialect is
refused with UnsupportedGuardError rather than altered unguarded.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Dialect
from sqlalchemy.exc import DBAPIError

from compcat.db.exceptions import UnsupportedGuardError, translate_error
from compcat.schema.columns import ColumnProblem, ColumnSpec

logger = logging.getLogger(__name__)

NATIVE_GUARD_DIALECTS = frozenset({"postgresql"})
INSPECTION_GUARD_DIALECTS = frozenset({"sqlite"})


@dataclass(frozen=True)
class GuardedAlterResult:
    """What a guarded step observed and did.

    ``applied`` lists columns this call changed (added or dropped);
    ``unchanged`` lists columns the guard skipped because they were already
    in the requested state.
    """

    table: str
    table_present: bool
    applied: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def _require_columns(columns: Sequence[ColumnSpec]) -> None:
    if not columns:
        raise ValueError("at least one column is required")


def render_add_columns_sql(dialect: Dialect, table: str, columns: Sequence[ColumnSpec]) -> str:
    """Render the single guarded ADD COLUMN statement for a native-guard dialect."""
    if dialect.name not in NATIVE_GUARD_DIALECTS:
        raise UnsupportedGuardError(dialect.name, "ADD COLUMN")
    _require_columns(columns)
    quote = dialect.identifier_preparer.quote
    clauses = ",\n".join(
        f"    ADD COLUMN IF NOT EXISTS {quote(spec.name)} {spec.ddl()}" for spec in columns
    )
    return f"ALTER TABLE IF EXISTS {quote(table)}\n{clauses}"


def render_drop_columns_sql(dialect: Dialect, table: str, columns: Sequence[ColumnSpec]) -> str:
    """Render the single guarded DROP COLUMN statement for a native-guard dialect."""
    if dialect.name not in NATIVE_GUARD_DIALECTS:
        raise UnsupportedGuardError(dialect.name, "DROP COLUMN")
    _require_columns(columns)
    quote = dialect.identifier_preparer.quote
    clauses = ",\n".join(f"    DROP COLUMN IF EXISTS {quote(spec.name)}" for spec in columns)
    return f"ALTER TABLE IF EXISTS {quote(table)}\n{clauses}"


def reflect_columns(connection: Connection, table: str) -> dict[str, dict[str, Any]] | None:
    """Return the live columns of ``table`` keyed by name, or None if the table is absent."""
    inspector = sa.inspect(connection)
    if not inspector.has_table(table):
        return None
    return {column["name"]: column for column in inspector.get_columns(table)}


def _raise_translated(exc: DBAPIError) -> None:
    translated = translate_error(exc)
    if translated is None:
        raise exc
    raise translated from exc


def _execute(connection: Connection, statement: str) -> None:
    try:
        connection.execute(sa.text(statement))
    except DBAPIError as exc:
        _raise_translated(exc)


def _warn_type_mismatches(
    table: str,
    columns: Sequence[ColumnSpec],
    observed: dict[str, dict[str, Any]],
) -> None:
    for spec in columns:
        live = observed.get(spec.name)
        if live is not None and not spec.matches(live["type"]):
            logger.warning(
                "Column %s.%s exists with type %s (expected %s); leaving it unmodified",
                table,
                spec.name,
                live["type"],
                spec.sql_type,
            )


def _split(columns: Sequence[ColumnSpec], observed: dict[str, dict[str, Any]]) -> tuple[list[str], list[str]]:
    missing = [spec.name for spec in columns if spec.name not in observed]
    present = [spec.name for spec in columns if spec.name in observed]
    return missing, present


def add_columns_if_missing(
    connection: Connection,
    table: str,
    columns: Sequence[ColumnSpec],
) -> GuardedAlterResult:
    """Add every column of ``columns`` that ``table`` lacks.

    Absent table: no-op. Existing columns are never modified. Safe to call
    any number of times.

    Raises:
        UnsupportedGuardError: dialect cannot express the guards.
        PrivilegeError: connection lacks DDL rights.
        ConnectivityError: database unavailable.
    """
    _require_columns(columns)
    dialect_name = connection.dialect.name
    if dialect_name in NATIVE_GUARD_DIALECTS:
        return _add_native(connection, table, columns)
    if dialect_name in INSPECTION_GUARD_DIALECTS:
        return _add_inspected(connection, table, columns)
    raise UnsupportedGuardError(dialect_name, "ADD COLUMN")


def _add_native(connection: Connection, table: str, columns: Sequence[ColumnSpec]) -> GuardedAlterResult:
    # Observed state only feeds the result and logs; the statement carries the guards.
    observed = reflect_columns(connection, table)
    _execute(connection, render_add_columns_sql(connection.dialect, table, columns))
    if observed is None:
        logger.info("Table %s does not exist; nothing to alter", table)
        return GuardedAlterResult(table=table, table_present=False)
    _warn_type_mismatches(table, columns, observed)
    missing, present = _split(columns, observed)
    if missing:
        logger.info("Added columns to %s: %s", table, ", ".join(missing))
    return GuardedAlterResult(table=table, table_present=True, applied=tuple(missing), unchanged=tuple(present))


def _add_inspected(connection: Connection, table: str, columns: Sequence[ColumnSpec]) -> GuardedAlterResult:
    observed = reflect_columns(connection, table)
    if observed is None:
        logger.info("Table %s does not exist; nothing to alter", table)
        return GuardedAlterResult(table=table, table_present=False)
    _warn_type_mismatches(table, columns, observed)
    quote = connection.dialect.identifier_preparer.quote
    added: list[str] = []
    unchanged: list[str] = []
    for spec in columns:
        if spec.name in observed:
            unchanged.append(spec.name)
            continue
        statement = f"ALTER TABLE {quote(table)} ADD COLUMN {quote(spec.name)} {spec.ddl()}"
        try:
            connection.execute(sa.text(statement))
        except DBAPIError as exc:
            if "duplicate column name" not in str(exc.orig).lower():
                _raise_translated(exc)
            # Another writer added it between inspection and ALTER.
            if spec.name not in (reflect_columns(connection, table) or {}):
                raise
            logger.info("Column %s.%s was added concurrently", table, spec.name)
            unchanged.append(spec.name)
            continue
        added.append(spec.name)
    if added:
        logger.info("Added columns to %s: %s", table, ", ".join(added))
    return GuardedAlterResult(table=table, table_present=True, applied=tuple(added), unchanged=tuple(unchanged))


def drop_columns_if_present(
    connection: Connection,
    table: str,
    columns: Sequence[ColumnSpec],
) -> GuardedAlterResult:
    """Drop every column of ``columns`` that ``table`` has. Absent table: no-op."""
    _require_columns(columns)
    dialect_name = connection.dialect.name
    if dialect_name not in NATIVE_GUARD_DIALECTS | INSPECTION_GUARD_DIALECTS:
        raise UnsupportedGuardError(dialect_name, "DROP COLUMN")
    observed = reflect_columns(connection, table)
    if dialect_name in NATIVE_GUARD_DIALECTS:
        _execute(connection, render_drop_columns_sql(connection.dialect, table, columns))
    if observed is None:
        logger.info("Table %s does not exist; nothing to drop", table)
        return GuardedAlterResult(table=table, table_present=False)
    present = [spec.name for spec in columns if spec.name in observed]
    absent = [spec.name for spec in columns if spec.name not in observed]
    if dialect_name in INSPECTION_GUARD_DIALECTS:
        quote = connection.dialect.identifier_preparer.quote
        for name in present:
            _execute(connection, f"ALTER TABLE {quote(table)} DROP COLUMN {quote(name)}")
    if present:
        logger.info("Dropped columns from %s: %s", table, ", ".join(present))
    return GuardedAlterResult(table=table, table_present=True, applied=tuple(present), unchanged=tuple(absent))


def verify_columns(
    connection: Connection,
    table: str,
    columns: Sequence[ColumnSpec],
) -> list[ColumnProblem]:
    """Compare the live table against ``columns``. An empty list means it matches."""
    observed = reflect_columns(connection, table)
    if observed is None:
        return [ColumnProblem(table=table, column=None, problem="table missing")]
    problems: list[ColumnProblem] = []
    for spec in columns:
        live = observed.get(spec.name)
        if live is None:
            problems.append(ColumnProblem(table=table, column=spec.name, problem="column missing"))
            continue
        if not spec.matches(live["type"]):
            problems.append(
                ColumnProblem(
                    table=table,
                    column=spec.name,
                    problem=f"type mismatch: {live['type']} (expected {spec.sql_type})",
                )
            )
        if spec.nullable and not live.get("nullable", True):
            problems.append(ColumnProblem(table=table, column=spec.name, problem="not nullable"))
    return problems
