"""Database-related exceptions for compcat.

All exceptions avoid exposing sensitive data (e.g. passwords) in messages.
"""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class ConfigurationError(DatabaseError):
    """Raised when database configuration is invalid or missing."""

    pass


class PrivilegeError(DatabaseError):
    """Raised when the connection lacks rights to alter the schema."""

    pass


class UnsupportedGuardError(DatabaseError):
    """Raised when the store cannot express an existence-guarded DDL change."""

    def __init__(self, dialect: str, operation: str) -> None:
        self.dialect = dialect
        self.operation = operation
        super().__init__(
            f"Dialect '{dialect}' cannot express a guarded {operation}; refusing to run it unguarded"
        )


class ConnectivityError(DatabaseError):
    """Raised on transient database unavailability. Callers decide whether to retry."""

    pass


_PRIVILEGE_SQLSTATES = frozenset({"42501"})
_SQLITE_PRIVILEGE_MARKERS = ("attempt to write a readonly database", "access permission denied")
# libpq reports connect failures without a SQLSTATE
_CONNECTIVITY_MARKERS = (
    "unable to open database",
    "disk i/o error",
    "could not connect to server",
    "connection refused",
    "server closed the connection unexpectedly",
    "could not translate host name",
)


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    # asyncpg exposes sqlstate, psycopg2 pgcode
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if isinstance(code, str) and code:
            return code
    return None


def translate_error(exc: BaseException) -> DatabaseError | None:
    """Map a DBAPI error onto the compcat taxonomy.

    Returns None when the error is not recognized; the caller should then
    re-raise the original exception unchanged.
    """
    if isinstance(exc, DatabaseError):
        return exc
    if not isinstance(exc, DBAPIError):
        return None
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    code = _sqlstate(exc)
    if code in _PRIVILEGE_SQLSTATES:
        return PrivilegeError(f"Insufficient privilege: {detail}")
    if (code is not None and code.startswith("08")) or exc.connection_invalidated:
        return ConnectivityError(f"Database unavailable: {detail}")
    lowered = detail.lower()
    if any(marker in lowered for marker in _SQLITE_PRIVILEGE_MARKERS):
        return PrivilegeError(f"Insufficient privilege: {detail}")
    if any(marker in lowered for marker in _CONNECTIVITY_MARKERS):
        return ConnectivityError(f"Database unavailable: {detail}")
    return None
