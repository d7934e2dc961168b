"""compcat database layer: Base, engine, session, exceptions."""

from compcat.db.base import Base
from compcat.db.engine import DATABASE_URL_ENV, create_engine, dispose_engine, get_engine
from compcat.db.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DatabaseError,
    PrivilegeError,
    UnsupportedGuardError,
    translate_error,
)
from compcat.db.session import create_session_factory

__all__ = [
    "Base",
    "DATABASE_URL_ENV",
    "create_engine",
    "get_engine",
    "dispose_engine",
    "create_session_factory",
    "DatabaseError",
    "ConfigurationError",
    "ConnectivityError",
    "PrivilegeError",
    "UnsupportedGuardError",
    "translate_error",
]
