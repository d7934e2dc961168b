"""Cross-process lock held while migrations run."""

from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from compcat.db.exceptions import translate_error

logger = logging.getLogger(__name__)

# "compcat\0" as a signed 64-bit key
DEFAULT_MIGRATION_LOCK_ID = 0x636F6D7063617400


def acquire_migration_lock(connection: Connection, lock_id: int = DEFAULT_MIGRATION_LOCK_ID) -> bool:
    """Block until this transaction owns the migration lock.

    PostgreSQL uses a transaction-scoped advisory lock, released on commit or
    rollback. SQLite serializes writers itself. Returns True when a lock was
    taken.
    """
    dialect_name = connection.dialect.name
    if dialect_name != "postgresql":
        logger.debug("No advisory lock for dialect %s", dialect_name)
        return False
    logger.info("Waiting for migration lock %d", lock_id)
    try:
        connection.execute(sa.text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": lock_id})
    except DBAPIError as exc:
        translated = translate_error(exc)
        if translated is None:
            raise
        raise translated from exc
    logger.info("Acquired migration lock %d", lock_id)
    return True
