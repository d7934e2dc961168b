"""Alembic environment: uses COMPCAT_DATABASE_URL and compcat.db.Base."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection

# Import models so their tables are attached to Base.metadata for Alembic
from compcat.catalog.models import SkippedCompaction  # noqa: F401
from compcat.db import DATABASE_URL_ENV, Base
from compcat.migrate.runner import LOCK_ID_ATTRIBUTE, to_sync_url
from compcat.schema.lock import DEFAULT_MIGRATION_LOCK_ID, acquire_migration_lock

config = context.config
if config.config_file_name is not None and config.get_section("loggers") is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _get_sync_url() -> str:
    """Get the synchronous URL Alembic connects with."""
    url = config.get_main_option("sqlalchemy.url") or os.environ.get(DATABASE_URL_ENV)
    if not url or not url.strip():
        raise RuntimeError(
            f"Set {DATABASE_URL_ENV} or sqlalchemy.url in alembic.ini for migrations."
        )
    return to_sync_url(url)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL only, no DB connection)."""
    context.configure(
        url=_get_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    lock_id = config.attributes.get(LOCK_ID_ATTRIBUTE, DEFAULT_MIGRATION_LOCK_ID)
    with context.begin_transaction():
        acquire_migration_lock(connection, lock_id)
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (connect to DB)."""
    connectable = config.attributes.get("connection", None)
    if connectable is not None:
        do_run_migrations(connectable)
        return
    engine = create_engine(_get_sync_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            do_run_migrations(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
