"""Apply and inspect catalog migrations through Alembic.

The applied-migrations ledger is Alembic's ``alembic_version`` table. Each
revision is also idempotent on its own, so a stale or bypassed ledger only
costs a few no-op statements.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import sqlalchemy as sa
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.script.revision import RevisionError
from alembic.util import CommandError
from sqlalchemy import pool
from sqlalchemy.exc import DBAPIError

from compcat.db.exceptions import ConfigurationError, translate_error
from compcat.schema.lock import DEFAULT_MIGRATION_LOCK_ID

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"
LOCK_ID_ATTRIBUTE = "migration_lock_id"


def to_sync_url(url: str) -> str:
    """Convert a catalog URL to the synchronous driver Alembic runs on."""
    u = url.strip()
    if u.startswith("postgresql+asyncpg://"):
        return "postgresql+psycopg2://" + u[len("postgresql+asyncpg://") :]
    if u.startswith("postgresql://"):
        return "postgresql+psycopg2://" + u[len("postgresql://") :]
    if u.startswith("postgresql+psycopg2://"):
        return u
    if u.startswith("sqlite+aiosqlite://"):
        return "sqlite://" + u[len("sqlite+aiosqlite://") :]
    if u.startswith("sqlite://"):
        return u
    raise ConfigurationError(
        "Database URL must be PostgreSQL (postgresql://, postgresql+asyncpg://) or SQLite (sqlite://)."
    )


@contextmanager
def _translated_errors() -> Iterator[None]:
    try:
        yield
    except DBAPIError as exc:
        translated = translate_error(exc)
        if translated is None:
            raise
        raise translated from exc


@contextmanager
def _revision_errors() -> Iterator[None]:
    # Unknown targets and ledger entries this package does not ship.
    try:
        yield
    except RevisionError as exc:
        raise CommandError(str(exc)) from exc


class MigrationRunner:
    """Run Alembic commands against one catalog database."""

    def __init__(
        self,
        database_url: str,
        *,
        alembic_ini: str | None = "alembic.ini",
        lock_id: int = DEFAULT_MIGRATION_LOCK_ID,
    ) -> None:
        if not database_url or not database_url.strip():
            raise ConfigurationError("Database URL not set.")
        self.sync_url = to_sync_url(database_url)
        self._alembic_ini = alembic_ini
        self._lock_id = lock_id

    def config(self) -> Config:
        """Build the Alembic config; alembic.ini is optional."""
        ini_path = Path(self._alembic_ini) if self._alembic_ini else None
        if ini_path is not None and ini_path.is_file():
            cfg = Config(str(ini_path))
        else:
            cfg = Config()
        cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
        # ConfigParser interpolation treats % specially (URL-encoded passwords)
        cfg.set_main_option("sqlalchemy.url", self.sync_url.replace("%", "%%"))
        cfg.attributes[LOCK_ID_ATTRIBUTE] = self._lock_id
        return cfg

    def script(self) -> ScriptDirectory:
        return ScriptDirectory.from_config(self.config())

    def upgrade(self, target: str = "head", *, sql: bool = False) -> None:
        """Upgrade to ``target``; with ``sql`` print the script instead of running it."""
        logger.info("Upgrading catalog schema to %s%s", target, " (offline SQL)" if sql else "")
        with _translated_errors():
            command.upgrade(self.config(), target, sql=sql)

    def downgrade(self, target: str, *, sql: bool = False) -> None:
        """Downgrade to ``target``; offline ``sql`` needs a ``from:to`` range."""
        logger.info("Downgrading catalog schema to %s%s", target, " (offline SQL)" if sql else "")
        with _translated_errors():
            command.downgrade(self.config(), target, sql=sql)

    def stamp(self, revision: str) -> None:
        """Set the ledger to ``revision`` without running migrations."""
        with _translated_errors():
            command.stamp(self.config(), revision)

    def current_revision(self) -> str | None:
        engine = sa.create_engine(self.sync_url, poolclass=pool.NullPool)
        try:
            with _translated_errors(), engine.connect() as conn:
                return MigrationContext.configure(conn).get_current_revision()
        finally:
            engine.dispose()

    def head_revision(self) -> str | None:
        return self.script().get_current_head()

    def pending_revisions(self, current: str | None) -> list[str]:
        """Revisions after ``current`` up to head, oldest first. None means nothing applied."""
        return list(reversed(self.revisions_between("head", current or "base")))

    def revisions_between(self, upper: str, lower: str) -> list[str]:
        """Revisions above ``lower`` up to and including ``upper``, newest first.

        Raises:
            CommandError: either end is not a known revision.
        """
        script = self.script()
        with _revision_errors():
            return [rev.revision for rev in script.iterate_revisions(upper, lower)]

    def describe(self, revision: str) -> str:
        """``revision`` followed by its message, when it has one."""
        script = self.script()
        with _revision_errors():
            rev = script.get_revision(revision)
        doc = getattr(rev, "doc", None) if rev is not None else None
        return f"{revision} ({doc})" if doc else revision
