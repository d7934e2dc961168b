"""compcat db migrate: run Alembic upgrade under the migration lock."""

import typer
from alembic.util import CommandError
from sqlalchemy.exc import DBAPIError

from compcat.cli.options import (
    fail_with_database_error,
    normalize_bool_option,
    normalize_str_option,
    require_database_url,
)
from compcat.config import ConfigManager
from compcat.db import DatabaseError
from compcat.migrate import MigrationRunner


def build_runner(url: str) -> MigrationRunner:
    settings = ConfigManager.instance().get().migrations
    return MigrationRunner(url, alembic_ini=settings.alembic_ini, lock_id=settings.lock_id)


def migrate_command(
    target: str = typer.Option(
        "head",
        "--target",
        "-t",
        help="Revision to upgrade to (default: head).",
    ),
    database_url: str = typer.Option(
        "",
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show pending migrations without applying.",
    ),
    sql: bool = typer.Option(
        False,
        "--sql",
        help="Print the migration SQL instead of executing it.",
    ),
) -> None:
    """Run schema migrations (Alembic upgrade)."""
    target = normalize_str_option(target, "head").strip()
    dry_run = normalize_bool_option(dry_run, False)
    sql = normalize_bool_option(sql, False)
    if not target:
        typer.echo("Error: --target must be a non-empty revision string.", err=True)
        raise typer.Exit(2)
    url = require_database_url(database_url)
    try:
        runner = build_runner(url)
        if dry_run:
            current = runner.current_revision()
            pending = runner.pending_revisions(current)
            typer.echo(f"Current revision: {current or 'none'}")
            if pending:
                typer.echo("Pending: " + ", ".join(pending))
            else:
                typer.echo("Pending: none")
            typer.echo("--dry-run: run without --dry-run to apply migrations.")
            return
        runner.upgrade(target, sql=sql)
    except CommandError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    if not sql:
        typer.echo("Migrations applied.")
