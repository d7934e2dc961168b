"""compcat db rollback: downgrade migrations (one step, --steps N, or --target)."""

import typer
from alembic.util import CommandError
from sqlalchemy.exc import DBAPIError

from compcat.cli.db_migrate import build_runner
from compcat.cli.options import (
    fail_with_database_error,
    normalize_bool_option,
    normalize_int_option,
    normalize_str_option,
    require_database_url,
)
from compcat.db import DatabaseError


def rollback_command(
    target: str = typer.Option(
        "",
        "--target",
        "-t",
        help="Revision to downgrade to (e.g. base or revision id).",
    ),
    steps: int = typer.Option(
        0,
        "--steps",
        "-s",
        help="Number of revisions to downgrade (default: 1).",
    ),
    database_url: str = typer.Option(
        "",
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be rolled back without executing.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
) -> None:
    """Roll back database migrations (Alembic downgrade)."""
    target = normalize_str_option(target, "").strip()
    steps = normalize_int_option(steps, 0)
    dry_run = normalize_bool_option(dry_run, False)
    yes = normalize_bool_option(yes, False)
    if target and steps:
        typer.echo("Error: Use either --target or --steps, not both.", err=True)
        raise typer.Exit(2)
    if steps < 0:
        typer.echo("Error: --steps must be >= 1.", err=True)
        raise typer.Exit(2)
    url = require_database_url(database_url)

    try:
        runner = build_runner(url)
        current = runner.current_revision()
        if not current:
            typer.echo("Already at base revision.")
            return
        if target == current:
            typer.echo("Already at target revision.")
            return
        if target:
            lower = target
        else:
            applied = runner.revisions_between(current, "base")
            count = steps or 1
            lower = applied[count] if count < len(applied) else "base"
        to_roll = runner.revisions_between(current, lower)
        typer.echo("Will roll back: " + ", ".join(to_roll))
        if dry_run:
            typer.echo("--dry-run: run without --dry-run to roll back.")
            return
        if not yes and not typer.confirm("Proceed?", default=False):
            typer.echo("Aborted.")
            raise typer.Exit(1)
        runner.downgrade(lower)
    except CommandError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    typer.echo(f"Rolled back to {lower}.")
