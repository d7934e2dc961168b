"""compcat db check: verify the live schema matches the catalog's expectations."""

import asyncio

import typer
from alembic.util import CommandError
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import DBAPIError

from compcat.cli.db_migrate import build_runner
from compcat.cli.options import catalog_engine, fail_with_database_error, require_database_url
from compcat.db import DatabaseError, dispose_engine
from compcat.schema import verify_skip_limit_columns


async def _run_checks(url: str) -> list[dict]:
    """Return one row per check: name, status (OK/WARN/ERROR), message."""
    results: list[dict] = []
    engine = catalog_engine(url)
    try:
        async with engine.connect() as conn:
            problems = await conn.run_sync(verify_skip_limit_columns)
    finally:
        await dispose_engine(url)
    if problems:
        for problem in problems:
            results.append({"name": "Schema", "status": "ERROR", "message": str(problem)})
    else:
        results.append({"name": "Schema", "status": "OK", "message": "skip-limit columns present"})

    runner = build_runner(url)
    current = await asyncio.to_thread(runner.current_revision)
    pending = runner.pending_revisions(current)
    if not current:
        results.append({"name": "Migration", "status": "WARN", "message": "not initialized"})
    elif pending:
        results.append({"name": "Migration", "status": "WARN", "message": f"{len(pending)} pending migrations"})
    else:
        results.append({"name": "Migration", "status": "OK", "message": f"up to date ({current})"})
    return results


def _print_results(results: list[dict]) -> None:
    console = Console()
    table = Table(title="Compaction Catalog Check", show_header=True, header_style="bold")
    table.add_column("Check", style="dim")
    table.add_column("Status")
    table.add_column("Detail")
    styles = {"OK": "green", "WARN": "yellow", "ERROR": "red"}
    for row in results:
        style = styles.get(row["status"], "")
        table.add_row(row["name"], f"[{style}]{row['status']}[/{style}]", row["message"])
    console.print(table)


def check_command(
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
) -> None:
    """Check skipped_compactions columns and migration state. Exit 1 on schema errors."""
    url = require_database_url(database_url)
    try:
        results = asyncio.run(_run_checks(url))
    except CommandError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    _print_results(results)
    if any(row["status"] == "ERROR" for row in results):
        raise typer.Exit(1)
