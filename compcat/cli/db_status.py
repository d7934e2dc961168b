"""compcat db status: show connection, migration revision and skip-limit column state."""

import asyncio

import typer
from alembic.util import CommandError
from rich.console import Console
from rich.table import Table
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError

from compcat.catalog.models import SkippedCompaction
from compcat.cli.db_migrate import build_runner
from compcat.cli.options import catalog_engine, fail_with_database_error, mask_url, require_database_url
from compcat.db import DatabaseError, dispose_engine
from compcat.schema import SKIP_LIMIT_COLUMNS, SKIPPED_COMPACTIONS_TABLE, reflect_columns


async def _collect_status_info(url: str) -> dict:
    """Collect dialect, table state, migration revision and pending count."""
    engine = catalog_engine(url)
    info: dict = {
        "connection": mask_url(url),
        "dialect": engine.dialect.name,
        "current_migration": "none (run: compcat db migrate)",
        "head_migration": "none",
        "pending_migrations": 0,
        "table_present": False,
        "skip_limit_columns": "-",
        "skipped_rows": 0,
    }
    try:
        async with engine.connect() as conn:
            observed = await conn.run_sync(reflect_columns, SKIPPED_COMPACTIONS_TABLE)
            if observed is not None:
                info["table_present"] = True
                present = [spec.name for spec in SKIP_LIMIT_COLUMNS if spec.name in observed]
                info["skip_limit_columns"] = f"{len(present)}/{len(SKIP_LIMIT_COLUMNS)} present"
                count = await conn.scalar(select(func.count()).select_from(SkippedCompaction.__table__))
                info["skipped_rows"] = int(count or 0)
    finally:
        await dispose_engine(url)

    runner = build_runner(url)
    current_rev = await asyncio.to_thread(runner.current_revision)
    if current_rev:
        info["current_migration"] = runner.describe(current_rev)
    info["head_migration"] = runner.head_revision() or "none"
    info["pending_migrations"] = len(runner.pending_revisions(current_rev))
    return info


def _print_status_table(info: dict) -> None:
    """Print status info as a Rich table."""
    console = Console()
    table = Table(title="Compaction Catalog Status", show_header=True, header_style="bold")
    table.add_column("Item", style="dim")
    table.add_column("Value")
    table.add_row("Connection", info["connection"])
    table.add_row("Dialect", info["dialect"])
    table.add_row("Migration", info["current_migration"])
    table.add_row("Head", info["head_migration"])
    table.add_row("Pending migrations", str(info["pending_migrations"]))
    table.add_row(SKIPPED_COMPACTIONS_TABLE, "present" if info["table_present"] else "missing")
    table.add_row("Skip-limit columns", info["skip_limit_columns"])
    table.add_row("Skipped partitions", f"{info['skipped_rows']:,}")
    console.print(table)


def status_command(
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
) -> None:
    """Show database connection, migration status and skipped_compactions state."""
    url = require_database_url(database_url)
    try:
        info = asyncio.run(_collect_status_info(url))
    except CommandError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    _print_status_table(info)
