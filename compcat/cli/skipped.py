"""compcat skipped: inspect and clear skipped compaction records."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import DBAPIError

from compcat.catalog import SkippedCompaction, SkippedCompactionRepository
from compcat.cli.options import (
    catalog_engine,
    fail_with_database_error,
    normalize_int_option,
    require_database_url,
)
from compcat.db import DatabaseError, create_session_factory, dispose_engine

skipped_app = typer.Typer(
    name="skipped",
    help="Skipped compactions: list, delete.",
    no_args_is_help=True,
)


def _format_count(value: int | None) -> str:
    return "-" if value is None else f"{value:,}"


async def _list_impl(url: str, limit: int | None) -> list[SkippedCompaction]:
    engine = catalog_engine(url)
    try:
        repo = SkippedCompactionRepository(create_session_factory(engine))
        return await repo.list(limit=limit)
    finally:
        await dispose_engine(url)


async def _delete_impl(url: str, partition_id: int) -> SkippedCompaction | None:
    engine = catalog_engine(url)
    try:
        repo = SkippedCompactionRepository(create_session_factory(engine))
        return await repo.delete(partition_id)
    finally:
        await dispose_engine(url)


def _print_records(records: list[SkippedCompaction]) -> None:
    console = Console()
    table = Table(title="Skipped Compactions", show_header=True, header_style="bold")
    table.add_column("Partition", justify="right")
    table.add_column("Reason")
    table.add_column("Skipped at")
    table.add_column("Files", justify="right")
    table.add_column("File limit", justify="right")
    table.add_column("Est. bytes", justify="right")
    table.add_column("Byte limit", justify="right")
    for record in records:
        table.add_row(
            str(record.partition_id),
            record.reason,
            record.skipped_at.isoformat() if record.skipped_at else "-",
            _format_count(record.num_files),
            _format_count(record.limit_num_files),
            _format_count(record.estimated_bytes),
            _format_count(record.limit_bytes),
        )
    console.print(table)


@skipped_app.command("list")
def list_command(
    limit: int = typer.Option(0, "--limit", "-n", help="Maximum rows to show (0 = all)."),
    database_url: str = typer.Option(
        "",
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
) -> None:
    """List skipped compactions ordered by partition id."""
    limit = normalize_int_option(limit, 0)
    if limit < 0:
        typer.echo("Error: --limit must be >= 0.", err=True)
        raise typer.Exit(2)
    url = require_database_url(database_url)
    try:
        records = asyncio.run(_list_impl(url, limit or None))
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    if not records:
        typer.echo("No skipped compactions.")
        return
    _print_records(records)


@skipped_app.command("delete")
def delete_command(
    partition_id: int = typer.Argument(..., help="Partition whose skip record to remove."),
    database_url: str = typer.Option(
        "",
        "--database-url",
        help="Database URL (default: COMPCAT_DATABASE_URL).",
    ),
) -> None:
    """Delete a skip record so the partition is considered for compaction again."""
    if partition_id < 1:
        typer.echo("Error: partition id must be a positive integer.", err=True)
        raise typer.Exit(2)
    url = require_database_url(database_url)
    try:
        removed = asyncio.run(_delete_impl(url, partition_id))
    except (DatabaseError, DBAPIError) as e:
        fail_with_database_error(e)
    if removed is None:
        typer.echo(f"No skipped compaction for partition {partition_id}.")
        raise typer.Exit(1)
    typer.echo(f"Deleted skipped compaction for partition {partition_id}.")
