"""CLI tools: compcat db, compcat skipped."""

import logging
from importlib import metadata

import typer

from compcat.cli.db import db_app
from compcat.cli.skipped import skipped_app
from compcat.config import ConfigLoadError, ConfigManager

app = typer.Typer(
    name="compcat",
    help="compcat: compaction catalog schema and skipped-compaction records.",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")
app.add_typer(skipped_app, name="skipped")


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        version = metadata.version("compcat")
    except metadata.PackageNotFoundError:
        version = "unknown"
    typer.echo(f"compcat {version}")
    raise typer.Exit(0)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@app.callback()
def main_callback(
    config: str = typer.Option("", "--config", help="Path to compcat.yaml."),
    log_level: str = typer.Option("", "--log-level", help="Override logging.level from config."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Load configuration and set up logging before any subcommand."""
    try:
        manager = ConfigManager.load(config or None)
    except (ConfigLoadError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    configure_logging(log_level or manager.get().logging.level)


def main() -> None:
    """Entry point for the compcat CLI."""
    app()


if __name__ == "__main__":
    main()
