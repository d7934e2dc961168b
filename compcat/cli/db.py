"""compcat db: migrate, rollback, status, check (database CLI)."""

import typer

from compcat.cli.db_check import check_command
from compcat.cli.db_migrate import migrate_command
from compcat.cli.db_rollback import rollback_command
from compcat.cli.db_status import status_command

db_app = typer.Typer(
    name="db",
    help="Database operations: migrate, rollback, status, check.",
    no_args_is_help=True,
)

db_app.command("migrate")(migrate_command)
db_app.command("rollback")(rollback_command)
db_app.command("status")(status_command)
db_app.command("check")(check_command)
