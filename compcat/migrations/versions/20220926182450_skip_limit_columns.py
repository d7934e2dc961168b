"""Add file-count and byte-size limit columns to skipped_compactions.

Revision ID: 20220926182450
Revises: 20220801120000
Create Date: 2022-09-26

Every guard lives in the statement itself, so re-running it against a
database whose ledger is behind is a no-op.
"""

from collections.abc import Sequence

from alembic import context, op

from compcat.schema.guarded import render_drop_columns_sql
from compcat.schema.skip_limits import (
    SKIP_LIMIT_COLUMNS,
    SKIPPED_COMPACTIONS_TABLE,
    add_skip_limit_columns,
    drop_skip_limit_columns,
    render_skip_limit_sql,
)

revision: str = "20220926182450"
down_revision: str | None = "20220801120000"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    if context.is_offline_mode():
        op.execute(render_skip_limit_sql(op.get_context().dialect))
        return
    add_skip_limit_columns(op.get_bind())


def downgrade() -> None:
    if context.is_offline_mode():
        dialect = op.get_context().dialect
        op.execute(render_drop_columns_sql(dialect, SKIPPED_COMPACTIONS_TABLE, SKIP_LIMIT_COLUMNS))
        return
    drop_skip_limit_columns(op.get_bind())
