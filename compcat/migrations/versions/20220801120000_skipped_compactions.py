"""Create skipped_compactions table.

Revision ID: 20220801120000
Revises:
Create Date: 2022-08-01

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "20220801120000"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

TABLE = "skipped_compactions"


def upgrade() -> None:
    # Guarded in the DDL itself so offline scripts stay re-runnable.
    op.create_table(
        TABLE,
        sa.Column("partition_id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column(
            "skipped_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("partition_id", name=op.f("pk_skipped_compactions")),
        comment="Partitions excluded from compaction and why",
        if_not_exists=True,
    )


def downgrade() -> None:
    op.drop_table(TABLE, if_exists=True)
