"""ORM model for skipped compaction records."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from compcat.db import Base


class SkippedCompaction(Base):
    """A partition the compactor gave up on, with the limits it exceeded."""

    __tablename__ = "skipped_compactions"
    __table_args__ = ({"comment": "Partitions excluded from compaction and why"},)

    partition_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    skipped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    num_files: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    limit_num_files: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    estimated_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    limit_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)

    def __repr__(self) -> str:
        return f"SkippedCompaction(partition_id={self.partition_id!r}, reason={self.reason!r})"
