"""Read and write skipped compaction records.

A partition has at most one record. Recording a skip for a partition that
already has one replaces its reason, limits and timestamp.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compcat.catalog.models import SkippedCompaction
from compcat.db.exceptions import DatabaseError, UnsupportedGuardError, translate_error

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_LIMIT_FIELDS = ("num_files", "limit_num_files", "estimated_bytes", "limit_bytes")


def _validate_partition_id(partition_id: object) -> int:
    if isinstance(partition_id, bool) or not isinstance(partition_id, int) or partition_id < 1:
        raise ValueError("partition_id must be a positive integer")
    return partition_id


def _validate_count(name: str, value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer or None")
    return value


class SkippedCompactionRepository:
    """Async access to the skipped_compactions table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        partition_id: int,
        reason: str,
        *,
        num_files: int | None = None,
        limit_num_files: int | None = None,
        estimated_bytes: int | None = None,
        limit_bytes: int | None = None,
    ) -> SkippedCompaction:
        """Insert or replace the skip record for ``partition_id``."""
        partition_id = _validate_partition_id(partition_id)
        if not isinstance(reason, str) or not reason.strip():
            raise ValueError("reason must be a non-empty string")
        limits = {
            "num_files": num_files,
            "limit_num_files": limit_num_files,
            "estimated_bytes": estimated_bytes,
            "limit_bytes": limit_bytes,
        }
        values: dict[str, Any] = {name: _validate_count(name, value) for name, value in limits.items()}
        values.update(
            partition_id=partition_id,
            reason=reason.strip(),
            skipped_at=datetime.now(timezone.utc),
        )

        async with self._session_factory() as session:
            dialect_name = session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect_name)
            if insert is None:
                raise UnsupportedGuardError(dialect_name, "upsert")
            stmt = insert(SkippedCompaction).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[SkippedCompaction.partition_id],
                set_={
                    name: stmt.excluded[name]
                    for name in ("reason", "skipped_at", *_LIMIT_FIELDS)
                },
            )
            try:
                await session.execute(stmt)
                await session.commit()
            except DBAPIError as exc:
                await session.rollback()
                translated = translate_error(exc)
                if translated is None:
                    raise
                raise translated from exc
            row = await session.get(SkippedCompaction, partition_id, populate_existing=True)
        if row is None:
            raise DatabaseError(f"Skip record for partition {partition_id} vanished after upsert")
        logger.info("Recorded skipped compaction for partition %d: %s", partition_id, values["reason"])
        return row

    async def get(self, partition_id: int) -> SkippedCompaction | None:
        partition_id = _validate_partition_id(partition_id)
        async with self._session_factory() as session:
            return await session.get(SkippedCompaction, partition_id)

    async def list(self, limit: int | None = None) -> list[SkippedCompaction]:
        """Return skip records ordered by partition id."""
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            raise ValueError("limit must be a positive integer")
        stmt = select(SkippedCompaction).order_by(SkippedCompaction.partition_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete(self, partition_id: int) -> SkippedCompaction | None:
        """Remove and return the skip record for ``partition_id``, if any."""
        partition_id = _validate_partition_id(partition_id)
        async with self._session_factory() as session:
            row = await session.get(SkippedCompaction, partition_id)
            if row is None:
                return None
            await session.delete(row)
            await session.commit()
        logger.info("Deleted skipped compaction for partition %d", partition_id)
        return row
