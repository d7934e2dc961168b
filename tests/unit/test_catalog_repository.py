"""SkippedCompactionRepository against an aiosqlite catalog."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from compcat.catalog import SkippedCompactionRepository
from compcat.db import Base, DatabaseError, create_engine, create_session_factory


@pytest.fixture
async def repo(sqlite_path: Path):
    engine = create_engine(f"sqlite:///{sqlite_path}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SkippedCompactionRepository(create_session_factory(engine))
    await engine.dispose()


async def test_record_stores_limits(repo: SkippedCompactionRepository) -> None:
    row = await repo.record(
        7,
        "  too many files  ",
        num_files=1200,
        limit_num_files=1000,
        estimated_bytes=3 * 2**30,
        limit_bytes=2**31,
    )

    assert row.partition_id == 7
    assert row.reason == "too many files"
    assert (row.num_files, row.limit_num_files) == (1200, 1000)
    assert (row.estimated_bytes, row.limit_bytes) == (3 * 2**30, 2**31)
    assert row.skipped_at is not None


async def test_limits_default_to_null(repo: SkippedCompactionRepository) -> None:
    row = await repo.record(1, "over memory budget")
    assert row.num_files is None
    assert row.limit_bytes is None


async def test_recording_again_replaces_the_record(repo: SkippedCompactionRepository) -> None:
    await repo.record(3, "too many files", num_files=50, limit_num_files=10)
    row = await repo.record(3, "too large", estimated_bytes=900, limit_bytes=500)

    assert row.reason == "too large"
    assert row.num_files is None
    assert row.limit_num_files is None
    assert row.estimated_bytes == 900
    assert len(await repo.list()) == 1


async def test_list_is_ordered_and_limited(repo: SkippedCompactionRepository) -> None:
    for partition_id in (30, 10, 20):
        await repo.record(partition_id, f"skip {partition_id}")

    assert [row.partition_id for row in await repo.list()] == [10, 20, 30]
    assert [row.partition_id for row in await repo.list(limit=2)] == [10, 20]


async def test_get_and_delete(repo: SkippedCompactionRepository) -> None:
    assert await repo.get(5) is None
    await repo.record(5, "timeout")

    fetched = await repo.get(5)
    assert fetched is not None and fetched.reason == "timeout"

    removed = await repo.delete(5)
    assert removed is not None and removed.partition_id == 5
    assert await repo.get(5) is None
    assert await repo.delete(5) is None


@pytest.mark.parametrize(
    ("partition_id", "reason", "limits"),
    [
        (0, "x", {}),
        (True, "x", {}),
        (1, "   ", {}),
        (1, "x", {"num_files": -1}),
        (1, "x", {"limit_bytes": 1.5}),
        (1, "x", {"estimated_bytes": False}),
    ],
)
async def test_record_rejects_invalid_input(repo: SkippedCompactionRepository, partition_id, reason, limits) -> None:
    with pytest.raises(ValueError):
        await repo.record(partition_id, reason, **limits)
    assert await repo.list() == []


async def test_list_rejects_non_positive_limit(repo: SkippedCompactionRepository) -> None:
    with pytest.raises(ValueError, match="limit"):
        await repo.list(limit=0)


async def test_record_raises_when_row_is_gone_after_upsert(
    repo: SkippedCompactionRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _missing(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return None

    monkeypatch.setattr(AsyncSession, "get", _missing)

    with pytest.raises(DatabaseError, match="partition 9"):
        await repo.record(9, "timeout")
