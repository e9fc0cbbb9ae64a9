# tests/test_task_repo_sqlite.py

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import insert

from task_thrower.domain.date_only import FAR_FUTURE
from task_thrower.domain.errors import PartialBatchFailure, ValidationError
from task_thrower.domain.task_models import Increment, TaskCreate, TaskUpdate
from task_thrower.infra.db.sqlite import create_schema, make_engine, make_sessionmaker, make_sqlite_url
from task_thrower.infra.db.task_repo_sqlite import SQLiteTaskRepo, TaskRow

from factories import OWNER, FakeClock


@pytest_asyncio.fixture()
async def engine(tmp_path: Path):
    eng = make_engine(make_sqlite_url(str(tmp_path / "db" / "tasks.db")))
    await create_schema(eng)
    yield eng
    await eng.dispose()


def _repo(engine, clock: FakeClock, batch_size: int = 450) -> SQLiteTaskRepo:
    return SQLiteTaskRepo(make_sessionmaker(engine), batch_size=batch_size, clock=clock)


def _create(title: str = "t", band: int = 24, sorter: int = 1000) -> TaskCreate:
    return TaskCreate(owner=OWNER, title=title, due_date="2024-06-01", sort_order=band, sorter=sorter)


@pytest.mark.asyncio
async def test_create_list_and_update(engine, clock: FakeClock) -> None:
    repo = _repo(engine, clock)
    task_id = await repo.create(OWNER, _create(title=" plan trip ", band=5, sorter=3000))
    await repo.create("other", _create())

    clock.tick(10)
    await repo.batch_update([
        TaskUpdate(task_id, {"last_done_date": "2024-06-01", "done_count": Increment(), "throw_count": Increment()}),
        TaskUpdate("ghost", {"removed": True}),
    ])

    (t,) = await repo.list_all(OWNER)
    assert t.id == task_id
    assert t.title == "plan trip"
    assert (t.sort_order, t.sorter) == (5, 3000)
    assert (t.done_count, t.throw_count, t.last_done_date) == (1, 1, "2024-06-01")
    assert t.updated_at == clock.now
    assert t.created_at == clock.now - 10


@pytest.mark.asyncio
async def test_create_rejects_blank_title(engine, clock: FakeClock) -> None:
    repo = _repo(engine, clock)
    with pytest.raises(ValidationError):
        await repo.create(OWNER, _create(title=" "))
    assert await repo.list_all(OWNER) == []


@pytest.mark.asyncio
async def test_rows_from_older_schema_are_normalized(engine, clock: FakeClock) -> None:
    repo = _repo(engine, clock)
    async with repo.sessionmaker() as session:
        await session.execute(
            insert(TaskRow).values(
                id="legacy", owner=OWNER, title="legacy", due_date=None, removed=False,
                done_count=0, throw_count=0, sort_order=None, sorter=None,
                created_at=777, updated_at=777,
            )
        )
        await session.commit()

    (t,) = await repo.list_all(OWNER)
    assert (t.due_date, t.sort_order, t.sorter) == (FAR_FUTURE, 24, 777)


@pytest.mark.asyncio
async def test_failed_chunk_rolls_back_alone(engine, clock: FakeClock) -> None:
    repo = _repo(engine, clock, batch_size=2)
    ids = [await repo.create(OWNER, _create(title=f"t{i}")) for i in range(4)]

    # second chunk writes a NOT NULL column as NULL, so its transaction fails
    updates = [
        TaskUpdate(ids[0], {"throw_count": Increment()}),
        TaskUpdate(ids[1], {"throw_count": Increment()}),
        TaskUpdate(ids[2], {"throw_count": Increment()}),
        TaskUpdate(ids[3], {"removed": None}),
    ]
    with pytest.raises(PartialBatchFailure) as info:
        await repo.batch_update(updates)

    assert info.value.committed_ids == ids[:2]
    assert info.value.pending_ids == ids[2:]
    counts = {t.id: t.throw_count for t in await repo.list_all(OWNER)}
    assert [counts[i] for i in ids] == [1, 1, 0, 0]
