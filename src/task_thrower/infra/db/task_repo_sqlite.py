from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import BigInteger, Boolean, Integer, String, select, update
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from task_thrower.config import MAX_BATCH_SIZE
from task_thrower.domain.task_models import Increment, Task, TaskCreate, TaskUpdate, new_task_id, normalize_record
from task_thrower.infra.db.batching import commit_in_chunks
from task_thrower.infra.db.task_repo_memory import now_ms, validate_create


class Base(DeclarativeBase):
    pass


class TaskRow(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    # nullable so rows written by older schemas still load; normalized on read
    due_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    removed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    done_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_done_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    throw_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sorter: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def to_record(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "title": self.title,
            "due_date": self.due_date,
            "removed": self.removed,
            "done_count": self.done_count,
            "last_done_date": self.last_done_date,
            "throw_count": self.throw_count,
            "sort_order": self.sort_order,
            "sorter": self.sorter,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_domain(self) -> Task:
        return normalize_record(self.id, self.to_record())


class SQLiteTaskRepo:
    def __init__(self, sessionmaker, batch_size: int = MAX_BATCH_SIZE, clock: Optional[Callable[[], int]] = None):
        self.sessionmaker = sessionmaker
        self.batch_size = batch_size
        self._clock = clock or now_ms

    async def create(self, owner_id: str, data: TaskCreate) -> str:
        validate_create(owner_id, data)
        now = self._clock()
        row = TaskRow(
            id=new_task_id(),
            owner=owner_id.strip(),
            title=data.title.strip(),
            due_date=data.due_date,
            removed=False,
            done_count=0,
            last_done_date=None,
            throw_count=0,
            sort_order=data.sort_order,
            sorter=data.sorter or now,
            created_at=now,
            updated_at=now,
        )
        async with self.sessionmaker() as session:
            session.add(row)
            await session.commit()
            return row.id

    async def list_all(self, owner_id: str) -> List[Task]:
        async with self.sessionmaker() as session:
            res = await session.execute(select(TaskRow).where(TaskRow.owner == owner_id))
            return [r.to_domain() for r in res.scalars().all()]

    async def batch_update(self, updates: Sequence[TaskUpdate]) -> None:
        await commit_in_chunks(updates, self.batch_size, self._commit_chunk)

    async def _commit_chunk(self, part: List[TaskUpdate]) -> None:
        now = self._clock()
        async with self.sessionmaker() as session:
            async with session.begin():
                for u in part:
                    values: Dict[str, Any] = {}
                    for name, value in u.fields.items():
                        if isinstance(value, Increment):
                            col = getattr(TaskRow, name)
                            values[name] = col + value.by
                        else:
                            values[name] = value
                    values["updated_at"] = now
                    # unknown ids match no row and are skipped
                    await session.execute(update(TaskRow).where(TaskRow.id == u.task_id).values(**values))
