from __future__ import annotations
import copy
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from task_thrower.config import MAX_BATCH_SIZE
from task_thrower.domain.errors import ValidationError
from task_thrower.domain.task_models import Increment, Task, TaskCreate, TaskUpdate, new_task_id, normalize_record
from task_thrower.infra.db.batching import commit_in_chunks


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_create(owner_id: str, data: TaskCreate) -> None:
    if not (owner_id or "").strip():
        raise ValidationError("owner is required")
    if not (data.title or "").strip():
        raise ValidationError("title is required")
    if not (data.due_date or "").strip():
        raise ValidationError("due_date is required")


class InMemoryTaskRepo:
    """
    Dict-backed store holding raw records, the way a document store would.

    Records are normalized on every read, so tests can seed it with data that
    predates the current schema.
    """
    def __init__(self, batch_size: int = MAX_BATCH_SIZE, clock: Optional[Callable[[], int]] = None):
        self.batch_size = batch_size
        self._clock = clock or now_ms
        self._docs: Dict[str, Dict[str, Any]] = {}

    def seed(self, task_id: str, record: Dict[str, Any]) -> None:
        self._docs[task_id] = dict(record)

    def raw(self, task_id: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(task_id)
        return dict(doc) if doc is not None else None

    async def create(self, owner_id: str, data: TaskCreate) -> str:
        validate_create(owner_id, data)
        now = self._clock()
        task_id = new_task_id()
        self._docs[task_id] = {
            "owner": owner_id.strip(),
            "title": data.title.strip(),
            "due_date": data.due_date,
            "removed": False,
            "done_count": 0,
            "last_done_date": None,
            "throw_count": 0,
            "sort_order": data.sort_order,
            "sorter": data.sorter or now,
            "created_at": now,
            "updated_at": now,
        }
        return task_id

    async def list_all(self, owner_id: str) -> List[Task]:
        return [
            normalize_record(task_id, doc)
            for task_id, doc in self._docs.items()
            if doc.get("owner") == owner_id
        ]

    async def batch_update(self, updates: Sequence[TaskUpdate]) -> None:
        await commit_in_chunks(updates, self.batch_size, self._commit_chunk)

    async def _commit_chunk(self, part: List[TaskUpdate]) -> None:
        # apply to a scratch copy and swap it in, so a chunk lands whole or not at all
        now = self._clock()
        staged = copy.deepcopy(self._docs)
        for u in part:
            doc = staged.get(u.task_id)
            if doc is None:
                continue
            for name, value in u.fields.items():
                if isinstance(value, Increment):
                    doc[name] = (doc.get(name) or 0) + value.by
                else:
                    doc[name] = value
            doc["updated_at"] = now
        self._docs = staged
