from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from task_thrower.core import lifecycle
from task_thrower.core.partitioner import Selection, partition
from task_thrower.domain import date_only
from task_thrower.domain.errors import PartialBatchFailure, ValidationError
from task_thrower.domain.task_models import Bucket, TaskUpdate, TaskViews, ThrowAction

logger = logging.getLogger("thrower.tasks")


class TaskService:
    """
    Runs one user action end to end: read a snapshot, compute deltas, write
    them, then re-read so the caller always gets ground truth back.

    Actions for the same owner are serialized with a per-owner lock.
    """

    def __init__(self, repo):
        self.repo = repo
        self._locks: Dict[str, asyncio.Lock] = {}
        self._selections: Dict[str, Selection] = {}

    def _lock(self, owner: str) -> asyncio.Lock:
        lock = self._locks.get(owner)
        if lock is None:
            lock = self._locks[owner] = asyncio.Lock()
        return lock

    def selection(self, owner: str, reference_date: str) -> Selection:
        sel = self._selections.get(owner)
        if sel is None:
            sel = self._selections[owner] = Selection(reference_date)
        sel.change_reference_date(reference_date)
        return sel

    async def _snapshot(self, owner: str, reference_date: str) -> TaskViews:
        owner = _require_owner(owner)
        date_only.parse(reference_date)
        tasks = await self.repo.list_all(owner)
        views = partition(tasks, reference_date)
        self.selection(owner, reference_date).retain(views.today)
        return views

    async def views(self, owner: str, reference_date: str, tab: Bucket = Bucket.today) -> TaskViews:
        views = await self._snapshot(owner, reference_date)
        self.selection(owner, reference_date).change_tab(tab)
        return views

    async def _apply(self, owner: str, reference_date: str, event: str, updates: List[TaskUpdate], **extra) -> TaskViews:
        if not updates:
            logger.info(event + ".noop", extra={"category": "tasks", "event": event + ".noop", "owner": owner, **extra})
            return await self._snapshot(owner, reference_date)

        try:
            await self.repo.batch_update(updates)
        except PartialBatchFailure as e:
            logger.warning(
                event + ".partial",
                extra={
                    "category": "tasks",
                    "event": event + ".partial",
                    "owner": owner,
                    "committed": len(e.committed_ids),
                    "pending": len(e.pending_ids),
                    **extra,
                },
            )
            e.views = await self._snapshot(owner, reference_date)
            raise

        logger.info(event, extra={"category": "tasks", "event": event, "owner": owner, "count": len(updates), **extra})
        return await self._snapshot(owner, reference_date)

    async def add_task(self, owner: str, title: str, reference_date: str, sort_order: Optional[int] = None) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            data = lifecycle.add(owner, title, views, band=sort_order)
            task_id = await self.repo.create(data.owner, data)
            logger.info(
                "task.create",
                extra={"category": "tasks", "event": "task.create", "owner": owner, "task_id": task_id,
                       "sort_order": data.sort_order, "sorter": data.sorter},
            )
            return await self._snapshot(owner, reference_date)

    async def advance_one_day(self, owner: str, task_id: str, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.advance_one_day(task_id, views)
            return await self._apply(owner, reference_date, "task.advance", updates, task_id=task_id)

    async def complete(self, owner: str, task_id: str, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.complete(task_id, views)
            return await self._apply(owner, reference_date, "task.complete", updates, task_id=task_id)

    async def remove(self, owner: str, task_id: str, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.remove(task_id, views)
            return await self._apply(owner, reference_date, "task.remove", updates, task_id=task_id)

    async def restore(self, owner: str, task_id: str, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.restore(task_id, views)
            return await self._apply(owner, reference_date, "task.restore", updates, task_id=task_id)

    async def change_band(self, owner: str, task_id: str, sort_order: int, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.change_band(task_id, sort_order, views)
            return await self._apply(owner, reference_date, "task.band", updates, task_id=task_id, sort_order=sort_order)

    async def reorder(self, owner: str, moved_id: str, target_index: int, reference_date: str) -> TaskViews:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            updates = lifecycle.reorder(moved_id, target_index, views)
            return await self._apply(
                owner, reference_date, "task.reorder", updates, task_id=moved_id, target_index=target_index
            )

    async def toggle_selected(self, owner: str, task_id: str, reference_date: str) -> List[str]:
        async with self._lock(owner):
            views = await self._snapshot(owner, reference_date)
            sel = self.selection(owner, reference_date)
            if any(t.id == task_id for t in views.today):
                sel.toggle(task_id)
            return sel.ordered(views.today)

    async def throw(
        self,
        owner: str,
        action: ThrowAction,
        reference_date: str,
        ids: Optional[Sequence[str]] = None,
    ) -> TaskViews:
        """
        Bulk throw. Uses `ids` when given, otherwise the owner's current
        selection; either way only tasks in Today count, in screen order.
        The selection is cleared afterwards even when the write fails.
        """
        async with self._lock(owner):
            sel = self.selection(owner, reference_date)
            try:
                views = await self._snapshot(owner, reference_date)
                if ids is not None:
                    sel = Selection(reference_date, ids)
                selected = sel.ordered(views.today)
                updates = lifecycle.bulk_throw(selected, action, views)
                return await self._apply(
                    owner, reference_date, "task.throw", updates, action=action.value, selected=len(selected)
                )
            finally:
                self.selection(owner, reference_date).clear()


def _require_owner(owner: str) -> str:
    owner = (owner or "").strip()
    if not owner:
        raise ValidationError("owner is required")
    return owner
