"""
Field deltas for every user action on a task.

Nothing here touches storage. Each function takes the current views for one
reference date and returns what to write: a TaskCreate for add, otherwise a
list of TaskUpdate (empty when the action does not apply). Targets missing from
the expected view are ignored, since another client may have just moved them.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from task_thrower.core import ordering
from task_thrower.core.partitioner import find
from task_thrower.domain import date_only
from task_thrower.domain.errors import ValidationError
from task_thrower.domain.task_models import (
    DEFAULT_BAND,
    Increment,
    TaskCreate,
    TaskUpdate,
    TaskViews,
    ThrowAction,
    clamp_band,
)

# first day offset for SWIPE; the i-th selected task lands on R + SWIPE_START + i
SWIPE_START = 4


def add(owner: str, title: str, views: TaskViews, band: Optional[int] = None) -> TaskCreate:
    title = (title or "").strip()
    if not title:
        raise ValidationError("title is required")
    owner = (owner or "").strip()
    if not owner:
        raise ValidationError("owner is required")

    so = clamp_band(DEFAULT_BAND if band is None else band)
    return TaskCreate(
        owner=owner,
        title=title,
        due_date=views.reference_date,
        sort_order=so,
        sorter=ordering.assign(so, views.today),
    )


def advance_one_day(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    if find(views.today, task_id) is None:
        return []
    tomorrow = date_only.add_days(views.reference_date, 1)
    return [TaskUpdate(task_id, {"due_date": tomorrow, "throw_count": Increment()})]


def complete(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    if find(views.today, task_id) is None:
        return []
    return [TaskUpdate(task_id, {"last_done_date": views.reference_date, "done_count": Increment()})]


def remove(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    # plain remove is not a throw: throw_count stays as is
    known = views.today + views.future + views.removed
    if find(known, task_id) is None:
        return []
    return [TaskUpdate(task_id, {"removed": True})]


def bulk_throw(selected_ids: Sequence[str], action: ThrowAction, views: TaskViews) -> List[TaskUpdate]:
    """
    Throw every selected Today task at once.

    `selected_ids` must already be in screen order; SWIPE spreads the tasks
    over consecutive days starting four days out, in that order.
    """
    ids = list(dict.fromkeys(i for i in selected_ids if i))
    if not ids:
        return []

    r = views.reference_date
    if action is ThrowAction.DONE:
        return [
            TaskUpdate(i, {"last_done_date": r, "done_count": Increment(), "throw_count": Increment()})
            for i in ids
        ]
    if action is ThrowAction.REMOVE:
        return [TaskUpdate(i, {"removed": True, "throw_count": Increment()}) for i in ids]
    if action is ThrowAction.SWIPE:
        return [
            TaskUpdate(i, {"due_date": date_only.add_days(r, SWIPE_START + n), "throw_count": Increment()})
            for n, i in enumerate(ids)
        ]

    target = date_only.add_days(r, action.days)
    return [TaskUpdate(i, {"due_date": target, "throw_count": Increment()}) for i in ids]


def restore_from_future(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    task = find(views.future, task_id)
    if task is None:
        return []
    sorter = ordering.assign(task.sort_order, views.today)
    return [TaskUpdate(task_id, {"due_date": views.reference_date, "sorter": sorter})]


def restore_from_removed(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    task = find(views.removed, task_id)
    if task is None:
        return []
    sorter = ordering.assign(task.sort_order, views.today)
    return [TaskUpdate(task_id, {"due_date": views.reference_date, "removed": False, "sorter": sorter})]


def restore(task_id: str, views: TaskViews) -> List[TaskUpdate]:
    return restore_from_future(task_id, views) or restore_from_removed(task_id, views)


def change_band(task_id: str, band: int, views: TaskViews) -> List[TaskUpdate]:
    placement = ordering.change_band(task_id, band, views.today)
    return [placement.to_update()] if placement else []


def reorder(moved_id: str, target_index: int, views: TaskViews) -> List[TaskUpdate]:
    return [p.to_update() for p in ordering.reorder(views.today, moved_id, target_index)]
