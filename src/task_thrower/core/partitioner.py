from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from task_thrower.domain.task_models import Bucket, Task, TaskViews


def classify(task: Task, reference_date: str) -> Bucket:
    if task.removed:
        return Bucket.removed
    # ISO dates compare chronologically as text; due == reference stays in Today
    if task.due_date <= reference_date:
        return Bucket.today
    return Bucket.future


def partition(tasks: Iterable[Task], reference_date: str) -> TaskViews:
    groups: Dict[Bucket, List[Task]] = {b: [] for b in Bucket}
    for t in tasks:
        groups[classify(t, reference_date)].append(t)

    today = sorted(groups[Bucket.today], key=lambda t: (t.sort_order, t.sorter or 0, t.created_at or 0))
    future = sorted(groups[Bucket.future], key=lambda t: (t.due_date, t.created_at or 0))
    # two stable passes: updated_at desc, then due_date desc
    removed = sorted(groups[Bucket.removed], key=lambda t: t.updated_at or 0, reverse=True)
    removed.sort(key=lambda t: t.due_date, reverse=True)

    return TaskViews(reference_date=reference_date, today=today, future=future, removed=removed)


class Selection:
    """
    Tasks ticked for a bulk throw.

    A selection only ever refers to the Today view of one reference date:
    moving the date or leaving the Today tab empties it, and ids that drop out
    of Today are forgotten on the next re-partition.
    """

    def __init__(self, reference_date: str, ids: Iterable[str] = ()):
        self.reference_date = reference_date
        self._ids: Dict[str, None] = dict.fromkeys(str(i) for i in ids if i)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def toggle(self, task_id: str) -> bool:
        if task_id in self._ids:
            del self._ids[task_id]
            return False
        self._ids[task_id] = None
        return True

    def clear(self) -> None:
        self._ids.clear()

    def change_reference_date(self, reference_date: str) -> None:
        if reference_date != self.reference_date:
            self.clear()
        self.reference_date = reference_date

    def change_tab(self, tab: Bucket) -> None:
        if tab is not Bucket.today:
            self.clear()

    def retain(self, today: Sequence[Task]) -> None:
        visible = {t.id for t in today}
        self._ids = {i: None for i in self._ids if i in visible}

    def ordered(self, today: Sequence[Task]) -> List[str]:
        """Selected ids in screen order; ids not in Today are left out."""
        return [t.id for t in today if t.id in self._ids]


def find(tasks: Iterable[Task], task_id: str) -> Optional[Task]:
    return next((t for t in tasks if t.id == task_id), None)
