from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from task_thrower.domain.task_models import Task, TaskUpdate, clamp_band

SORTER_STEP = 1000


@dataclass(frozen=True)
class Placement:
    task_id: str
    sort_order: int
    sorter: int

    def to_update(self) -> TaskUpdate:
        return TaskUpdate(self.task_id, {"sort_order": self.sort_order, "sorter": self.sorter})


def assign(sort_order: int, existing_today: Iterable[Task], exclude_id: Optional[str] = None) -> int:
    """Next sorter at the tail of a band: band max + step, or one step for an empty band."""
    band = clamp_band(sort_order)
    top = 0
    for t in existing_today:
        if t.sort_order == band and t.id != exclude_id:
            top = max(top, t.sorter or 0)
    return top + SORTER_STEP


def reorder(today: Sequence[Task], moved_id: str, target_index: int) -> List[Placement]:
    """
    Apply a drag-and-drop move to the whole Today list.

    The moved task takes the band of its new previous neighbour (the next one
    when dropped at the head), then every task is renumbered by position, so
    the result is strictly increasing whatever sorters existed before.
    """
    items = list(today)
    old_index = next((i for i, t in enumerate(items) if t.id == moved_id), None)
    if old_index is None:
        return []

    moved = items.pop(old_index)
    target = min(max(0, int(target_index)), len(items))
    items.insert(target, moved)

    band = moved.sort_order
    if target > 0:
        band = items[target - 1].sort_order
    elif target + 1 < len(items):
        band = items[target + 1].sort_order

    out: List[Placement] = []
    for pos, t in enumerate(items):
        so = clamp_band(band) if t.id == moved.id else t.sort_order
        out.append(Placement(t.id, so, (pos + 1) * SORTER_STEP))
    return out


def change_band(task_id: str, new_band: int, today: Sequence[Task]) -> Optional[Placement]:
    if not any(t.id == task_id for t in today):
        return None
    band = clamp_band(new_band)
    return Placement(task_id, band, assign(band, today, exclude_id=task_id))
