from __future__ import annotations
from pydantic import BaseModel, Field
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import uuid

from task_thrower.domain.date_only import FAR_FUTURE

MIN_BAND = 1
MAX_BAND = 24
DEFAULT_BAND = 24

# Fields a batch update may touch; id/owner/title/created_at are fixed after create.
MUTABLE_FIELDS = frozenset(
    {"due_date", "removed", "done_count", "last_done_date", "throw_count", "sort_order", "sorter"}
)


class Bucket(str, Enum):
    today = "today"
    future = "future"
    removed = "removed"


class ThrowAction(str, Enum):
    TOMORROW = "TOMORROW"
    DAY_AFTER = "DAY_AFTER"
    WEEK = "WEEK"
    MONTH = "MONTH"
    MONTH3 = "MONTH3"
    YEAR = "YEAR"
    DONE = "DONE"
    REMOVE = "REMOVE"
    SWIPE = "SWIPE"

    @property
    def days(self) -> Optional[int]:
        return _THROW_DAYS.get(self)


_THROW_DAYS = {
    ThrowAction.TOMORROW: 1,
    ThrowAction.DAY_AFTER: 2,
    ThrowAction.WEEK: 7,
    ThrowAction.MONTH: 30,
    ThrowAction.MONTH3: 90,
    ThrowAction.YEAR: 365,
}


class TaskCreate(BaseModel):
    owner: str
    title: str
    due_date: str
    sort_order: int = DEFAULT_BAND
    sorter: int = 0


class Task(BaseModel):
    id: str
    owner: str
    title: str
    due_date: str
    removed: bool = False
    done_count: int = 0
    last_done_date: Optional[str] = None
    throw_count: int = 0
    sort_order: int = DEFAULT_BAND
    sorter: int = 0
    created_at: int
    updated_at: int


class TaskViews(BaseModel):
    reference_date: str
    today: List[Task] = Field(default_factory=list)
    future: List[Task] = Field(default_factory=list)
    removed: List[Task] = Field(default_factory=list)


@dataclass(frozen=True)
class Increment:
    """Counter delta applied against the stored value at write time."""

    by: int = 1


@dataclass
class TaskUpdate:
    task_id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not writable: {sorted(unknown)}")


# --- API payloads ---

class AddTaskRequest(BaseModel):
    title: str = Field(max_length=500)
    sort_order: Optional[int] = None


class BandChangeRequest(BaseModel):
    sort_order: int


class ReorderRequest(BaseModel):
    moved_id: str
    target_index: int


class ThrowRequest(BaseModel):
    ids: Optional[List[str]] = None
    action: ThrowAction


def new_task_id() -> str:
    return str(uuid.uuid4())


def clamp_band(value: Any) -> int:
    n = _num(value, default=DEFAULT_BAND)
    return min(MAX_BAND, max(MIN_BAND, n))


def _num(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    if n != n or n in (float("inf"), float("-inf")):
        return default
    return int(n)


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_record(task_id: str, data: Mapping[str, Any]) -> Task:
    """
    Build a Task from a stored record that may predate the current schema.

    Missing band falls back to 24, missing sorter to the creation time, and a
    missing due date to FAR_FUTURE so such records sink to the end of Future.
    """
    created_at = max(0, _num(data.get("created_at")))
    updated_at = _num(data.get("updated_at")) or created_at

    sorter = _num(data.get("sorter"))
    if sorter <= 0:
        sorter = created_at or updated_at or 0

    band = _num(data.get("sort_order"))
    if band <= 0:
        band = DEFAULT_BAND

    return Task(
        id=str(task_id),
        owner=_str(data.get("owner")),
        title=_str(data.get("title")),
        due_date=_str(data.get("due_date")) or FAR_FUTURE,
        removed=bool(data.get("removed")),
        done_count=max(0, _num(data.get("done_count"))),
        last_done_date=_str(data.get("last_done_date")) or None,
        throw_count=max(0, _num(data.get("throw_count"))),
        sort_order=clamp_band(band),
        sorter=sorter,
        created_at=created_at,
        updated_at=updated_at,
    )
