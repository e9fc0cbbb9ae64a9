# tests/test_lifecycle.py

from __future__ import annotations

import pytest

from task_thrower.core import lifecycle
from task_thrower.core.partitioner import partition
from task_thrower.domain.errors import ValidationError
from task_thrower.domain.task_models import Increment, TaskUpdate, ThrowAction

from factories import OWNER, make_task

R = "2024-06-01"


def _views():
    return partition(
        [
            make_task("t1", due_date=R, sort_order=10, sorter=1000),
            make_task("t2", due_date="2024-05-20", sort_order=10, sorter=2000),
            make_task("t3", due_date=R, sort_order=3, sorter=1000),
            make_task("f1", due_date="2024-06-09", sort_order=10, sorter=500),
            make_task("r1", due_date="2024-05-01", removed=True, sort_order=10, sorter=100),
            make_task("r2", due_date="2024-05-02", removed=True, sort_order=7, sorter=100),
        ],
        R,
    )


def _fields(updates):
    return {u.task_id: u.fields for u in updates}


def test_add_uses_reference_date_and_band_tail() -> None:
    data = lifecycle.add(OWNER, "  write report  ", _views(), band=10)
    assert data.title == "write report"
    assert data.due_date == R
    assert data.sort_order == 10
    assert data.sorter == 3000


def test_add_defaults_to_last_band() -> None:
    data = lifecycle.add(OWNER, "x", _views())
    assert (data.sort_order, data.sorter) == (24, 1000)


def test_add_clamps_band() -> None:
    assert lifecycle.add(OWNER, "x", _views(), band=40).sort_order == 24
    assert lifecycle.add(OWNER, "x", _views(), band=-2).sort_order == 1


@pytest.mark.parametrize("title", ["", "   ", None])
def test_add_rejects_blank_title(title) -> None:
    with pytest.raises(ValidationError):
        lifecycle.add(OWNER, title, _views())


def test_add_rejects_blank_owner() -> None:
    with pytest.raises(ValidationError):
        lifecycle.add(" ", "x", _views())


def test_advance_one_day_counts_a_throw() -> None:
    assert _fields(lifecycle.advance_one_day("t1", _views())) == {
        "t1": {"due_date": "2024-06-02", "throw_count": Increment(1)}
    }


def test_advance_ignores_tasks_outside_today() -> None:
    assert lifecycle.advance_one_day("f1", _views()) == []
    assert lifecycle.advance_one_day("nope", _views()) == []


def test_complete_sets_last_done_and_counts_once() -> None:
    assert _fields(lifecycle.complete("t2", _views())) == {
        "t2": {"last_done_date": R, "done_count": Increment(1)}
    }
    assert lifecycle.complete("r1", _views()) == []


def test_plain_remove_is_not_a_throw() -> None:
    assert _fields(lifecycle.remove("f1", _views())) == {"f1": {"removed": True}}
    assert lifecycle.remove("ghost", _views()) == []


@pytest.mark.parametrize(
    "action,expected",
    [
        (ThrowAction.TOMORROW, "2024-06-02"),
        (ThrowAction.DAY_AFTER, "2024-06-03"),
        (ThrowAction.WEEK, "2024-06-08"),
        (ThrowAction.MONTH, "2024-07-01"),
        (ThrowAction.MONTH3, "2024-08-30"),
        (ThrowAction.YEAR, "2025-06-01"),
    ],
)
def test_bulk_throw_by_offset(action: ThrowAction, expected: str) -> None:
    out = _fields(lifecycle.bulk_throw(["t1", "t3"], action, _views()))
    assert out == {
        "t1": {"due_date": expected, "throw_count": Increment(1)},
        "t3": {"due_date": expected, "throw_count": Increment(1)},
    }


def test_bulk_throw_done_counts_done_and_throw() -> None:
    out = _fields(lifecycle.bulk_throw(["t1"], ThrowAction.DONE, _views()))
    assert out == {"t1": {"last_done_date": R, "done_count": Increment(1), "throw_count": Increment(1)}}


def test_bulk_throw_remove_counts_a_throw() -> None:
    out = _fields(lifecycle.bulk_throw(["t1", "t2"], ThrowAction.REMOVE, _views()))
    assert out["t2"] == {"removed": True, "throw_count": Increment(1)}


def test_bulk_swipe_spreads_from_four_days_out() -> None:
    out = lifecycle.bulk_throw(["A", "B", "C"], ThrowAction.SWIPE, _views())
    assert [(u.task_id, u.fields["due_date"]) for u in out] == [
        ("A", "2024-06-05"),
        ("B", "2024-06-06"),
        ("C", "2024-06-07"),
    ]
    assert all(u.fields["throw_count"] == Increment(1) for u in out)


def test_bulk_throw_empty_or_duplicate_selection() -> None:
    assert lifecycle.bulk_throw([], ThrowAction.WEEK, _views()) == []
    out = lifecycle.bulk_throw(["t1", "t1", ""], ThrowAction.WEEK, _views())
    assert [u.task_id for u in out] == ["t1"]


def test_restore_from_future_appends_to_its_band() -> None:
    assert _fields(lifecycle.restore_from_future("f1", _views())) == {"f1": {"due_date": R, "sorter": 3000}}
    assert lifecycle.restore_from_future("r1", _views()) == []


def test_restore_from_removed() -> None:
    # band 10 already holds sorters 1000 and 2000 in Today
    assert _fields(lifecycle.restore_from_removed("r1", _views())) == {
        "r1": {"due_date": R, "removed": False, "sorter": 3000}
    }
    assert _fields(lifecycle.restore_from_removed("r2", _views()))["r2"]["sorter"] == 1000


def test_restore_picks_the_right_source() -> None:
    assert "removed" not in lifecycle.restore("f1", _views())[0].fields
    assert lifecycle.restore("r1", _views())[0].fields["removed"] is False
    assert lifecycle.restore("t1", _views()) == []


def test_change_band_and_reorder_emit_ordering_fields() -> None:
    assert _fields(lifecycle.change_band("t3", 10, _views())) == {"t3": {"sort_order": 10, "sorter": 3000}}
    out = lifecycle.reorder("t1", 0, _views())
    assert [u.task_id for u in out] == ["t1", "t3", "t2"]
    assert out[0].fields == {"sort_order": 3, "sorter": 1000}


def test_task_update_rejects_fixed_fields() -> None:
    with pytest.raises(ValueError):
        TaskUpdate("t1", {"title": "renamed"})
