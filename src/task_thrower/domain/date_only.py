from __future__ import annotations

import re
from datetime import date, timedelta

from task_thrower.domain.errors import InvalidDate

# Records without a due date sort after every real date.
FAR_FUTURE = "9999-12-31"

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$", re.ASCII)


def is_iso_date(value: str) -> bool:
    return isinstance(value, str) and _ISO_RE.fullmatch(value) is not None


def parse(value: str) -> date:
    m = _ISO_RE.fullmatch(value) if isinstance(value, str) else None
    if not m:
        raise InvalidDate(value)
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as e:
        raise InvalidDate(value) from e


def format_date(d: date) -> str:
    # date.isoformat() drops the padding for years < 1000
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def today() -> str:
    return format_date(date.today())


def add_days(value: str, days: int) -> str:
    """
    Shift an ISO date by whole days.

    `date` carries no time of day or offset, so DST transitions cannot move
    the result.
    """
    base = parse(value)
    try:
        return format_date(base + timedelta(days=days))
    except OverflowError as e:
        raise InvalidDate(value) from e


def format_short(value: str) -> str:
    """YY/MM/DD display form; anything that is not an ISO date passes through."""
    if not is_iso_date(value):
        return value
    y, m, d = value.split("-")
    return f"{int(y) % 100:02d}/{m}/{d}"
