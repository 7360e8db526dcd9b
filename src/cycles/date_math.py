"""Calendar-day arithmetic shared by the cycle engine.

Everything here works on ``datetime.date`` values, so there is no time of
day and no partial-day rounding.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator


def add_days(d: date, n: int) -> date:
    """Return ``d`` shifted by ``n`` calendar days (``n`` may be negative)."""
    return d + timedelta(days=n)


def day_difference(a: date, b: date) -> int:
    """Return the number of calendar days from ``a`` to ``b``.

    Negative when ``b`` is earlier than ``a``.
    """
    return (b - a).days


def iso_date(d: date) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of ``d``."""
    return d.isoformat()


def to_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime, or ISO string to a calendar date.

    Stored snapshots may carry full timestamps such as
    ``2024-01-01T08:30:00.000Z``; only the calendar part is kept.

    Raises:
        TypeError:  For unsupported types.
        ValueError: For strings that are not ISO dates or timestamps.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) >= 10 and (len(text) == 10 or text[10] in "T "):
            return date.fromisoformat(text[:10])
        raise ValueError(f"Not an ISO date: {value!r}")
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive.

    Yields nothing when ``end`` is before ``start``.
    """
    for offset in range(day_difference(start, end) + 1):
        yield add_days(start, offset)
