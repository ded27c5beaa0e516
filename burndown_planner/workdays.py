"""Weekend-aware date arithmetic (no holiday calendar).

Results that would fall past ``date.max`` are pinned to it. ``date.max``
(9999-12-31) is a Friday, so a pinned result is still a working day.
"""

from __future__ import annotations

from datetime import date, timedelta

ONE_DAY = timedelta(days=1)
WORKDAYS_PER_WEEK = 5


def is_workday(value: date) -> bool:
    return value.weekday() < 5


def _shift(value: date, days: int) -> date:
    try:
        return value + timedelta(days=days)
    except OverflowError:
        return date.max


def next_workday(value: date) -> date:
    """Return ``value`` if it is a working day, else the following Monday."""
    current = value
    while not is_workday(current):
        current += ONE_DAY
    return current


def add_workdays(value: date, workdays: int) -> date:
    """Advance ``value`` by ``workdays`` working days, skipping weekends.

    The start date itself is never counted, so adding one working day to a
    Friday lands on the next Monday. Adding zero snaps to the next working day.
    """
    if workdays < 0:
        raise ValueError("workdays must be non-negative")
    if workdays == 0:
        return next_workday(value)
    # A weekend start counts like the Friday before it.
    current = value
    while not is_workday(current):
        current -= ONE_DAY
    weeks, rest = divmod(workdays, WORKDAYS_PER_WEEK)
    current = _shift(current, weeks * 7)
    while rest:
        current = _shift(current, 1)
        if is_workday(current):
            rest -= 1
    return current


def workdays_diff(first: date, second: date) -> int:
    """Signed count of working days in ``[min, max)`` of the two dates.

    Negative when ``first`` is later than ``second``.
    """
    start, end = (first, second) if first < second else (second, first)
    weeks, _ = divmod((end - start).days, 7)
    count = weeks * WORKDAYS_PER_WEEK
    current = start + timedelta(weeks=weeks)
    while current < end:
        if is_workday(current):
            count += 1
        current += ONE_DAY
    return count if first < second else -count
