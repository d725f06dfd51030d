"""
Calendar arithmetic for iterations.

Working days are Monday to Friday. There is no holiday calendar and no
per-project weekend configuration.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import List

from pydantic import BaseModel

from ..core.exceptions import InvalidRangeError, InvalidWeekError

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
DAYS_IN_WEEK = 7


class IterationWeek(BaseModel):
    week_index: int
    week_start: date
    week_end: date
    working_days: int


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidRangeError(f"Start date {start} is after end date {end}")


def is_working_day(day: date) -> bool:
    return day.weekday() < 5


def day_name(day: date) -> str:
    return DAYS_OF_WEEK[day.weekday()]


def working_days(start: date, end: date) -> int:
    """Count Monday-Friday dates in the inclusive range [start, end]."""
    _check_range(start, end)

    full_weeks, remainder = divmod((end - start).days + 1, DAYS_IN_WEEK)
    count = full_weeks * 5
    for offset in range(remainder):
        if is_working_day(start + timedelta(days=offset)):
            count += 1
    return count


def iteration_weeks(start: date, end: date) -> List[IterationWeek]:
    """Split an iteration into consecutive 7-day weeks starting at ``start``.

    The last week is truncated at ``end``. Week indexes are 1-based.
    """
    _check_range(start, end)

    weeks: List[IterationWeek] = []
    week_start = start
    index = 1
    while week_start <= end:
        week_end = min(week_start + timedelta(days=DAYS_IN_WEEK - 1), end)
        weeks.append(IterationWeek(
            week_index=index,
            week_start=week_start,
            week_end=week_end,
            working_days=working_days(week_start, week_end)
        ))
        week_start = week_end + timedelta(days=1)
        index += 1
    return weeks


def week_count(start: date, end: date) -> int:
    _check_range(start, end)
    return -(-((end - start).days + 1) // DAYS_IN_WEEK)


def week_bounds(start: date, end: date, week_index: int) -> IterationWeek:
    """Return a single week of the iteration, validating the index."""
    total = week_count(start, end)
    if isinstance(week_index, bool) or not isinstance(week_index, int) or not 1 <= week_index <= total:
        raise InvalidWeekError(f"Week {week_index} is outside the iteration (1-{total})")

    week_start = start + timedelta(days=(week_index - 1) * DAYS_IN_WEEK)
    week_end = min(week_start + timedelta(days=DAYS_IN_WEEK - 1), end)
    return IterationWeek(
        week_index=week_index,
        week_start=week_start,
        week_end=week_end,
        working_days=working_days(week_start, week_end)
    )
