# File: fitnessgap/utils/dates.py
"""
Calendar-day arithmetic for scheduling horizons and reporting periods.
"""

import datetime
from typing import Iterator, Tuple

from fitnessgap.models.enums import Horizon, StatsPeriod

# Monday=0 .. Friday=4
BUSINESS_WEEKDAYS = range(0, 5)


def is_business_day(day: datetime.date) -> bool:
    return day.weekday() in BUSINESS_WEEKDAYS


def business_days(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    """Yield Monday-Friday dates in [start, end)."""
    day = start
    while day < end:
        if is_business_day(day):
            yield day
        day += datetime.timedelta(days=1)


def count_business_days(start: datetime.date, end: datetime.date) -> int:
    return sum(1 for _ in business_days(start, end))


def first_of_next_month(day: datetime.date) -> datetime.date:
    if day.month == 12:
        return datetime.date(day.year + 1, 1, 1)
    return datetime.date(day.year, day.month + 1, 1)


def scheduling_range(horizon: Horizon, today: datetime.date) -> Tuple[datetime.date, datetime.date]:
    """
    Days a scheduling run walks, as [start, end).

    Args:
        horizon: WEEK (7 days from today) or MONTH (until month end)
        today: First day of the range

    Returns:
        Tuple of (start, exclusive end)
    """
    if horizon == Horizon.WEEK:
        return today, today + datetime.timedelta(days=7)
    return today, first_of_next_month(today)


def period_range(period, today: datetime.date) -> Tuple[datetime.date, datetime.date]:
    """
    Whole calendar period containing today, as [start, end).

    Weeks start on Sunday.
    """
    if isinstance(period, Horizon):
        period = StatsPeriod(period.value)

    if period == StatsPeriod.WEEK:
        start = today - datetime.timedelta(days=(today.weekday() + 1) % 7)
        return start, start + datetime.timedelta(days=7)
    if period == StatsPeriod.YEAR:
        return datetime.date(today.year, 1, 1), datetime.date(today.year + 1, 1, 1)
    return today.replace(day=1), first_of_next_month(today)
