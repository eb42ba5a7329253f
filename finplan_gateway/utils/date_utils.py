"""Date manipulation utilities for billing cycles and recurring schedules"""

import calendar
from datetime import date, timedelta
from typing import Tuple


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month"""
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month to the real length of the month (31 in Feb -> 28/29)"""
    return min(day, last_day_of_month(year, month))


def shift_month(year: int, month: int, n: int) -> Tuple[int, int]:
    """Move (year, month) by n months, rolling over year boundaries"""
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day instead of overflowing into the next month"""
    return date(year, month, clamp_day_to_month(year, month, day))


def add_months(from_date: date, n: int) -> date:
    """Add n calendar months keeping the day-of-month where the target month allows"""
    year, month = shift_month(from_date.year, from_date.month, n)
    return clamped_date(year, month, from_date.day)


def add_cycles(from_date: date, kind, n: int) -> date:
    """
    Advance a date by n recurrence cycles.

    weekly -> 7n days, monthly -> n months, yearly -> n years (29 Feb -> 28 Feb).
    Any other kind ("fixed" or unrecognized) advances monthly.
    """
    value = getattr(kind, "value", kind)
    if value == "weekly":
        return from_date + timedelta(days=7 * n)
    if value == "yearly":
        return add_months(from_date, 12 * n)
    return add_months(from_date, n)


def month_bounds(reference: date) -> Tuple[date, date]:
    """First and last day of the month containing reference"""
    first = reference.replace(day=1)
    last = reference.replace(day=last_day_of_month(reference.year, reference.month))
    return first, last


def days_between(later: date, earlier: date) -> int:
    """Signed whole-day difference (later - earlier)"""
    return (later - earlier).days
