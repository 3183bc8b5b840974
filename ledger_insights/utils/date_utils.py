"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Tuple


def month_key(day: date) -> str:
    """Format a date as its YYYY-MM month key"""
    return f"{day.year}-{day.month:02d}"


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length"""
    month_index = from_date.year * 12 + (from_date.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing day"""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def months_between(start: date, end: date) -> int:
    """Calendar-month difference from start to end (day of month ignored)"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end"""
    return (end - start).days


def lookback_start(months: int, today: date | None = None) -> date:
    """Earliest date included in a lookback window of the given number of months"""
    if today is None:
        today = date.today()
    return add_months(today, -months)


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)
