"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from typing import Union


def start_of_day(moment: Union[date, datetime]) -> date:
    """Calendar day of a point in time (time-of-day dropped)"""
    if isinstance(moment, datetime):
        return moment.date()
    return moment


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month (28-31)"""
    return calendar.monthrange(year, month)[1]


def month_ordinal(year: int, month: int) -> int:
    """Months since year 0, so that month differences are plain subtraction"""
    return year * 12 + (month - 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (days ignored)"""
    return month_ordinal(end.year, end.month) - month_ordinal(start.year, start.month)


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """(year, month) moved by a number of months, either direction"""
    year_offset, month_index = divmod(month_ordinal(year, month) + months, 12)
    return year_offset, month_index + 1
