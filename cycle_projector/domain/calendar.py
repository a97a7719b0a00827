"""Clamped calendar arithmetic for recurring schedules"""

from datetime import date, timedelta
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta


class PeriodUnit(str, Enum):
    """Step size of a recurring schedule"""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def months(self) -> int:
        """Months per period (0 for weekly schedules)"""
        if self is PeriodUnit.YEAR:
            return 12
        if self is PeriodUnit.MONTH:
            return 1
        return 0


def advance(
    start: date,
    periods: int,
    unit: PeriodUnit,
    anchor_day: Optional[int] = None,
) -> date:
    """
    Move a date by a number of periods, clamping day-of-month.

    Monthly and annual steps land on min(anchor_day, last day of the target
    month). anchor_day defaults to start.day; pass the schedule's original day
    when chaining steps so that a 31st anchor returns to the 31st after a
    short month.

    Examples:
        advance(date(2024, 1, 31), 1, PeriodUnit.MONTH) -> 2024-02-29
        advance(date(2024, 2, 29), 1, PeriodUnit.MONTH, anchor_day=31) -> 2024-03-31
        advance(date(2024, 2, 29), 1, PeriodUnit.YEAR) -> 2025-02-28
    """
    if unit is PeriodUnit.WEEK:
        return start + timedelta(weeks=periods)

    # relativedelta clamps an absolute day to the target month's length
    day = anchor_day if anchor_day is not None else start.day
    return start + relativedelta(months=periods * unit.months, day=day)
