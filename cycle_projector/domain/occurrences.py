"""Occurrence projection for recurring transactions"""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

from cycle_projector.domain.calendar import PeriodUnit, advance
from cycle_projector.domain.models import Occurrence, Recurrence, RecurringObligation
from cycle_projector.utils.date_utils import last_day_of_month, months_between, start_of_day

# Upper bound on occurrences emitted per call; a 14-day feed window never gets close
MAX_PROJECTION_STEPS = 200


def first_index_on_or_after(anchor: date, unit: PeriodUnit, target: date) -> int:
    """
    Smallest k such that advance(anchor, k, unit) >= target.

    Computed from the calendar distance instead of stepping from the anchor, so
    anchors decades in the past cost the same as recent ones. Every occurrence
    is derived from the anchor itself, which keeps the clamped phase identical
    to step-by-step iteration.
    """
    if target <= anchor:
        return 0

    if unit is PeriodUnit.WEEK:
        return -(-(target - anchor).days // 7)

    # One period short of the target month, so the estimate never overshoots
    index = max(months_between(anchor, target) // unit.months - 1, 0)
    while advance(anchor, index, unit) < target:
        index += 1
    return index


def project(
    obligation: RecurringObligation,
    window_start: Union[date, datetime],
    window_end: Union[date, datetime],
    now: Union[date, datetime],
    max_steps: int = MAX_PROJECTION_STEPS,
) -> Iterator[Occurrence]:
    """
    Yield the obligation's occurrences inside [window_start, window_end].

    Requirements:
    - Non-recurring obligations produce nothing
    - Dates are inclusive on both ends and strictly increasing
    - is_past compares against the start of "now"'s day
    - At most max_steps occurrences; hitting the cap just ends the sequence

    Calling again with the same arguments yields the same sequence.

    Example:
        anchor 2024-01-31, monthly, window Feb-May 2024
        -> 2024-02-29, 2024-03-31, 2024-04-30, 2024-05-31
    """
    unit = Recurrence.parse(obligation.recurrence).unit
    if unit is None:
        return

    start = start_of_day(window_start)
    end = start_of_day(window_end)
    today = start_of_day(now)
    anchor = obligation.anchor_date

    index = first_index_on_or_after(anchor, unit, start)
    for _ in range(max_steps):
        candidate = advance(anchor, index, unit)
        if candidate > end:
            return

        yield Occurrence(
            obligation_id=obligation.id,
            projected_date=candidate,
            is_past=candidate < today,
        )
        index += 1


def notification_window(
    now: Union[date, datetime],
    days_before: int = 7,
    days_after: int = 14,
) -> tuple[date, date]:
    """Window around today: recent past-due items plus the upcoming ones"""
    today = start_of_day(now)
    return today - timedelta(days=days_before), today + timedelta(days=days_after)


def latest_occurrence_in_month(
    obligation: RecurringObligation,
    now: Union[date, datetime],
) -> Optional[Occurrence]:
    """Most recent occurrence this calendar month, up to and including today"""
    today = start_of_day(now)
    latest = None
    for occurrence in project(obligation, today.replace(day=1), today, now):
        latest = occurrence
    return latest


def expected_occurrence_in_month(
    obligation: RecurringObligation,
    now: Union[date, datetime],
) -> Optional[Occurrence]:
    """
    The payment this calendar month is tracked against.

    The latest occurrence up to today when one has landed, otherwise the next
    one still due this month. None when the obligation skips the month.
    """
    latest = latest_occurrence_in_month(obligation, now)
    if latest is not None:
        return latest

    today = start_of_day(now)
    month_end = today.replace(day=last_day_of_month(today.year, today.month))
    return next(iter(project(obligation, today, month_end, now)), None)
