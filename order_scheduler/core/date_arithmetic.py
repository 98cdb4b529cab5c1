"""
Holiday-aware working-day arithmetic.
"""

import logging
from datetime import date, timedelta
from typing import Iterable

from order_scheduler.core.classifier import holiday_dates_in_range, is_holiday
from order_scheduler.errors import InvalidRange, NoWorkingDayFound
from order_scheduler.data.schemas import HolidayRule, StartDateResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_WALK_DAYS = 3650


def coerce_working_days(value) -> int:
    """Coerce a user supplied working-day count to an integer of at least 1."""
    try:
        days = int(value)
    except (TypeError, ValueError):
        return 1
    return max(days, 1)


def _walk(
    anchor: date,
    working_days: int,
    rules: Iterable[HolidayRule],
    step: int,
    max_days: int,
) -> date:
    """
    Step one calendar day at a time from the anchor until enough working days are seen.

    The anchor always counts as the first working day.
    """
    if working_days < 1:
        raise InvalidRange(f"Working days must be at least 1, got {working_days}")

    rules = list(rules)
    current = anchor
    remaining = working_days - 1
    traversed = 0

    while remaining > 0:
        if traversed >= max_days:
            raise NoWorkingDayFound(anchor, working_days, max_days)
        try:
            current += timedelta(days=step)
        except OverflowError:
            raise InvalidRange(
                f"Walking {working_days} working days from {anchor.isoformat()} "
                "leaves the supported date range"
            )
        traversed += 1
        if not is_holiday(current, rules):
            remaining -= 1

    return current


def compute_start_date(
    end_date: date,
    working_days: int,
    rules: Iterable[HolidayRule],
    max_days: int = DEFAULT_MAX_WALK_DAYS,
) -> StartDateResult:
    """
    Compute the start date for an order ending on end_date.

    Walks backward from the end date, skipping holidays, until the inclusive
    range [start, end] holds working_days working days. The end date counts as
    one working day regardless of its own holiday status. The holidays inside
    the range are collected by a separate scan.

    Args:
        end_date: Last day of work.
        working_days: Required number of working days (at least 1).
        rules: Holiday rules.
        max_days: Maximum calendar days the walk may traverse.

    Returns:
        StartDateResult with the start date and holidays in the range.

    Raises:
        InvalidRange: If working_days is below 1 or the walk runs past
            the first or last representable date.
        NoWorkingDayFound: If the walk exceeds max_days.
    """
    rules = list(rules)
    start_date = _walk(end_date, working_days, rules, -1, max_days)
    holidays = holiday_dates_in_range(start_date, end_date, rules)
    logger.debug(
        f"Start date for {working_days} working days ending {end_date}: "
        f"{start_date} ({len(holidays)} holidays)"
    )
    return StartDateResult(start_date=start_date, holiday_dates=holidays)


def compute_end_date(
    start_date: date,
    working_days: int,
    rules: Iterable[HolidayRule],
    max_days: int = DEFAULT_MAX_WALK_DAYS,
) -> date:
    """
    Compute the end date for an order starting on start_date.

    The start date counts as the first working day; the walk moves forward
    skipping holidays until working_days working days have been visited.

    Raises:
        InvalidRange: If working_days is below 1 or the walk runs past
            the first or last representable date.
        NoWorkingDayFound: If the walk exceeds max_days.
    """
    end_date = _walk(start_date, working_days, rules, 1, max_days)
    logger.debug(f"End date for {working_days} working days from {start_date}: {end_date}")
    return end_date


def latest_start_date(
    due_date: date,
    working_days: int,
    rules: Iterable[HolidayRule],
    max_days: int = DEFAULT_MAX_WALK_DAYS,
) -> date:
    """Latest start date that still finishes working_days working days by the due date."""
    return compute_start_date(due_date, working_days, rules, max_days).start_date
