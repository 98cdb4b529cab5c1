"""
Holiday classification against a set of holiday rules.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from order_scheduler.errors import InvalidRange
from order_scheduler.data.schemas import HolidayKind, HolidayRule


def weekday_index(day: date) -> int:
    """Weekday number with 0 = Sunday .. 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _active(rules: Iterable[HolidayRule], kind: HolidayKind) -> List[HolidayRule]:
    return [rule for rule in rules if rule.kind == kind and not rule.cancelled]


def _recurring_applies(rule: HolidayRule, day: date) -> bool:
    # A recurring rule without a start date never applies
    if rule.weekday is None or rule.effective_from is None:
        return False
    return rule.weekday == weekday_index(day) and day >= rule.effective_from


def _matching_holidays(day: date, rules: List[HolidayRule]) -> List[HolidayRule]:
    specific = [r for r in _active(rules, HolidayKind.SPECIFIC_DATE) if r.holiday_date == day]
    recurring = [r for r in _active(rules, HolidayKind.DAY_OF_WEEK) if _recurring_applies(r, day)]
    return specific + recurring


def is_exception(day: date, rules: Iterable[HolidayRule]) -> bool:
    """Check whether an active working-day exception exists for a date."""
    return any(rule.holiday_date == day for rule in _active(rules, HolidayKind.EXCEPTION))


def is_holiday(day: date, rules: Iterable[HolidayRule]) -> bool:
    """
    Decide whether a date is a holiday.

    Evaluation order:
    1. An active exception on the date makes it a working day, whatever else matches.
    2. An active specific-date rule on the date makes it a holiday.
    3. An active recurring rule for the weekday, on or after its effective date,
       makes it a holiday.
    4. Anything else is a working day. Weekends are not implied.

    Args:
        day: Date to classify.
        rules: Holiday rules, cancelled ones are ignored.

    Returns:
        True if the date is a holiday, False otherwise.
    """
    rules = list(rules)
    if is_exception(day, rules):
        return False
    return bool(_matching_holidays(day, rules))


def holiday_name(
    day: date, rules: Iterable[HolidayRule], apply_exceptions: bool = True
) -> Optional[str]:
    """
    Get the display name of the holiday on a date.

    Names of all matching specific-date and recurring rules are joined with ", ".

    Args:
        day: Date to look up.
        rules: Holiday rules, cancelled ones are ignored.
        apply_exceptions: When True an exception on the date hides the holiday
            names, matching what is_holiday reports.

    Returns:
        Joined holiday names, or None if no rule matches.
    """
    rules = list(rules)
    if apply_exceptions and is_exception(day, rules):
        return None
    matching = _matching_holidays(day, rules)
    if not matching:
        return None
    return ", ".join(rule.name for rule in matching)


def exception_name(day: date, rules: Iterable[HolidayRule]) -> Optional[str]:
    """Joined names of the working-day exceptions on a date, or None."""
    matching = [r for r in _active(rules, HolidayKind.EXCEPTION) if r.holiday_date == day]
    if not matching:
        return None
    return ", ".join(rule.name for rule in matching)


def is_weekend_heuristic(day: date) -> bool:
    """
    Saturday/Sunday check for display hints only.

    Not a holiday classification: scheduling always goes through is_holiday.
    """
    return weekday_index(day) in (0, 6)


def iter_days(start: date, end: date):
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        if current == end:
            return
        current += timedelta(days=1)


def holiday_dates_in_range(start: date, end: date, rules: Iterable[HolidayRule]) -> List[date]:
    """
    Collect the holidays within an inclusive date range.

    Args:
        start: First date of the range.
        end: Last date of the range.
        rules: Holiday rules.

    Returns:
        Sorted list of dates classified as holidays.

    Raises:
        InvalidRange: If start is after end.
    """
    if start > end:
        raise InvalidRange(
            f"Start date {start.isoformat()} is after end date {end.isoformat()}"
        )
    rules = list(rules)
    return [day for day in iter_days(start, end) if is_holiday(day, rules)]


def count_working_days(start: date, end: date, rules: Iterable[HolidayRule]) -> int:
    """Count the non-holiday dates within an inclusive range."""
    calendar_days = (end - start).days + 1
    return calendar_days - len(holiday_dates_in_range(start, end, rules))
