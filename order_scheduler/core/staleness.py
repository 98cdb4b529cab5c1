"""
Detection of outdated holiday caches on orders.
"""

from datetime import date
from typing import Iterable, List

from order_scheduler.core.classifier import holiday_dates_in_range, is_holiday
from order_scheduler.data.schemas import HolidayRule, StalenessReport, Task


def find_stale_dates(cached_holiday_dates: Iterable[date], rules: Iterable[HolidayRule]) -> List[date]:
    """
    Find cached holiday dates that the current rules no longer treat as holidays.

    Args:
        cached_holiday_dates: Holiday dates stored on an order.
        rules: Current holiday rules.

    Returns:
        Sorted list of stale dates.
    """
    rules = list(rules)
    return sorted({d for d in cached_holiday_dates if not is_holiday(d, rules)})


def find_missing_holiday_dates(
    start: date,
    end: date,
    cached_holiday_dates: Iterable[date],
    rules: Iterable[HolidayRule],
) -> List[date]:
    """Find holidays inside [start, end] that are absent from the cache."""
    cached = set(cached_holiday_dates)
    return [d for d in holiday_dates_in_range(start, end, rules) if d not in cached]


def check_task(task: Task, rules: Iterable[HolidayRule], include_missing: bool = True) -> StalenessReport:
    """
    Build the staleness advisories for an order.

    Args:
        task: Order to check.
        rules: Current holiday rules.
        include_missing: Whether to scan the order's range for new holidays.

    Returns:
        StalenessReport with stale and missing dates.
    """
    rules = list(rules)
    missing: List[date] = []
    if include_missing:
        missing = find_missing_holiday_dates(task.start_date, task.end_date, task.holiday_dates, rules)
    return StalenessReport(
        task_id=task.id,
        order_number=task.order_number,
        stale_dates=find_stale_dates(task.holiday_dates, rules),
        missing_dates=missing,
    )
