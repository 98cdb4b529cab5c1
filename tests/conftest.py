"""
Shared fixtures for the order scheduler tests.
"""

import os
from datetime import date
from itertools import count

import pytest

from order_scheduler.data.schemas import HolidayKind, HolidayRule, Task

# Keep module-level schedulers (API, MCP) on an in-memory database
os.environ.setdefault("ORDER_SCHEDULER_DATABASE_URL", "sqlite://")

_ids = count(1)


def specific(day: date, name: str = "Holiday", cancelled: bool = False) -> HolidayRule:
    return HolidayRule(
        id=next(_ids),
        name=name,
        kind=HolidayKind.SPECIFIC_DATE,
        holiday_date=day,
        effective_from=day,
        cancelled=cancelled,
    )


def recurring(weekday: int, effective_from=date(2024, 1, 1), name: str = "Weekly") -> HolidayRule:
    return HolidayRule(
        id=next(_ids),
        name=name,
        kind=HolidayKind.DAY_OF_WEEK,
        weekday=weekday,
        effective_from=effective_from,
    )


def exception(day: date, name: str = "Working day", cancelled: bool = False) -> HolidayRule:
    return HolidayRule(
        id=next(_ids),
        name=name,
        kind=HolidayKind.EXCEPTION,
        holiday_date=day,
        cancelled=cancelled,
    )


def make_task(start: date, end: date, holiday_dates=(), **fields) -> Task:
    data = {
        "id": next(_ids),
        "order_number": "A-1",
        "order_name": "Test order",
        "start_date": start,
        "end_date": end,
        "due_date": end,
        "holiday_dates": list(holiday_dates),
    }
    data.update(fields)
    return Task(**data)


@pytest.fixture
def weekend_rules():
    """Saturday and Sunday off from 2024-01-01."""
    return [recurring(6, name="Saturday"), recurring(0, name="Sunday")]
