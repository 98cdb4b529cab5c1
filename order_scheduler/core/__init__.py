"""
Core business logic for holiday-aware order scheduling.
"""

from order_scheduler.core.classifier import (
    holiday_dates_in_range,
    holiday_name,
    is_holiday,
    is_weekend_heuristic,
)
from order_scheduler.core.date_arithmetic import compute_end_date, compute_start_date
from order_scheduler.errors import (
    DueDateExceeded,
    InvalidRange,
    NoWorkingDayFound,
    RecordNotFound,
    RuleValidationError,
    SchedulingError,
)
from order_scheduler.core.history import HistoryLog
from order_scheduler.core.rules import HolidayRuleService
from order_scheduler.core.scheduler import TaskScheduler
from order_scheduler.core.staleness import find_missing_holiday_dates, find_stale_dates

__all__ = [
    "DueDateExceeded",
    "HistoryLog",
    "HolidayRuleService",
    "InvalidRange",
    "NoWorkingDayFound",
    "RecordNotFound",
    "RuleValidationError",
    "SchedulingError",
    "TaskScheduler",
    "compute_end_date",
    "compute_start_date",
    "find_missing_holiday_dates",
    "find_stale_dates",
    "holiday_dates_in_range",
    "holiday_name",
    "is_holiday",
    "is_weekend_heuristic",
]
