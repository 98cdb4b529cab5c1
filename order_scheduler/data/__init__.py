"""
Data models and schemas for the order scheduler.
"""

from order_scheduler.data.schemas import (
    Config,
    HistoryAction,
    HistoryEntry,
    HolidayKind,
    HolidayRule,
    HolidayRuleCreate,
    StalenessReport,
    StartDateResult,
    Task,
    TaskCreate,
    TaskStatus,
)

__all__ = [
    "Config",
    "HistoryAction",
    "HistoryEntry",
    "HolidayKind",
    "HolidayRule",
    "HolidayRuleCreate",
    "StalenessReport",
    "StartDateResult",
    "Task",
    "TaskCreate",
    "TaskStatus",
]
