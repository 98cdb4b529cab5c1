"""
Database storage for holiday rules, orders and history.
"""

from order_scheduler.store.database import Base, Database
from order_scheduler.store.models import HistoryRecord, HolidayRuleRecord, TaskRecord

__all__ = ["Base", "Database", "HistoryRecord", "HolidayRuleRecord", "TaskRecord"]
