"""
SQLAlchemy models for holiday rules, orders and the history log.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, Index, Integer, String, Text

from order_scheduler.store.database import Base


class HolidayRuleRecord(Base):
    """Holidays table"""

    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    kind = Column(String(20), nullable=False, comment="specific_date, day_of_week or exception")
    holiday_date = Column(Date, nullable=True)
    weekday = Column(Integer, nullable=True, comment="0=Sunday .. 6=Saturday")
    effective_from = Column(Date, nullable=True)
    cancelled = Column(Boolean, default=False, nullable=False)
    cancelled_on = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)

    __table_args__ = (
        Index("idx_holidays_date", "holiday_date"),
        Index("idx_holidays_kind_cancelled", "kind", "cancelled"),
    )


class TaskRecord(Base):
    """Orders table"""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(100), nullable=False)
    order_name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    working_days = Column(Integer, default=1, nullable=False)
    holiday_dates = Column(JSON, default=list, nullable=False, comment="ISO dates cached at last save")
    effort = Column(Float, default=25.0, nullable=False)
    status = Column(String(20), default="New", nullable=False)
    notes = Column(Text, default="", nullable=False)
    color = Column(String(50), default="bg-blue-500", nullable=False)
    row = Column(Integer, nullable=True)
    customer_name = Column(String(255), default="", nullable=False)
    phone_number = Column(String(50), default="", nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)

    __table_args__ = (
        Index("idx_tasks_start", "start_date"),
        Index("idx_tasks_due_status", "due_date", "status"),
    )


class HistoryRecord(Base):
    """Order history table, rows outlive deleted orders"""

    __tablename__ = "history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, default=datetime.now, nullable=False, index=True)
    action = Column(String(20), nullable=False)
    task_id = Column(Integer, nullable=False)
    order_number = Column(String(100), nullable=False)
    order_name = Column(String(255), nullable=False)
    details = Column(Text, nullable=True)
    user_name = Column(String(255), default="System", nullable=False)
