"""
Data models for the order scheduler using Pydantic.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class HolidayKind(str, Enum):
    """Kinds of holiday rules."""

    SPECIFIC_DATE = "specific_date"
    DAY_OF_WEEK = "day_of_week"
    EXCEPTION = "exception"


class TaskStatus(str, Enum):
    """Lifecycle states of an order."""

    NEW = "New"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class HistoryAction(str, Enum):
    """Kinds of changes recorded in the history log."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class HolidayRuleCreate(BaseModel):
    """Form data for creating a holiday rule."""

    name: str = Field(..., description="Display label")
    kind: HolidayKind = Field(..., description="Rule kind")
    holiday_date: Optional[date] = Field(default=None, description="Date for specific_date and exception rules")
    weekday: Optional[int] = Field(default=None, ge=0, le=6, description="0=Sunday .. 6=Saturday")
    effective_from: Optional[date] = Field(default=None, description="First date a recurring rule applies")


class HolidayRule(BaseModel):
    """A holiday rule: a specific date, a recurring weekday or a working-day exception."""

    id: int = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display label")
    kind: HolidayKind = Field(..., description="Rule kind")
    holiday_date: Optional[date] = Field(default=None, description="Date for specific_date and exception rules")
    weekday: Optional[int] = Field(default=None, ge=0, le=6, description="0=Sunday .. 6=Saturday")
    effective_from: Optional[date] = Field(default=None, description="First date a recurring rule applies")
    cancelled: bool = Field(default=False, description="Soft-delete flag")
    cancelled_on: Optional[date] = Field(default=None, description="When the rule was cancelled")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def describe(self) -> str:
        """Short human readable description of when the rule applies."""
        if self.kind == HolidayKind.DAY_OF_WEEK:
            weekday = WEEKDAY_NAMES[self.weekday] if self.weekday is not None else "?"
            since = self.effective_from.isoformat() if self.effective_from else "never"
            return f"Every {weekday} from {since}"
        prefix = "Working day" if self.kind == HolidayKind.EXCEPTION else "Holiday"
        return f"{prefix} on {self.holiday_date.isoformat() if self.holiday_date else '?'}"


class Task(BaseModel):
    """An order scheduled on the calendar."""

    id: int = Field(..., description="Unique identifier")
    order_number: str = Field(..., description="Order number")
    order_name: str = Field(..., description="Order name")
    start_date: date = Field(..., description="First day of work")
    end_date: date = Field(..., description="Last day of work")
    due_date: date = Field(..., description="Date the order is due")
    working_days: int = Field(default=1, ge=1, description="Working days the order spans")
    holiday_dates: List[date] = Field(
        default_factory=list, description="Holidays inside [start_date, end_date] at last save"
    )
    effort: float = Field(default=25.0, ge=0, description="Effort in percent")
    status: TaskStatus = Field(default=TaskStatus.NEW)
    notes: str = Field(default="")
    color: str = Field(default="bg-blue-500")
    row: Optional[int] = Field(default=None)
    customer_name: str = Field(default="")
    phone_number: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, v: date, info) -> date:
        """Ensure end_date is after start_date."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must be after or equal to start_date")
        return v

    @property
    def holiday_count(self) -> int:
        return len(self.holiday_dates)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


class TaskCreate(BaseModel):
    """Form data for creating an order. The start date is derived."""

    order_number: str
    order_name: str
    end_date: date
    due_date: date
    working_days: int = 1
    effort: float = Field(default=25.0, ge=0)
    status: TaskStatus = TaskStatus.NEW
    notes: str = ""
    color: str = "bg-blue-500"
    row: Optional[int] = None
    customer_name: str = ""
    phone_number: str = ""


class StartDateResult(BaseModel):
    """Result of walking backward from an end date."""

    start_date: date
    holiday_dates: List[date] = Field(default_factory=list)


class StalenessReport(BaseModel):
    """Holiday cache advisories for a single task."""

    task_id: int
    order_number: str
    stale_dates: List[date] = Field(
        default_factory=list, description="Cached dates that are no longer holidays"
    )
    missing_dates: List[date] = Field(
        default_factory=list, description="Holidays in range missing from the cache"
    )

    @property
    def is_stale(self) -> bool:
        return bool(self.stale_dates or self.missing_dates)


class HistoryEntry(BaseModel):
    """One entry of the order history log."""

    id: int
    timestamp: datetime = Field(default_factory=datetime.now)
    action: HistoryAction
    task_id: int
    order_number: str
    order_name: str
    details: Optional[str] = None
    user_name: str = "System"


class Config(BaseModel):
    """Configuration for the order scheduler."""

    database_url: Optional[str] = Field(
        default="sqlite:///data/order_scheduler.db", description="SQLAlchemy database URL, empty for in-memory"
    )
    max_walk_days: int = Field(
        default=3650, ge=1, description="Upper bound of calendar days a working-day walk may traverse"
    )
    max_task_duration_days: int = Field(
        default=30, ge=1, description="Maximum calendar days between start and end of an order"
    )
    output_format: str = Field(default="json", description="Default export format: json or csv")
    output_directory: str = Field(default="results", description="Directory for exported files")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API server port")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
