"""
Exceptions raised by the scheduling core.

All of them derive from ValueError so front-ends can keep treating invalid
input the same way they treat any other bad value.
"""

from datetime import date


class SchedulingError(ValueError):
    """Base class for scheduling failures."""


class InvalidRange(SchedulingError):
    """Invalid working-day count or date range."""


class DueDateExceeded(SchedulingError):
    """A computed end date falls after the order's due date."""

    def __init__(self, end_date: date, due_date: date):
        self.end_date = end_date
        self.due_date = due_date
        super().__init__(
            f"End date {end_date.isoformat()} cannot be later than the due date "
            f"({due_date.isoformat()})"
        )


class NoWorkingDayFound(SchedulingError):
    """A working-day walk exceeded its iteration bound."""

    def __init__(self, anchor: date, working_days: int, max_days: int):
        self.anchor = anchor
        self.working_days = working_days
        self.max_days = max_days
        super().__init__(
            f"Could not find {working_days} working days within {max_days} days of "
            f"{anchor.isoformat()}; check the holiday rules"
        )


class RuleValidationError(SchedulingError):
    """A holiday rule form or cancellation request was rejected."""


class RecordNotFound(SchedulingError):
    """No row with the requested id exists in the database table."""

    def __init__(self, table: str, record_id: int):
        self.table = table
        self.record_id = record_id
        super().__init__(f"No record {record_id} in {table}")
