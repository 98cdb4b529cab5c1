"""
Order scheduling: placing orders on the calendar around holidays.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from order_scheduler.core.classifier import holiday_dates_in_range, holiday_name, is_holiday
from order_scheduler.core.date_arithmetic import (
    DEFAULT_MAX_WALK_DAYS,
    coerce_working_days,
    compute_end_date,
    compute_start_date,
    latest_start_date,
)
from order_scheduler.errors import DueDateExceeded, InvalidRange, SchedulingError
from order_scheduler.core.history import HistoryLog
from order_scheduler.core.rules import HolidayRuleService
from order_scheduler.core.staleness import check_task
from order_scheduler.data.schemas import (
    Config,
    HistoryAction,
    HolidayRule,
    StalenessReport,
    Task,
    TaskCreate,
    TaskStatus,
)
from order_scheduler.store.database import MEMORY_URL, Database
from order_scheduler.store.models import TaskRecord

logger = logging.getLogger(__name__)
# Fields recomputed by the scheduler rather than set directly
_DERIVED_FIELDS = {"id", "start_date", "holiday_dates", "created_at", "updated_at"}


def _to_task(record: TaskRecord) -> Task:
    return Task.model_validate(record, from_attributes=True)


def _columns(task: Task) -> Dict[str, Any]:
    values = task.model_dump(exclude={"id"})
    values["status"] = task.status.value
    values["holiday_dates"] = [d.isoformat() for d in task.holiday_dates]
    return values


class TaskScheduler:
    """Creates, moves and validates orders against the holiday calendar."""

    def __init__(
        self,
        database: Database,
        rule_service: Optional[HolidayRuleService] = None,
        history: Optional[HistoryLog] = None,
        max_walk_days: int = DEFAULT_MAX_WALK_DAYS,
        max_task_duration_days: int = 30,
    ):
        """
        Initialize the scheduler.

        Args:
            database: Database holding the tasks, holidays and history tables.
            rule_service: Source of the current holiday rules.
            history: History log for order changes.
            max_walk_days: Bound for working-day walks.
            max_task_duration_days: Maximum calendar days an order may span.
        """
        self.database = database
        self.rule_service = rule_service or HolidayRuleService(database)
        self.history = history or HistoryLog(database)
        self.max_walk_days = max_walk_days
        self.max_task_duration_days = max_task_duration_days

    @classmethod
    def from_config(cls, config: Config, database: Optional[Database] = None) -> "TaskScheduler":
        """Build a scheduler with its database, rule service and history log from configuration."""
        database = database or Database(config.database_url or MEMORY_URL)
        return cls(
            database,
            max_walk_days=config.max_walk_days,
            max_task_duration_days=config.max_task_duration_days,
        )

    def _rules(self) -> List[HolidayRule]:
        return self.rule_service.active_rules()

    def _save(self, task: Task) -> None:
        with self.database.session() as db:
            record = Database.get_or_raise(db, TaskRecord, task.id)
            for key, value in _columns(task).items():
                setattr(record, key, value)

    # Queries

    def get_task(self, task_id: int) -> Task:
        with self.database.session() as db:
            return _to_task(Database.get_or_raise(db, TaskRecord, task_id))

    def list_tasks(self, status: Optional[TaskStatus] = None) -> List[Task]:
        """Orders sorted by start date, optionally filtered by status."""
        query = select(TaskRecord).order_by(TaskRecord.start_date, TaskRecord.id)
        if status is not None:
            query = query.where(TaskRecord.status == TaskStatus(status).value)
        with self.database.session() as db:
            return [_to_task(record) for record in db.scalars(query)]

    def overdue(self, today: Optional[date] = None) -> List[Task]:
        """Open orders whose due date has passed."""
        today = today or date.today()
        return [t for t in self.list_tasks() if not t.is_completed and t.due_date < today]

    def upcoming(self, today: Optional[date] = None, days: int = 7) -> List[Task]:
        """Open orders due within the next number of days, including today."""
        today = today or date.today()
        horizon = today + timedelta(days=days)
        return sorted(
            [t for t in self.list_tasks() if not t.is_completed and today <= t.due_date <= horizon],
            key=lambda t: (t.due_date, t.id),
        )

    def due_on(self, day: date) -> List[Task]:
        return [t for t in self.list_tasks() if t.due_date == day]

    # Validation

    def validate_schedule(self, start_date: date, end_date: date, due_date: date) -> None:
        """
        Check an order's dates before saving.

        Raises:
            InvalidRange: If start is after end or the order is too long.
            DueDateExceeded: If the end date is after the due date.
        """
        if start_date > end_date:
            raise InvalidRange(
                f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
            )
        duration = (end_date - start_date).days + 1
        if duration > self.max_task_duration_days:
            raise InvalidRange(
                f"Task duration cannot exceed {self.max_task_duration_days} days. "
                f"Current duration: {duration} days."
            )
        if end_date > due_date:
            raise DueDateExceeded(end_date, due_date)

    def holiday_warnings(self, task: Task, rules: Optional[Iterable[HolidayRule]] = None) -> List[str]:
        """Messages for start, end and due dates that fall on holidays."""
        if task.is_completed:
            return []
        rules = list(rules) if rules is not None else self._rules()
        warnings = []
        for label, day in (("Start", task.start_date), ("End", task.end_date), ("Due", task.due_date)):
            if is_holiday(day, rules):
                name = holiday_name(day, rules) or "Unknown holiday"
                warnings.append(f"{label} date ({day.strftime('%b %d')}) falls on a holiday: {name}")
        return warnings

    # Mutations

    def create_task(self, form: TaskCreate, user_name: str = "System") -> Task:
        """
        Schedule a new order backward from its end date.

        Args:
            form: Order form data.
            user_name: Name recorded in the history log.

        Returns:
            The stored Task with computed start date and holiday cache.
        """
        rules = self._rules()
        working_days = coerce_working_days(form.working_days)
        result = compute_start_date(form.end_date, working_days, rules, self.max_walk_days)
        self.validate_schedule(result.start_date, form.end_date, form.due_date)

        now = datetime.now()
        task = Task(
            id=0,
            start_date=result.start_date,
            holiday_dates=result.holiday_dates,
            created_at=now,
            updated_at=now,
            **form.model_dump(exclude={"working_days"}),
            working_days=working_days,
        )
        with self.database.session() as db:
            record = TaskRecord(**_columns(task))
            db.add(record)
            db.flush()
            task = _to_task(record)
        logger.info(
            f"Created order {task.order_number}: {task.start_date} - {task.end_date} "
            f"({task.working_days} working days, {task.holiday_count} holidays)"
        )
        self.history.record(HistoryAction.ADDED, task, user_name=user_name)
        return task

    def update_task(self, task_id: int, user_name: str = "System", **changes: Any) -> Task:
        """
        Update an order.

        Changing the end date or the working-day count recomputes the start
        date and the holiday cache.
        """
        unknown = set(changes) - set(Task.model_fields)
        if unknown:
            raise SchedulingError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        derived = set(changes) & _DERIVED_FIELDS
        if derived:
            raise SchedulingError(f"Fields are computed and cannot be set: {', '.join(sorted(derived))}")

        for key in ("end_date", "due_date"):
            if isinstance(changes.get(key), str):
                changes[key] = date.fromisoformat(changes[key])

        current = self.get_task(task_id)
        data = current.model_dump()
        data.update(changes)
        data["working_days"] = coerce_working_days(data["working_days"])

        if "end_date" in changes or "working_days" in changes:
            rules = self._rules()
            result = compute_start_date(
                data["end_date"], data["working_days"], rules, self.max_walk_days
            )
            data["start_date"] = result.start_date
            data["holiday_dates"] = result.holiday_dates

        data["updated_at"] = datetime.now()
        updated = Task(**data)
        self.validate_schedule(updated.start_date, updated.end_date, updated.due_date)

        self._save(updated)
        details = ", ".join(f"{key} changed" for key in sorted(changes))
        self.history.record(HistoryAction.MODIFIED, updated, details=details or None, user_name=user_name)
        return updated

    def delete_task(self, task_id: int, user_name: str = "System") -> Task:
        task = self.get_task(task_id)
        with self.database.session() as db:
            db.delete(Database.get_or_raise(db, TaskRecord, task_id))
        logger.info(f"Deleted order {task.order_number}")
        self.history.record(HistoryAction.DELETED, task, user_name=user_name)
        return task

    def max_start_date(self, task: Task, rules: Optional[Iterable[HolidayRule]] = None) -> date:
        """Latest start date that keeps the order within its due date."""
        rules = list(rules) if rules is not None else self._rules()
        return latest_start_date(task.due_date, task.working_days, rules, self.max_walk_days)

    def move_task(self, task_id: int, new_start: date, user_name: str = "System") -> Task:
        """
        Relocate an order to a new start date, keeping its working-day count.

        Raises:
            SchedulingError: If the order is completed.
            DueDateExceeded: If the new end date is after the due date.
            InvalidRange: If the moved order would be too long.
        """
        task = self.get_task(task_id)
        if task.is_completed:
            raise SchedulingError("Completed tasks cannot be moved.")

        rules = self._rules()
        new_end = compute_end_date(new_start, task.working_days, rules, self.max_walk_days)
        self.validate_schedule(new_start, new_end, task.due_date)

        holidays_in_range = holiday_dates_in_range(new_start, new_end, rules)
        moved = task.model_copy(
            update={
                "start_date": new_start,
                "end_date": new_end,
                "holiday_dates": holidays_in_range,
                "updated_at": datetime.now(),
            }
        )
        self._save(moved)
        logger.info(f"Moved order {task.order_number} to {new_start} - {new_end}")
        self.history.record(
            HistoryAction.MODIFIED,
            moved,
            details=f"Moved from {task.start_date.isoformat()} to {new_start.isoformat()}",
            user_name=user_name,
        )
        return moved

    def recalculate(self, task_id: int, user_name: str = "System") -> Task:
        """Recompute an order's holiday cache from the current rules."""
        task = self.get_task(task_id)
        holiday_dates = holiday_dates_in_range(task.start_date, task.end_date, self._rules())
        updated = task.model_copy(update={"holiday_dates": holiday_dates, "updated_at": datetime.now()})
        self._save(updated)
        self.history.record(
            HistoryAction.MODIFIED,
            updated,
            details=f"Task holiday count manually updated to {len(holiday_dates)}",
            user_name=user_name,
        )
        return updated

    def staleness(self, task_ids: Optional[Iterable[int]] = None) -> List[StalenessReport]:
        """
        Staleness advisories for orders whose holiday cache is out of date.

        Completed orders are only checked for stale dates, not for new holidays.
        """
        rules = self._rules()
        if task_ids is None:
            tasks = self.list_tasks()
        else:
            tasks = [self.get_task(task_id) for task_id in task_ids]

        reports = []
        for task in tasks:
            report = check_task(task, rules, include_missing=not task.is_completed)
            if report.is_stale:
                reports.append(report)
        if reports:
            logger.warning(f"{len(reports)} orders have outdated holiday counts")
        return reports
