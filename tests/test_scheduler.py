"""
Tests for the order scheduler.
"""

from datetime import date

import pytest

from order_scheduler.core.scheduler import TaskScheduler
from order_scheduler.data.schemas import (
    Config,
    HistoryAction,
    HolidayKind,
    HolidayRuleCreate,
    TaskCreate,
    TaskStatus,
)
from order_scheduler.errors import (
    DueDateExceeded,
    InvalidRange,
    RecordNotFound,
    SchedulingError,
)
from order_scheduler.store.database import Database


@pytest.fixture
def scheduler():
    """Scheduler with Sundays off from 2024-01-01 and a closure on Saturday 2024-01-06."""
    scheduler = TaskScheduler(Database())
    scheduler.rule_service.create(
        HolidayRuleCreate(
            name="Sunday",
            kind=HolidayKind.DAY_OF_WEEK,
            weekday=0,
            effective_from=date(2024, 1, 1),
        )
    )
    scheduler.rule_service.create(
        HolidayRuleCreate(
            name="Inventory", kind=HolidayKind.SPECIFIC_DATE, holiday_date=date(2024, 1, 6)
        )
    )
    return scheduler


def order(**fields) -> TaskCreate:
    data = {
        "order_number": "A-100",
        "order_name": "Widgets",
        "end_date": date(2024, 1, 10),
        "due_date": date(2024, 1, 31),
        "working_days": 5,
    }
    data.update(fields)
    return TaskCreate(**data)


class TestCreateTask:
    """Tests for scheduling new orders."""

    def test_start_date_skips_holidays(self, scheduler):
        task = scheduler.create_task(order())

        assert task.id == 1
        assert task.start_date == date(2024, 1, 4)
        assert task.holiday_dates == [date(2024, 1, 6), date(2024, 1, 7)]
        assert task.holiday_count == 2
        assert scheduler.get_task(task.id) == task

    def test_records_history(self, scheduler):
        task = scheduler.create_task(order(), user_name="alice")

        entries = scheduler.history.entries()
        assert len(entries) == 1
        assert entries[0].action == HistoryAction.ADDED
        assert entries[0].task_id == task.id
        assert entries[0].user_name == "alice"

    def test_working_days_coerced(self, scheduler):
        task = scheduler.create_task(order(working_days=0))
        assert task.working_days == 1
        assert task.start_date == task.end_date

    def test_end_after_due_rejected(self, scheduler):
        with pytest.raises(DueDateExceeded) as exc_info:
            scheduler.create_task(order(due_date=date(2024, 1, 9)))
        assert exc_info.value.due_date == date(2024, 1, 9)
        assert scheduler.list_tasks() == []

    def test_too_long_rejected(self, scheduler):
        with pytest.raises(InvalidRange, match="cannot exceed 30 days"):
            scheduler.create_task(order(working_days=40, due_date=date(2024, 3, 1)))

    def test_warnings_for_holiday_dates(self, scheduler):
        task = scheduler.create_task(order(end_date=date(2024, 1, 14), working_days=2))

        warnings = scheduler.holiday_warnings(task)
        assert warnings == ["End date (Jan 14) falls on a holiday: Sunday"]


class TestUpdateTask:
    """Tests for editing orders."""

    def test_end_date_change_recomputes_start(self, scheduler):
        task = scheduler.create_task(order())
        updated = scheduler.update_task(task.id, end_date="2024-01-17")

        assert updated.start_date == date(2024, 1, 12)
        assert updated.holiday_dates == [date(2024, 1, 14)]
        assert scheduler.history.entries()[0].action == HistoryAction.MODIFIED

    def test_plain_field_change_keeps_schedule(self, scheduler):
        task = scheduler.create_task(order())
        updated = scheduler.update_task(task.id, notes="rush", status=TaskStatus.IN_PROGRESS)

        assert updated.start_date == task.start_date
        assert updated.notes == "rush"
        assert updated.status == TaskStatus.IN_PROGRESS

    def test_derived_fields_rejected(self, scheduler):
        task = scheduler.create_task(order())
        with pytest.raises(SchedulingError, match="computed"):
            scheduler.update_task(task.id, start_date=date(2024, 1, 1))

    def test_unknown_fields_rejected(self, scheduler):
        task = scheduler.create_task(order())
        with pytest.raises(SchedulingError, match="Unknown task fields"):
            scheduler.update_task(task.id, priority=1)

    def test_due_date_before_end_rejected(self, scheduler):
        task = scheduler.create_task(order())
        with pytest.raises(DueDateExceeded):
            scheduler.update_task(task.id, due_date=date(2024, 1, 8))


class TestMoveTask:
    """Tests for relocating orders."""

    def test_move_keeps_working_days(self, scheduler):
        task = scheduler.create_task(order())
        moved = scheduler.move_task(task.id, date(2024, 1, 11))

        # Thu 11, Fri 12, Sat 13, Mon 15, Tue 16
        assert moved.end_date == date(2024, 1, 16)
        assert moved.working_days == 5
        assert moved.holiday_dates == [date(2024, 1, 14)]
        assert scheduler.get_task(task.id).start_date == date(2024, 1, 11)

    def test_move_past_due_date_rejected(self, scheduler):
        task = scheduler.create_task(order())
        with pytest.raises(DueDateExceeded):
            scheduler.move_task(task.id, date(2024, 1, 29))
        assert scheduler.get_task(task.id).start_date == date(2024, 1, 4)

    def test_completed_task_cannot_move(self, scheduler):
        task = scheduler.create_task(order())
        scheduler.update_task(task.id, status=TaskStatus.COMPLETED)
        with pytest.raises(SchedulingError, match="Completed tasks cannot be moved"):
            scheduler.move_task(task.id, date(2024, 1, 15))

    def test_move_unknown_task(self, scheduler):
        with pytest.raises(RecordNotFound):
            scheduler.move_task(99, date(2024, 1, 15))


class TestStaleness:
    """Tests for stale holiday caches and recalculation."""

    def test_fresh_task_not_stale(self, scheduler):
        scheduler.create_task(order())
        assert scheduler.staleness() == []

    def test_cancelled_rule_flags_task_and_recalculate_clears_it(self, scheduler):
        task = scheduler.create_task(order())
        inventory = next(
            r for r in scheduler.rule_service.active_rules()
            if r.kind == HolidayKind.SPECIFIC_DATE
        )
        affected = scheduler.rule_service.cancel(
            inventory.id, scheduler.list_tasks(), today=date(2024, 1, 1)
        )
        assert [t.id for t in affected] == [task.id]

        reports = scheduler.staleness()
        assert len(reports) == 1
        assert reports[0].stale_dates == [date(2024, 1, 6)]

        updated = scheduler.recalculate(task.id)
        assert updated.holiday_dates == [date(2024, 1, 7)]
        assert scheduler.staleness() == []
        assert scheduler.history.entries()[0].details == "Task holiday count manually updated to 1"

    def test_new_holiday_reported_as_missing(self, scheduler):
        task = scheduler.create_task(order())
        scheduler.rule_service.create(
            HolidayRuleCreate(
                name="Closure", kind=HolidayKind.SPECIFIC_DATE, holiday_date=date(2024, 1, 9)
            )
        )
        reports = scheduler.staleness([task.id])
        assert reports[0].missing_dates == [date(2024, 1, 9)]

    def test_completed_tasks_skip_missing_check(self, scheduler):
        task = scheduler.create_task(order())
        scheduler.update_task(task.id, status=TaskStatus.COMPLETED)
        scheduler.rule_service.create(
            HolidayRuleCreate(
                name="Closure", kind=HolidayKind.SPECIFIC_DATE, holiday_date=date(2024, 1, 9)
            )
        )
        assert scheduler.staleness() == []


class TestQueries:
    """Tests for order listings and deletion."""

    def test_overdue_and_upcoming(self, scheduler):
        early = scheduler.create_task(order(order_number="A-1", due_date=date(2024, 1, 12)))
        late = scheduler.create_task(order(order_number="A-2", due_date=date(2024, 1, 25)))

        assert [t.id for t in scheduler.overdue(today=date(2024, 1, 15))] == [early.id]
        assert [t.id for t in scheduler.upcoming(today=date(2024, 1, 20), days=7)] == [late.id]
        assert [t.id for t in scheduler.due_on(date(2024, 1, 25))] == [late.id]

    def test_list_by_status(self, scheduler):
        task = scheduler.create_task(order())
        scheduler.update_task(task.id, status=TaskStatus.COMPLETED)
        assert scheduler.list_tasks(TaskStatus.NEW) == []
        assert len(scheduler.list_tasks(TaskStatus.COMPLETED)) == 1
        assert scheduler.overdue(today=date(2024, 12, 1)) == []

    def test_delete_task(self, scheduler):
        task = scheduler.create_task(order())
        scheduler.delete_task(task.id)

        with pytest.raises(RecordNotFound):
            scheduler.get_task(task.id)
        assert scheduler.history.entries()[0].action == HistoryAction.DELETED

    def test_max_start_date(self, scheduler):
        task = scheduler.create_task(order(due_date=date(2024, 1, 12)))
        # Fri 12, Thu 11, Wed 10, Tue 9, Mon 8
        assert scheduler.max_start_date(task) == date(2024, 1, 8)


class TestFromConfig:
    """Tests for building a scheduler from configuration."""

    def test_memory_database_and_limits(self):
        config = Config(database_url="", max_walk_days=100, max_task_duration_days=10)
        scheduler = TaskScheduler.from_config(config)

        assert scheduler.database.url == "sqlite://"
        assert scheduler.max_walk_days == 100
        with pytest.raises(InvalidRange, match="cannot exceed 10 days"):
            scheduler.create_task(order(working_days=12))

    def test_file_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'orders.db'}"
        TaskScheduler.from_config(Config(database_url=url)).create_task(order())

        reloaded = TaskScheduler.from_config(Config(database_url=url))
        assert reloaded.get_task(1).order_number == "A-100"
