"""
Tests for the command line interface.
"""

import json

import pytest
from click.testing import CliRunner

from order_scheduler.cli import main, parse_date


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path):
    """Invoke the CLI against a SQLite database in a temporary directory."""
    database_url = f"sqlite:///{tmp_path / 'data' / 'orders.db'}"

    def _invoke(*args):
        return runner.invoke(main, ["--database-url", database_url, *args])

    return _invoke


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize("value", ["2024-01-10", "10.01.2024", "10/01/2024"])
    def test_formats(self, value):
        assert parse_date(value).isoformat() == "2024-01-10"

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid date format"):
            parse_date("Jan 10")


class TestCheck:
    """Tests for the check command."""

    def test_working_day(self, invoke):
        result = invoke("check", "2024-01-10")
        assert result.exit_code == 0
        assert "is a working day" in result.output

    def test_holiday(self, invoke):
        added = invoke("holidays", "add", "--name", "Christmas", "--date", "2099-12-25")
        assert added.exit_code == 0

        result = invoke("check", "25.12.2099")
        assert result.exit_code == 0
        assert "is a holiday: Christmas" in result.output

    def test_invalid_date(self, invoke):
        result = invoke("check", "someday")
        assert result.exit_code == 1
        assert "Invalid date format" in result.output


class TestCalculate:
    """Tests for start-date and end-date."""

    def test_start_date_with_recurring_rule(self, invoke):
        added = invoke(
            "holidays", "add", "--name", "Sunday", "--type", "day_of_week",
            "--weekday", "sun", "--from", "2024-01-01",
        )
        assert added.exit_code == 0

        result = invoke("start-date", "--end", "2024-01-10", "--days", "5")
        assert result.exit_code == 0
        assert "05.01.2024" in result.output
        assert "07.01.2024" in result.output

    def test_end_date(self, invoke):
        result = invoke("end-date", "--start", "2024-01-05", "--days", "3")
        assert result.exit_code == 0
        assert "07.01.2024" in result.output


class TestHolidays:
    """Tests for the holidays command group."""

    def test_add_requires_date(self, invoke):
        result = invoke("holidays", "add", "--name", "Christmas")
        assert result.exit_code == 1
        assert "Date is required" in result.output

    def test_second_recurring_rule_rejected(self, invoke):
        invoke("holidays", "add", "--name", "Sunday", "--type", "day_of_week", "--weekday", "sun")
        result = invoke(
            "holidays", "add", "--name", "Saturday", "--type", "day_of_week", "--weekday", "sat"
        )
        assert result.exit_code == 1
        assert "Only one active recurring holiday" in result.output

    def test_cancel_and_clear(self, invoke):
        invoke("holidays", "add", "--name", "Christmas", "--date", "2099-12-25")

        cancelled = invoke("holidays", "cancel", "1")
        assert cancelled.exit_code == 0
        assert "Cancelled holiday rule 1" in cancelled.output

        cleared = invoke("holidays", "clear", "--yes")
        assert cleared.exit_code == 0
        assert "Cleared 1 cancelled holiday rules" in cleared.output

    def test_cancel_unknown(self, invoke):
        result = invoke("holidays", "cancel", "42")
        assert result.exit_code == 1

    def test_list_empty(self, invoke):
        result = invoke("holidays", "list", "--show", "all")
        assert result.exit_code == 0
        assert "No holiday rules found" in result.output


class TestTasks:
    """Tests for the tasks command group."""

    def add_order(self, invoke, *extra):
        return invoke(
            "tasks", "add", "--number", "A-100", "--name", "Widgets",
            "--end", "2024-01-10", "--due", "2024-01-31", "--days", "5", *extra,
        )

    def test_add_and_show(self, invoke):
        result = self.add_order(invoke)
        assert result.exit_code == 0
        assert "Created order A-100 (id 1)" in result.output

        shown = invoke("tasks", "show", "1")
        assert shown.exit_code == 0
        assert "A-100 - Widgets" in shown.output

    def test_add_past_due(self, invoke):
        result = invoke(
            "tasks", "add", "--number", "A-1", "--name", "Late",
            "--end", "2024-01-10", "--due", "2024-01-09",
        )
        assert result.exit_code == 1
        assert "due date" in result.output

    def test_move(self, invoke):
        self.add_order(invoke)
        result = invoke("tasks", "move", "1", "--start", "2024-01-15")
        assert result.exit_code == 0
        assert "Moved order A-100" in result.output

        past_due = invoke("tasks", "move", "1", "--start", "2024-01-30")
        assert past_due.exit_code == 1

    def test_stale_and_recalculate(self, invoke):
        self.add_order(invoke)
        assert "up to date" in invoke("tasks", "stale").output

        invoke("holidays", "add", "--name", "Sunday", "--type", "day_of_week",
               "--weekday", "sun", "--from", "2024-01-01")
        assert "A-100" in invoke("tasks", "stale").output

        result = invoke("tasks", "recalculate", "1")
        assert result.exit_code == 0
        assert "updated to 1" in result.output

    def test_delete_and_history(self, invoke):
        self.add_order(invoke)
        assert invoke("tasks", "delete", "1").exit_code == 0
        assert invoke("tasks", "show", "1").exit_code == 1

        history = invoke("history")
        assert history.exit_code == 0
        assert "deleted" in history.output

    def test_list_due_on(self, invoke):
        self.add_order(invoke)

        due = invoke("tasks", "list", "--due-on", "31.01.2024")
        assert due.exit_code == 0
        assert "No orders found" not in due.output

        none_due = invoke("tasks", "list", "--due-on", "2024-01-30")
        assert none_due.exit_code == 0
        assert "No orders found" in none_due.output

    def test_list_due_on_invalid_date(self, invoke):
        result = invoke("tasks", "list", "--due-on", "end of month")
        assert result.exit_code == 1
        assert "Invalid date format" in result.output


class TestEditTask:
    """Tests for tasks edit."""

    add_order = TestTasks.add_order

    def test_new_end_date_reschedules(self, invoke):
        self.add_order(invoke)
        result = invoke("tasks", "edit", "1", "--end", "2024-01-17")

        assert result.exit_code == 0
        assert "13.01.2024 - 17.01.2024" in result.output
        assert "Updated order A-100" in result.output

    def test_completed_order_cannot_move(self, invoke):
        self.add_order(invoke)
        edited = invoke("tasks", "edit", "1", "--status", "Completed", "--notes", "Shipped")
        assert edited.exit_code == 0
        assert "Completed" in edited.output

        moved = invoke("tasks", "move", "1", "--start", "2024-01-15")
        assert moved.exit_code == 1
        assert "Completed tasks cannot be moved" in moved.output

    def test_due_date_before_end_rejected(self, invoke):
        self.add_order(invoke)
        result = invoke("tasks", "edit", "1", "--due", "2024-01-09")
        assert result.exit_code == 1
        assert "due date" in result.output

    def test_nothing_to_change(self, invoke):
        self.add_order(invoke)
        result = invoke("tasks", "edit", "1")
        assert result.exit_code == 1
        assert "Nothing to change" in result.output

    def test_unknown_order(self, invoke):
        result = invoke("tasks", "edit", "42", "--notes", "x")
        assert result.exit_code == 1

    def test_edit_recorded_in_history(self, invoke):
        self.add_order(invoke)
        invoke("tasks", "edit", "1", "--effort", "60", "--user", "Dana")

        history = invoke("history")
        assert "modified" in history.output
        assert "Dana" in history.output


class TestExport:
    """Tests for the export command."""

    def test_export_tasks_json(self, invoke, tmp_path):
        invoke(
            "tasks", "add", "--number", "A-100", "--name", "Widgets",
            "--end", "2024-01-10", "--days", "2",
        )
        output = tmp_path / "orders.json"
        result = invoke("export", "--what", "tasks", "--format", "json", "--output", str(output))

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["count"] == 1
        assert data["orders"][0]["start_date"] == "2024-01-09"

    def test_export_holidays_csv(self, invoke, tmp_path):
        invoke("holidays", "add", "--name", "Christmas", "--date", "2099-12-25")
        output = tmp_path / "holidays.csv"
        result = invoke("export", "--what", "holidays", "--format", "csv", "--output", str(output))

        assert result.exit_code == 0
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("ID,Name,Type")
        assert "Christmas" in lines[1]
