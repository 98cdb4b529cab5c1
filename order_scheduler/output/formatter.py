"""
Console output formatting using Rich.
"""

from datetime import date
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from order_scheduler.data.schemas import (
    HistoryEntry,
    HolidayKind,
    HolidayRule,
    StalenessReport,
    StartDateResult,
    Task,
    TaskStatus,
)

KIND_LABELS = {
    HolidayKind.SPECIFIC_DATE: "Holiday",
    HolidayKind.DAY_OF_WEEK: "Recurring",
    HolidayKind.EXCEPTION: "Working day",
}

STATUS_STYLES = {
    TaskStatus.NEW: "dim",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.COMPLETED: "green",
}


def _fmt(day: date) -> str:
    return day.strftime("%d.%m.%Y")


class ConsoleFormatter:
    """Formats output for console display using Rich."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize the console formatter."""
        self.console = console or Console()

    def print_day(self, day: date, is_holiday: bool, name: Optional[str], exception: Optional[str]) -> None:
        """Print the classification of a single date."""
        weekday = day.strftime("%A")
        if is_holiday:
            self.console.print(
                f"[bold red]{_fmt(day)}[/bold red] ({weekday}) is a holiday: {name or 'Unknown holiday'}"
            )
        elif exception:
            self.console.print(
                f"[bold green]{_fmt(day)}[/bold green] ({weekday}) is a working day exception: {exception}"
            )
        else:
            self.console.print(f"[bold green]{_fmt(day)}[/bold green] ({weekday}) is a working day")

    def print_start_date(self, end_date: date, working_days: int, result: StartDateResult) -> None:
        """Print a computed start date with the holidays it spans."""
        table = Table(show_header=False, box=None)
        table.add_column("Label", style="cyan", width=20)
        table.add_column("Value", style="white")

        table.add_row("End date:", _fmt(end_date))
        table.add_row("Working days:", str(working_days))
        table.add_row("Calendar days:", str((end_date - result.start_date).days + 1))
        table.add_row("Holidays:", str(len(result.holiday_dates)))
        table.add_row(
            Text("Start date:", style="bold green"),
            Text(_fmt(result.start_date), style="bold green"),
        )
        self.console.print(Panel(table, title="[bold]Start Date[/bold]"))

        if result.holiday_dates:
            self.console.print(
                "Holidays in range: " + ", ".join(_fmt(d) for d in result.holiday_dates)
            )

    def print_end_date(self, start_date: date, working_days: int, end_date: date) -> None:
        """Print a computed end date."""
        table = Table(show_header=False, box=None)
        table.add_column("Label", style="cyan", width=20)
        table.add_column("Value", style="white")

        table.add_row("Start date:", _fmt(start_date))
        table.add_row("Working days:", str(working_days))
        table.add_row("Calendar days:", str((end_date - start_date).days + 1))
        table.add_row(
            Text("End date:", style="bold green"),
            Text(_fmt(end_date), style="bold green"),
        )
        self.console.print(Panel(table, title="[bold]End Date[/bold]"))

    def print_rules(self, rules: List[HolidayRule], title: str = "Holiday Rules") -> None:
        """
        Print a table of holiday rules.

        Args:
            rules: Rules to display.
            title: Table title.
        """
        if not rules:
            self.console.print("[dim]No holiday rules found.[/dim]")
            return

        table = Table(title=f"[bold]{title}[/bold]")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Name", style="white")
        table.add_column("Type", style="magenta")
        table.add_column("Applies", style="white")
        table.add_column("Status", style="dim")

        for rule in rules:
            status = (
                f"Cancelled {rule.cancelled_on.isoformat() if rule.cancelled_on else ''}".strip()
                if rule.cancelled
                else "Active"
            )
            table.add_row(
                str(rule.id),
                rule.name,
                KIND_LABELS[rule.kind],
                rule.describe(),
                status,
            )

        self.console.print(table)

    def print_tasks(self, tasks: List[Task], title: str = "Orders", stale_ids: Optional[set] = None) -> None:
        """Print a table of orders, flagging those with outdated holiday counts."""
        if not tasks:
            self.console.print("[dim]No orders found.[/dim]")
            return

        stale_ids = stale_ids or set()
        table = Table(title=f"[bold]{title}[/bold]")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Order", style="white")
        table.add_column("Name", style="white")
        table.add_column("Start", style="white")
        table.add_column("End", style="white")
        table.add_column("Due", style="white")
        table.add_column("Days", justify="right")
        table.add_column("Holidays", justify="right")
        table.add_column("Effort", justify="right")
        table.add_column("Status")

        for task in tasks:
            holidays = str(task.holiday_count)
            if task.id in stale_ids:
                holidays = f"[bold red]{holidays} ![/bold red]"
            table.add_row(
                str(task.id),
                task.order_number,
                task.order_name,
                _fmt(task.start_date),
                _fmt(task.end_date),
                _fmt(task.due_date),
                str(task.working_days),
                holidays,
                f"{task.effort:g}%",
                Text(task.status.value, style=STATUS_STYLES[task.status]),
            )

        self.console.print(table)

    def print_task(self, task: Task, warnings: Optional[List[str]] = None) -> None:
        """Print the details of a single order."""
        table = Table(show_header=False, box=None)
        table.add_column("Label", style="cyan", width=20)
        table.add_column("Value", style="white")

        table.add_row("Order:", f"{task.order_number} - {task.order_name}")
        table.add_row("Period:", f"{_fmt(task.start_date)} - {_fmt(task.end_date)}")
        table.add_row("Due:", _fmt(task.due_date))
        table.add_row("Working days:", str(task.working_days))
        table.add_row("Holidays:", ", ".join(_fmt(d) for d in task.holiday_dates) or "-")
        table.add_row("Status:", task.status.value)
        if task.customer_name:
            table.add_row("Customer:", task.customer_name)

        self.console.print(Panel(table, title=f"[bold]Order {task.id}[/bold]"))
        for warning in warnings or []:
            self.console.print(f"[yellow]Warning:[/yellow] {warning}")

    def print_staleness(self, reports: List[StalenessReport]) -> None:
        """Print holiday cache advisories."""
        if not reports:
            self.console.print("[green]All holiday counts are up to date.[/green]")
            return

        table = Table(title="[bold]Holiday Count May Be Outdated[/bold]")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Order", style="white")
        table.add_column("No longer holidays", style="red")
        table.add_column("New holidays", style="yellow")

        for report in reports:
            table.add_row(
                str(report.task_id),
                report.order_number,
                ", ".join(_fmt(d) for d in report.stale_dates) or "-",
                ", ".join(_fmt(d) for d in report.missing_dates) or "-",
            )

        self.console.print(table)
        self.console.print("[dim]Run 'tasks recalculate <id>' to refresh an order.[/dim]")

    def print_history(self, entries: List[HistoryEntry]) -> None:
        """Print the order history log."""
        if not entries:
            self.console.print("[dim]No history entries.[/dim]")
            return

        table = Table(title="[bold]History[/bold]")
        table.add_column("Time", style="dim")
        table.add_column("Action", style="magenta")
        table.add_column("Order", style="white")
        table.add_column("Details", style="white")
        table.add_column("User", style="cyan")

        for entry in entries:
            table.add_row(
                entry.timestamp.strftime("%d.%m.%Y %H:%M"),
                entry.action.value,
                f"{entry.order_number} {entry.order_name}",
                entry.details or "",
                entry.user_name,
            )

        self.console.print(table)

    def print_error(self, message: str) -> None:
        """
        Print an error message.

        Args:
            message: Error message to display.
        """
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """
        Print a success message.

        Args:
            message: Success message to display.
        """
        self.console.print(f"[bold green]Success:[/bold green] {message}")
