"""
CLI interface for the order scheduler.
"""

import logging
import sys
from datetime import date, datetime

import click

from order_scheduler import __version__
from order_scheduler.config.manager import ConfigManager
from order_scheduler.core.classifier import exception_name, holiday_name, is_holiday
from order_scheduler.core.date_arithmetic import (
    coerce_working_days,
    compute_end_date,
    compute_start_date,
)
from order_scheduler.core.scheduler import TaskScheduler
from order_scheduler.data.schemas import HolidayKind, HolidayRuleCreate, TaskCreate, TaskStatus
from order_scheduler.errors import RecordNotFound
from order_scheduler.output.exporter import ResultExporter
from order_scheduler.output.formatter import ConsoleFormatter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

formatter = ConsoleFormatter()

WEEKDAY_CHOICES = {
    "sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6,
}


def parse_date(date_str: str) -> date:
    """Parse date string in various formats."""
    formats = ["%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"]
    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    raise ValueError(
        f"Invalid date format: {date_str}. Use YYYY-MM-DD, DD.MM.YYYY, or DD/MM/YYYY"
    )


def fail(message: str) -> None:
    formatter.print_error(message)
    sys.exit(1)


def get_scheduler(ctx: click.Context) -> TaskScheduler:
    """Build the scheduler once per invocation from the loaded configuration."""
    if "scheduler" not in ctx.obj:
        config = ctx.obj["config"]
        logger.debug(f"Opening database {config.database_url or 'in memory'}")
        ctx.obj["scheduler"] = TaskScheduler.from_config(config)
    return ctx.obj["scheduler"]


@click.group()
@click.version_option(version=__version__, prog_name="order-scheduler")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to config file (optional)",
)
@click.option(
    "--database-url", "-d",
    help="SQLAlchemy database URL (overrides config)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config, database_url, verbose):
    """Order Scheduler - schedule orders around a holiday calendar."""
    ctx.ensure_object(dict)
    try:
        cfg = ConfigManager(config).load_config()
    except ValueError as e:
        fail(str(e))

    if database_url:
        cfg.database_url = database_url
    ctx.obj["config"] = cfg

    logging.getLogger().setLevel(logging.DEBUG if verbose else cfg.log_level)
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("day")
@click.pass_context
def check(ctx, day):
    """Check whether DAY is a holiday."""
    try:
        check_date = parse_date(day)
        rules = get_scheduler(ctx).rule_service.active_rules()
        formatter.print_day(
            check_date,
            is_holiday(check_date, rules),
            holiday_name(check_date, rules),
            exception_name(check_date, rules),
        )
    except ValueError as e:
        fail(str(e))


@main.command("start-date")
@click.option("--end", "-e", required=True, help="End date (YYYY-MM-DD, DD.MM.YYYY, or DD/MM/YYYY)")
@click.option("--days", "-n", required=True, type=int, help="Working days the order needs")
@click.pass_context
def start_date_cmd(ctx, end, days):
    """Compute the start date for an order ending on END."""
    try:
        end_date = parse_date(end)
        working_days = coerce_working_days(days)
        scheduler = get_scheduler(ctx)
        result = compute_start_date(
            end_date, working_days, scheduler.rule_service.active_rules(), scheduler.max_walk_days
        )
        formatter.print_start_date(end_date, working_days, result)
    except ValueError as e:
        fail(str(e))


@main.command("end-date")
@click.option("--start", "-s", required=True, help="Start date (YYYY-MM-DD, DD.MM.YYYY, or DD/MM/YYYY)")
@click.option("--days", "-n", required=True, type=int, help="Working days the order needs")
@click.pass_context
def end_date_cmd(ctx, start, days):
    """Compute the end date for an order starting on START."""
    try:
        start_date = parse_date(start)
        working_days = coerce_working_days(days)
        scheduler = get_scheduler(ctx)
        end_date = compute_end_date(
            start_date, working_days, scheduler.rule_service.active_rules(), scheduler.max_walk_days
        )
        formatter.print_end_date(start_date, working_days, end_date)
    except ValueError as e:
        fail(str(e))


# Holiday rules


@main.group()
def holidays():
    """Manage holiday rules."""
    pass


@holidays.command("list")
@click.option(
    "--show", "-s",
    type=click.Choice(["active", "all", "cancelled", "future", "expired"]),
    default="active",
    help="Which rules to list (default: active)",
)
@click.pass_context
def holidays_list(ctx, show):
    """List holiday rules."""
    service = get_scheduler(ctx).rule_service
    listings = {
        "active": (service.active_rules, "Active Holidays"),
        "all": (service.list_rules, "All Holidays"),
        "cancelled": (service.cancelled_rules, "Cancelled Holidays"),
        "future": (service.active_and_future, "Active and Future Holidays"),
        "expired": (service.expired, "Expired Holidays"),
    }
    fetch, title = listings[show]
    formatter.print_rules(fetch(), title=title)


@holidays.command("add")
@click.option("--name", "-n", required=True, help="Display name")
@click.option(
    "--type", "-t", "kind",
    type=click.Choice([k.value for k in HolidayKind]),
    default=HolidayKind.SPECIFIC_DATE.value,
    help="Rule type (default: specific_date)",
)
@click.option("--date", "-d", "day", help="Date for specific_date and exception rules")
@click.option(
    "--weekday", "-w",
    type=click.Choice(list(WEEKDAY_CHOICES), case_sensitive=False),
    help="Weekday for day_of_week rules",
)
@click.option("--from", "-f", "effective_from", help="First date a day_of_week rule applies (default: today)")
@click.pass_context
def holidays_add(ctx, name, kind, day, weekday, effective_from):
    """Add a holiday rule."""
    try:
        form = HolidayRuleCreate(
            name=name,
            kind=HolidayKind(kind),
            holiday_date=parse_date(day) if day else None,
            weekday=WEEKDAY_CHOICES[weekday.lower()] if weekday else None,
            effective_from=parse_date(effective_from) if effective_from else None,
        )
        rule = get_scheduler(ctx).rule_service.create(form)
        formatter.print_success(f"Created holiday rule {rule.id}: {rule.name} ({rule.describe()})")
    except ValueError as e:
        fail(str(e))


@holidays.command("cancel")
@click.argument("rule_id", type=int)
@click.pass_context
def holidays_cancel(ctx, rule_id):
    """Cancel the holiday rule RULE_ID."""
    scheduler = get_scheduler(ctx)
    try:
        affected = scheduler.rule_service.cancel(rule_id, scheduler.list_tasks())
    except ValueError as e:
        fail(str(e))

    formatter.print_success(f"Cancelled holiday rule {rule_id}")
    if affected:
        formatter.print_warning(
            f"{len(affected)} orders may need holiday count updates: "
            + ", ".join(t.order_number for t in affected)
        )


@holidays.command("clear")
@click.confirmation_option(prompt="Permanently delete all cancelled holiday rules?")
@click.pass_context
def holidays_clear(ctx):
    """Permanently delete cancelled holiday rules."""
    count = get_scheduler(ctx).rule_service.clear_cancelled()
    formatter.print_success(f"Cleared {count} cancelled holiday rules")


@holidays.command("import")
@click.option("--country", "-C", default="DE", show_default=True, help="ISO country code")
@click.option("--year", "-y", "years", type=int, multiple=True, help="Year to import (repeatable)")
@click.option("--subdiv", "-s", help="Subdivision code, e.g. HH")
@click.pass_context
def holidays_import(ctx, country, years, subdiv):
    """Import public holidays as specific-date rules."""
    years = years or (date.today().year,)
    try:
        created = get_scheduler(ctx).rule_service.import_public_holidays(country, years, subdiv)
    except ValueError as e:
        fail(str(e))
    formatter.print_rules(created, title=f"Imported Holidays ({country})")
    formatter.print_success(f"Imported {len(created)} public holidays")


# Orders


@main.group()
def tasks():
    """Manage orders."""
    pass


@tasks.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in TaskStatus]),
    help="Only show orders with this status",
)
@click.option("--overdue", is_flag=True, help="Only show overdue orders")
@click.option("--upcoming", type=int, help="Only show orders due within this many days")
@click.option("--due-on", help="Only show orders due on this date")
@click.pass_context
def tasks_list(ctx, status, overdue, upcoming, due_on):
    """List orders."""
    scheduler = get_scheduler(ctx)
    if due_on:
        try:
            day = parse_date(due_on)
        except ValueError as e:
            fail(str(e))
        task_list, title = scheduler.due_on(day), f"Orders Due On {day.isoformat()}"
    elif overdue:
        task_list, title = scheduler.overdue(), "Overdue Orders"
    elif upcoming is not None:
        task_list, title = scheduler.upcoming(days=upcoming), f"Orders Due Within {upcoming} Days"
    else:
        task_list = scheduler.list_tasks(TaskStatus(status) if status else None)
        title = "Orders"
    stale_ids = {report.task_id for report in scheduler.staleness()}
    formatter.print_tasks(task_list, title=title, stale_ids=stale_ids)


@tasks.command("add")
@click.option("--number", "-n", "order_number", required=True, help="Order number")
@click.option("--name", "-N", "order_name", required=True, help="Order name")
@click.option("--end", "-e", required=True, help="End date")
@click.option("--due", "-u", help="Due date (default: end date)")
@click.option("--days", "-w", "working_days", type=int, default=1, show_default=True, help="Working days")
@click.option("--effort", type=float, default=25.0, show_default=True, help="Effort in percent")
@click.option("--customer", default="", help="Customer name")
@click.option("--phone", default="", help="Phone number")
@click.option("--notes", default="", help="Notes")
@click.option("--user", default="System", help="User recorded in the history log")
@click.pass_context
def tasks_add(ctx, order_number, order_name, end, due, working_days, effort, customer, phone, notes, user):
    """Add an order, scheduling it backward from its end date."""
    scheduler = get_scheduler(ctx)
    try:
        end_date = parse_date(end)
        form = TaskCreate(
            order_number=order_number,
            order_name=order_name,
            end_date=end_date,
            due_date=parse_date(due) if due else end_date,
            working_days=working_days,
            effort=effort,
            customer_name=customer,
            phone_number=phone,
            notes=notes,
        )
        task = scheduler.create_task(form, user_name=user)
    except ValueError as e:
        fail(str(e))

    formatter.print_task(task, scheduler.holiday_warnings(task))
    formatter.print_success(f"Created order {task.order_number} (id {task.id})")


@tasks.command("show")
@click.argument("task_id", type=int)
@click.pass_context
def tasks_show(ctx, task_id):
    """Show the order TASK_ID."""
    scheduler = get_scheduler(ctx)
    try:
        task = scheduler.get_task(task_id)
    except RecordNotFound as e:
        fail(str(e))
    formatter.print_task(task, scheduler.holiday_warnings(task))


@tasks.command("edit")
@click.argument("task_id", type=int)
@click.option("--status", type=click.Choice([s.value for s in TaskStatus]), help="New status")
@click.option("--end", "-e", help="New end date, the start date is recomputed")
@click.option("--days", "-w", "working_days", type=int, help="New working-day count")
@click.option("--due", "-u", help="New due date")
@click.option("--effort", type=float, help="Effort in percent")
@click.option("--name", "-N", "order_name", help="Order name")
@click.option("--customer", help="Customer name")
@click.option("--phone", help="Phone number")
@click.option("--notes", help="Notes")
@click.option("--user", default="System", help="User recorded in the history log")
@click.pass_context
def tasks_edit(ctx, task_id, status, end, working_days, due, effort, order_name, customer, phone, notes, user):
    """Edit the order TASK_ID."""
    scheduler = get_scheduler(ctx)
    try:
        changes = {
            "status": TaskStatus(status) if status else None,
            "end_date": parse_date(end) if end else None,
            "working_days": working_days,
            "due_date": parse_date(due) if due else None,
            "effort": effort,
            "order_name": order_name,
            "customer_name": customer,
            "phone_number": phone,
            "notes": notes,
        }
        changes = {key: value for key, value in changes.items() if value is not None}
        if not changes:
            fail("Nothing to change. Pass at least one option.")
        task = scheduler.update_task(task_id, user_name=user, **changes)
    except ValueError as e:
        fail(str(e))

    formatter.print_task(task, scheduler.holiday_warnings(task))
    formatter.print_success(f"Updated order {task.order_number}")


@tasks.command("move")
@click.argument("task_id", type=int)
@click.option("--start", "-s", required=True, help="New start date")
@click.option("--user", default="System", help="User recorded in the history log")
@click.pass_context
def tasks_move(ctx, task_id, start, user):
    """Move the order TASK_ID to a new start date, keeping its working days."""
    scheduler = get_scheduler(ctx)
    try:
        new_start = parse_date(start)
        task = scheduler.move_task(task_id, new_start, user_name=user)
    except ValueError as e:
        fail(str(e))

    formatter.print_task(task, scheduler.holiday_warnings(task))
    formatter.print_success(f"Moved order {task.order_number}")


@tasks.command("recalculate")
@click.argument("task_id", type=int)
@click.pass_context
def tasks_recalculate(ctx, task_id):
    """Recalculate the holiday count of the order TASK_ID."""
    try:
        task = get_scheduler(ctx).recalculate(task_id)
    except ValueError as e:
        fail(str(e))
    formatter.print_success(f"Task holiday count manually updated to {task.holiday_count}")


@tasks.command("stale")
@click.pass_context
def tasks_stale(ctx):
    """List orders whose holiday count is outdated."""
    formatter.print_staleness(get_scheduler(ctx).staleness())


@tasks.command("delete")
@click.argument("task_id", type=int)
@click.option("--user", default="System", help="User recorded in the history log")
@click.pass_context
def tasks_delete(ctx, task_id, user):
    """Delete the order TASK_ID."""
    try:
        task = get_scheduler(ctx).delete_task(task_id, user_name=user)
    except ValueError as e:
        fail(str(e))
    formatter.print_success(f"Deleted order {task.order_number}")


@main.command()
@click.option("--limit", "-l", type=int, default=50, show_default=True, help="Number of entries")
@click.option("--clear", is_flag=True, help="Clear the history log")
@click.pass_context
def history(ctx, limit, clear):
    """Show the order history log."""
    log = get_scheduler(ctx).history
    if clear:
        count = log.clear()
        formatter.print_success(f"Cleared {count} history entries")
        return
    formatter.print_history(log.entries(limit))


@main.command()
@click.option(
    "--what", "-w",
    type=click.Choice(["tasks", "holidays"]),
    default="tasks",
    help="What to export (default: tasks)",
)
@click.option(
    "--format", "-f",
    type=click.Choice(["json", "csv"]),
    default=None,
    help="Output format (default: from config)",
)
@click.option("--output", "-o", type=click.Path(), help="Output file path (optional)")
@click.pass_context
def export(ctx, what, format, output):
    """Export orders or holiday rules."""
    cfg = ctx.obj["config"]
    scheduler = get_scheduler(ctx)
    exporter = ResultExporter(output_directory=cfg.output_directory)
    format = format or cfg.output_format

    if what == "tasks":
        records = scheduler.list_tasks()
        export_fn = exporter.export_tasks_csv if format == "csv" else exporter.export_tasks_json
    else:
        records = scheduler.rule_service.list_rules()
        export_fn = exporter.export_rules_csv if format == "csv" else exporter.export_rules_json

    path = export_fn(records, output)
    formatter.print_success(f"Exported {len(records)} {what} to {path}")


@main.command()
@click.option(
    "--host", "-h",
    default=None,
    help="Host to bind to (default: from config or 0.0.0.0)",
)
@click.option(
    "--port", "-p",
    type=int,
    default=None,
    help="Port to bind to (default: from config or 8000)",
)
@click.pass_context
def serve(ctx, host, port):
    """Start the FastAPI server."""
    try:
        import uvicorn
    except ImportError:
        fail("uvicorn is required for the API server. Install it with: pip install uvicorn")

    cfg = ctx.obj["config"]
    api_host = host or cfg.api_host
    api_port = port or cfg.api_port

    formatter.console.print(f"Starting API server at http://{api_host}:{api_port}")
    formatter.console.print("Press Ctrl+C to stop")
    formatter.console.print()

    uvicorn.run(
        "order_scheduler.api:app",
        host=api_host,
        port=api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
