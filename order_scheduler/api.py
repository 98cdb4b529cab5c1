"""
FastAPI REST API for the order scheduler.
"""

from datetime import date
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from order_scheduler import __version__
from order_scheduler.config.manager import ConfigManager
from order_scheduler.core.classifier import (
    exception_name,
    holiday_name,
    is_holiday,
    is_weekend_heuristic,
)
from order_scheduler.core.date_arithmetic import (
    coerce_working_days,
    compute_end_date,
    compute_start_date,
)
from order_scheduler.core.scheduler import TaskScheduler
from order_scheduler.core.staleness import find_stale_dates
from order_scheduler.data.schemas import (
    HolidayRule,
    HolidayRuleCreate,
    StalenessReport,
    Task,
    TaskCreate,
    TaskStatus,
)
from order_scheduler.errors import RecordNotFound


# Load configuration
config_manager = ConfigManager()
config = config_manager.load_config()

# Initialize components
scheduler = TaskScheduler.from_config(config)


# API Models
class DayCheckResponse(BaseModel):
    """Response model for a single date classification."""

    date: date
    is_holiday: bool
    holiday_name: Optional[str]
    exception_name: Optional[str]
    is_weekend: bool


class StartDateRequest(BaseModel):
    """Request model for computing a start date."""

    end_date: date = Field(..., description="Last day of work")
    working_days: int = Field(1, description="Working days needed, values below 1 become 1")


class StartDateResponse(BaseModel):
    """Response model for a computed start date."""

    start_date: date
    end_date: date
    working_days: int
    holiday_dates: List[date]
    holiday_count: int


class EndDateRequest(BaseModel):
    """Request model for computing an end date."""

    start_date: date = Field(..., description="First day of work")
    working_days: int = Field(1, description="Working days needed, values below 1 become 1")


class EndDateResponse(BaseModel):
    """Response model for a computed end date."""

    start_date: date
    end_date: date
    working_days: int


class StaleDatesRequest(BaseModel):
    """Request model for checking cached holiday dates."""

    holiday_dates: List[date] = Field(default_factory=list, description="Cached holiday dates")


class StaleDatesResponse(BaseModel):
    """Response model for stale cached holiday dates."""

    stale_dates: List[date]
    is_stale: bool


class CancelResponse(BaseModel):
    """Response model for a cancelled holiday rule."""

    rule: HolidayRule
    affected_tasks: List[Task]


class MoveRequest(BaseModel):
    """Request model for moving an order."""

    start_date: date = Field(..., description="New start date")
    user_name: str = Field("System", description="User recorded in the history log")


class TaskUpdate(BaseModel):
    """Request model for editing an order. Only the fields sent are changed."""

    order_number: Optional[str] = None
    order_name: Optional[str] = None
    end_date: Optional[date] = Field(None, description="New end date, the start date is recomputed")
    due_date: Optional[date] = None
    working_days: Optional[int] = Field(None, description="New working-day count, the start date is recomputed")
    effort: Optional[float] = Field(None, ge=0)
    status: Optional[TaskStatus] = None
    notes: Optional[str] = None
    color: Optional[str] = None
    row: Optional[int] = None
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None


class TaskResponse(BaseModel):
    """Response model for an order with its holiday warnings."""

    task: Task
    warnings: List[str]


def _bad_request(e: ValueError) -> HTTPException:
    if isinstance(e, RecordNotFound):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# FastAPI app
app = FastAPI(
    title="Order Scheduler API",
    description="Schedule orders on working days around a holiday calendar",
    version=__version__,
)


@app.get("/")
async def root():
    """API root endpoint with basic info."""
    return {
        "name": "Order Scheduler API",
        "version": __version__,
        "endpoints": {
            "GET /holidays/check/{date}": "Classify a date",
            "GET /holidays": "List holiday rules",
            "POST /holidays": "Create a holiday rule",
            "POST /holidays/{rule_id}/cancel": "Cancel a holiday rule",
            "POST /calculate/start-date": "Compute a start date from an end date",
            "POST /calculate/end-date": "Compute an end date from a start date",
            "POST /calculate/stale-dates": "Find cached holiday dates that are no longer holidays",
            "GET /tasks": "List orders",
            "POST /tasks": "Create an order",
            "PATCH /tasks/{task_id}": "Edit an order",
            "POST /tasks/{task_id}/move": "Move an order to a new start date",
            "GET /tasks/stale": "Orders with outdated holiday counts",
        },
    }


@app.get("/holidays/check/{check_date}", response_model=DayCheckResponse)
async def check_date(check_date: date):
    """Classify a single date against the active holiday rules."""
    rules = scheduler.rule_service.active_rules()
    return DayCheckResponse(
        date=check_date,
        is_holiday=is_holiday(check_date, rules),
        holiday_name=holiday_name(check_date, rules),
        exception_name=exception_name(check_date, rules),
        is_weekend=is_weekend_heuristic(check_date),
    )


@app.get("/holidays", response_model=List[HolidayRule])
async def list_holidays(
    show: str = Query("active", pattern="^(active|all|cancelled|future|expired)$"),
):
    """
    List holiday rules.

    - active: rules that are not cancelled
    - all: every rule, cancelled ones included
    - cancelled: cancelled rules only
    - future: active rules dated today or later, plus recurring rules
    - expired: active rules dated in the past
    """
    service = scheduler.rule_service
    listings = {
        "active": service.active_rules,
        "all": service.list_rules,
        "cancelled": service.cancelled_rules,
        "future": service.active_and_future,
        "expired": service.expired,
    }
    return listings[show]()


@app.post("/holidays", response_model=HolidayRule, status_code=201)
async def create_holiday(form: HolidayRuleCreate):
    """Create a holiday rule."""
    try:
        return scheduler.rule_service.create(form)
    except ValueError as e:
        raise _bad_request(e)


@app.post("/holidays/{rule_id}/cancel", response_model=CancelResponse)
async def cancel_holiday(rule_id: int):
    """Cancel a holiday rule and report the orders it touched."""
    try:
        affected = scheduler.rule_service.cancel(rule_id, scheduler.list_tasks())
        return CancelResponse(rule=scheduler.rule_service.get(rule_id), affected_tasks=affected)
    except ValueError as e:
        raise _bad_request(e)


@app.post("/calculate/start-date", response_model=StartDateResponse)
async def calculate_start_date(request: StartDateRequest):
    """Compute the start date of an order from its end date and working days."""
    working_days = coerce_working_days(request.working_days)
    try:
        result = compute_start_date(
            request.end_date,
            working_days,
            scheduler.rule_service.active_rules(),
            scheduler.max_walk_days,
        )
    except ValueError as e:
        raise _bad_request(e)

    return StartDateResponse(
        start_date=result.start_date,
        end_date=request.end_date,
        working_days=working_days,
        holiday_dates=result.holiday_dates,
        holiday_count=len(result.holiday_dates),
    )


@app.post("/calculate/end-date", response_model=EndDateResponse)
async def calculate_end_date(request: EndDateRequest):
    """Compute the end date of an order from its start date and working days."""
    working_days = coerce_working_days(request.working_days)
    try:
        end_date = compute_end_date(
            request.start_date,
            working_days,
            scheduler.rule_service.active_rules(),
            scheduler.max_walk_days,
        )
    except ValueError as e:
        raise _bad_request(e)

    return EndDateResponse(start_date=request.start_date, end_date=end_date, working_days=working_days)


@app.post("/calculate/stale-dates", response_model=StaleDatesResponse)
async def calculate_stale_dates(request: StaleDatesRequest):
    """Find cached holiday dates the current rules no longer treat as holidays."""
    stale = find_stale_dates(request.holiday_dates, scheduler.rule_service.active_rules())
    return StaleDatesResponse(stale_dates=stale, is_stale=bool(stale))


@app.get("/tasks", response_model=List[Task])
async def list_tasks(status: Optional[TaskStatus] = None, due_on: Optional[date] = None):
    """List orders, optionally filtered by status and due date."""
    tasks = scheduler.list_tasks(status)
    if due_on is not None:
        tasks = [task for task in tasks if task.due_date == due_on]
    return tasks


@app.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(form: TaskCreate, user_name: str = Query("System")):
    """Create an order scheduled backward from its end date."""
    try:
        task = scheduler.create_task(form, user_name=user_name)
    except ValueError as e:
        raise _bad_request(e)
    return TaskResponse(task=task, warnings=scheduler.holiday_warnings(task))


@app.get("/tasks/stale", response_model=List[StalenessReport])
async def stale_tasks():
    """Orders whose cached holiday dates no longer match the rules."""
    return scheduler.staleness()


@app.delete("/tasks/{task_id}", response_model=Task)
async def delete_task(task_id: int, user_name: str = Query("System")):
    """Delete an order."""
    try:
        return scheduler.delete_task(task_id, user_name=user_name)
    except ValueError as e:
        raise _bad_request(e)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, request: TaskUpdate, user_name: str = Query("System")):
    """Edit an order. Changing the end date or working days reschedules it."""
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        task = scheduler.update_task(task_id, user_name=user_name, **changes)
    except ValueError as e:
        raise _bad_request(e)
    return TaskResponse(task=task, warnings=scheduler.holiday_warnings(task))


@app.post("/tasks/{task_id}/move", response_model=TaskResponse)
async def move_task(task_id: int, request: MoveRequest):
    """Move an order to a new start date, keeping its working days."""
    try:
        task = scheduler.move_task(task_id, request.start_date, user_name=request.user_name)
    except ValueError as e:
        raise _bad_request(e)
    return TaskResponse(task=task, warnings=scheduler.holiday_warnings(task))


@app.post("/tasks/{task_id}/recalculate", response_model=Task)
async def recalculate_task(task_id: int):
    """Refresh an order's cached holiday dates from the current rules."""
    try:
        return scheduler.recalculate(task_id)
    except ValueError as e:
        raise _bad_request(e)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
