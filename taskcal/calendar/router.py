"""
TASKCAL Core API - Calendar Router

Read endpoints compute ranges and date buckets with the calendar core over
the owner's tasks; write endpoints create tasks on a date and reschedule
them.
"""

from dataclasses import replace
from datetime import date, datetime, time, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from taskcal.config import settings
from taskcal.dependencies import CurrentOwner
from taskcal.calendar.binning import bin_tasks, sort_tasks_by_time, summarize_range, tasks_for_date, tasks_in_range
from taskcal.calendar.enums import TimeFormat, ViewMode
from taskcal.calendar.errors import StaleDropError, ValidationError
from taskcal.calendar.filters import apply_filters, parse_filter_params
from taskcal.calendar.models import CalendarSettings, Clock, DateRange, system_clock
from taskcal.calendar.ranges import compute_range, end_of_day, start_of_day
from taskcal.calendar.reschedule import TimeSlot, compute_new_due
from taskcal.calendar.schemas import (
    CalendarEventsResponse,
    CalendarSummaryResponse,
    CalendarTaskCreateRequest,
    DateRangeResponse,
    DateStatsResponse,
    DayBucket,
    DayTasksResponse,
    RescheduleRequest,
)
from taskcal.tasks.enums import TaskStatus
from taskcal.tasks.router import get_task_service, to_response
from taskcal.tasks.schemas import TaskCreateRequest, TaskResponse
from taskcal.tasks.service import TaskService


router = APIRouter(prefix="/calendar", tags=["Calendar"])


async def get_clock() -> Clock:
    """Dependency for the current time; overridden in tests."""
    return system_clock


def _bad_request(error: ValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")


def _time_slot(hour: Optional[int], minute: int) -> Optional[TimeSlot]:
    return TimeSlot(hour, minute) if hour is not None else None


@router.get(
    "/events",
    response_model=CalendarEventsResponse,
    summary="Tasks in the visible range of a view",
)
async def get_events(
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    clock: Annotated[Clock, Depends(get_clock)],
    view: ViewMode = Query(default=ViewMode.MONTH),
    anchor: Optional[date] = Query(default=None, alias="date", description="Anchor date, defaults to today"),
    week_start: int = Query(default=settings.WEEK_START_DAY, ge=0, le=6, description="0 = Sunday"),
    lookahead: int = Query(default=settings.AGENDA_LOOKAHEAD_DAYS, ge=1, le=366),
    priority: Optional[str] = Query(default=None, description="Comma-separated priorities"),
    status_filter: Optional[str] = Query(default=None, alias="status", description="Comma-separated statuses"),
    tags: Optional[str] = Query(default=None, description="Comma-separated tags, any match"),
) -> CalendarEventsResponse:
    try:
        filter_set = parse_filter_params(priority=priority, status=status_filter, tags=tags)
        anchor_day = anchor or clock().date()
        date_range = compute_range(anchor_day, view, week_start, lookahead)
    except ValidationError as e:
        raise _bad_request(e)

    tasks = await service.list_tasks(owner_id)
    visible = tasks_in_range(apply_filters(tasks, filter_set), date_range)
    index = bin_tasks(visible)
    now = clock()

    return CalendarEventsResponse(
        view=view,
        anchor_date=anchor_day,
        date_range=DateRangeResponse.from_range(date_range),
        days=[
            DayBucket(
                date=day,
                tasks=[to_response(t, now) for t in index[day]],
                count=len(index[day]),
            )
            for day in sorted(index)
        ],
        count=len(visible),
    )


@router.get(
    "/tasks/{day}",
    response_model=DayTasksResponse,
    summary="Tasks due on one date",
)
async def get_tasks_for_day(
    day: date,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    clock: Annotated[Clock, Depends(get_clock)],
    time_format: Optional[TimeFormat] = Query(default=None, description="12h or 24h, defaults to TIME_FORMAT"),
) -> DayTasksResponse:
    calendar_settings = CalendarSettings.from_config()
    if time_format is not None:
        calendar_settings = replace(calendar_settings, time_format=time_format)

    tasks = sort_tasks_by_time(tasks_for_date(await service.list_tasks(owner_id), day))
    now = clock()
    return DayTasksResponse(
        date=day,
        tasks=[to_response(t, now) for t in tasks],
        times=[calendar_settings.format_time(t.due) for t in tasks],
        count=len(tasks),
    )


@router.post(
    "/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task due on a calendar date",
)
async def create_calendar_task(
    request: CalendarTaskCreateRequest,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TaskResponse:
    slot = _time_slot(request.hour, request.minute)
    due = datetime.combine(request.date, slot.as_time() if slot else time.min, tzinfo=timezone.utc)
    task = await service.create_task(
        owner_id=owner_id,
        request=TaskCreateRequest(
            title=request.title,
            status=TaskStatus.IN_PROGRESS,
            priority=request.priority,
            due=due,
            tags=request.tags,
            description=request.description,
        ),
    )
    return to_response(task, clock())


@router.put(
    "/tasks/{task_id}/date",
    response_model=TaskResponse,
    summary="Reschedule a task (drag and drop)",
)
async def reschedule_task(
    task_id: str,
    request: RescheduleRequest,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TaskResponse:
    """
    Move a task to another date. Without hour/minute the task keeps its time
    of day. Returns 404 when the task no longer exists.
    """
    try:
        task = await service.get_task(task_id, owner_id)
        if task is None:
            raise StaleDropError(task_id)
        new_due = compute_new_due(task, request.date, _time_slot(request.hour, request.minute))
        updated = await service.reschedule_task(task_id, owner_id, new_due)
        if updated is None:
            raise StaleDropError(task_id)
    except StaleDropError:
        raise _not_found()
    except ValidationError as e:
        raise _bad_request(e)
    return to_response(updated, clock())


@router.get(
    "/summary",
    response_model=CalendarSummaryResponse,
    summary="Per-date task counts for a date span",
)
async def get_summary(
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    clock: Annotated[Clock, Depends(get_clock)],
    start: date = Query(description="First date, inclusive"),
    end: date = Query(description="Last date, inclusive"),
) -> CalendarSummaryResponse:
    try:
        date_range = DateRange(start=start_of_day(start), end=end_of_day(end))
    except ValidationError as e:
        raise _bad_request(e)

    tasks = await service.list_tasks(owner_id)
    stats = summarize_range(tasks, date_range, clock())
    return CalendarSummaryResponse(
        date_range=DateRangeResponse.from_range(date_range),
        days=[DateStatsResponse.from_stats(s) for s in stats],
    )
