"""
TASKCAL Core API - Calendar Schemas

Pydantic models for the calendar endpoints.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskcal.calendar.binning import DateTaskStats
from taskcal.calendar.enums import ViewMode
from taskcal.calendar.models import DateRange
from taskcal.tasks.enums import TaskPriority
from taskcal.tasks.schemas import TaskResponse


class DateRangeResponse(BaseModel):
    start: datetime
    end: datetime

    @classmethod
    def from_range(cls, date_range: DateRange) -> "DateRangeResponse":
        return cls(start=date_range.start, end=date_range.end)


class DayBucket(BaseModel):
    """Tasks due on one calendar date."""

    date: date
    tasks: List[TaskResponse]
    count: int


class CalendarEventsResponse(BaseModel):
    """Visible range of a view plus its tasks grouped by date."""

    view: ViewMode
    anchor_date: date
    date_range: DateRangeResponse
    days: List[DayBucket] = Field(description="Dates with at least one task, ascending")
    count: int = Field(description="Number of tasks in the range after filtering")


class DayTasksResponse(BaseModel):
    date: date
    tasks: List[TaskResponse] = Field(description="Tasks sorted by due time")
    times: List[str] = Field(description="Display time of each task, in the order of tasks")
    count: int


class TimeSlotFields(BaseModel):
    hour: Optional[int] = Field(default=None, ge=0, le=23, description="Time slot hour; omit to keep the time of day")
    minute: int = Field(default=0, ge=0, le=59)


class CalendarTaskCreateRequest(TimeSlotFields):
    """Create a task from a calendar cell, due date pre-filled."""

    title: str = Field(min_length=1, max_length=200)
    date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = Field(default=None, max_length=2000)


class RescheduleRequest(TimeSlotFields):
    """Move a task to another date, optionally to a specific time slot."""

    date: date


class DateStatsResponse(BaseModel):
    date: date
    total: int
    pending: int
    in_progress: int
    completed: int
    failed: int
    overdue: int
    high: int
    medium: int
    low: int

    @classmethod
    def from_stats(cls, stats: DateTaskStats) -> "DateStatsResponse":
        return cls(
            date=stats.date,
            total=stats.total,
            pending=stats.pending,
            in_progress=stats.in_progress,
            completed=stats.completed,
            failed=stats.failed,
            overdue=stats.overdue,
            high=stats.high,
            medium=stats.medium,
            low=stats.low,
        )


class CalendarSummaryResponse(BaseModel):
    date_range: DateRangeResponse
    days: List[DateStatsResponse]
