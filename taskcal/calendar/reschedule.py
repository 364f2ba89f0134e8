"""
TASKCAL Core API - Reschedule Validation

Computes the new due timestamp for a task moved to another date (and
optionally another time slot), and decides whether a drop is acceptable.
Dropping onto a past date is allowed; overdue is a display concern.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Optional

from taskcal.calendar.errors import StaleDropError, ValidationError
from taskcal.calendar.ranges import as_datetime
from taskcal.tasks.models import Task


def _check_part(name: str, value, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= upper:
        raise ValidationError(f"{name} must be an integer 0-{upper}, got {value!r}")


@dataclass(frozen=True)
class TimeSlot:
    """Time of day a task is dropped onto (week and day views)."""

    hour: int
    minute: int = 0

    def __post_init__(self):
        _check_part("hour", self.hour, 23)
        _check_part("minute", self.minute, 59)

    def as_time(self) -> time:
        return time(self.hour, self.minute)


def validate_drop(task: Optional[Task], target_date) -> bool:
    """A drop needs something being dragged and a date to land on."""
    if task is None or target_date is None:
        return False
    return isinstance(target_date, date)


def compute_new_due(
    task: Task,
    target_date,
    time_slot: Optional[TimeSlot] = None,
) -> datetime:
    """
    New due timestamp on `target_date`.

    With a time slot the slot's hour and minute are used. Without one the
    task's existing time of day is kept; an undated task lands at midnight.
    The existing due's tzinfo carries over.
    """
    if task is None:
        raise ValidationError("No task to reschedule")
    if target_date is None:
        raise ValidationError("Target date is required")
    target_day = as_datetime(target_date).date()

    if time_slot is not None:
        time_of_day = time_slot.as_time()
    elif task.due is not None:
        time_of_day = task.due.timetz().replace(tzinfo=None)
    else:
        time_of_day = time.min

    if task.due is not None:
        tzinfo = task.due.tzinfo
    elif isinstance(target_date, datetime):
        tzinfo = target_date.tzinfo
    else:
        tzinfo = None
    return datetime.combine(target_day, time_of_day, tzinfo=tzinfo)


def ensure_task_present(task_id: str, tasks: Iterable[Task]) -> Task:
    """Look a task up by id, raising StaleDropError if it is gone."""
    for task in tasks:
        if task.id == task_id:
            return task
    raise StaleDropError(task_id)
