"""
TASKCAL Core API - Task Date Binning

Groups tasks by the calendar date they are due on and answers per-date and
per-range questions. Every function keeps the input order of tasks; callers
that want a time-ordered list apply sort_tasks_by_time themselves.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Sequence

from taskcal.calendar.models import DateRange, align_tz
from taskcal.calendar.ranges import date_key
from taskcal.tasks.enums import TaskPriority, TaskStatus
from taskcal.tasks.models import Task
from taskcal.tasks.service import TaskService


TaskDateIndex = dict[date, List[Task]]


def bin_tasks(tasks: Iterable[Task]) -> TaskDateIndex:
    """Bucket dated tasks by due date. Undated tasks are left out."""
    index: TaskDateIndex = {}
    for task in tasks:
        if task.due is None:
            continue
        index.setdefault(task.due.date(), []).append(task)
    return index


def tasks_for_date(tasks: Iterable[Task], day) -> List[Task]:
    key = date_key(day)
    return [task for task in tasks if task.due is not None and task.due.date() == key]


def tasks_in_range(tasks: Iterable[Task], date_range: DateRange) -> List[Task]:
    """
    Tasks whose due date falls on any date of the inclusive range, in input
    order. Matches bin_tasks: a task is in the range exactly when its bucket is.
    """
    first, last = date_range.start.date(), date_range.end.date()
    return [task for task in tasks if task.due is not None and first <= task.due.date() <= last]


def sort_tasks_by_time(tasks: Iterable[Task]) -> List[Task]:
    """Stable sort by due timestamp; undated tasks go last."""
    tasks = list(tasks)
    dated = [task for task in tasks if task.due is not None]
    undated = [task for task in tasks if task.due is None]
    if dated:
        reference = dated[0].due
        dated.sort(key=lambda task: align_tz(task.due, reference))
    return dated + undated


def task_conflicts(task: Task, tasks: Iterable[Task]) -> List[Task]:
    """Other dated tasks that fall on the same calendar date as `task`."""
    if task.due is None:
        return []
    return [other for other in tasks_for_date(tasks, task.due) if other.id != task.id]


@dataclass(frozen=True)
class DateTaskStats:
    """Per-date task counts used for day badges and range summaries."""

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


def date_task_stats(tasks: Sequence[Task], day, now: datetime) -> DateTaskStats:
    day_tasks = tasks_for_date(tasks, day)

    def count_status(status: TaskStatus) -> int:
        return sum(1 for t in day_tasks if t.status == status)

    def count_priority(priority: TaskPriority) -> int:
        return sum(1 for t in day_tasks if t.priority == priority)

    return DateTaskStats(
        date=date_key(day),
        total=len(day_tasks),
        pending=count_status(TaskStatus.PENDING),
        in_progress=count_status(TaskStatus.IN_PROGRESS),
        completed=count_status(TaskStatus.COMPLETED),
        failed=count_status(TaskStatus.FAILED),
        overdue=sum(1 for t in day_tasks if TaskService.is_overdue(t, now)),
        high=count_priority(TaskPriority.HIGH),
        medium=count_priority(TaskPriority.MEDIUM),
        low=count_priority(TaskPriority.LOW),
    )


def summarize_range(tasks: Sequence[Task], date_range: DateRange, now: datetime) -> List[DateTaskStats]:
    """Stats for every date in the range that has at least one task, date ascending."""
    in_range = tasks_in_range(tasks, date_range)
    index = bin_tasks(in_range)
    return [date_task_stats(index[day], day, now) for day in sorted(index)]
