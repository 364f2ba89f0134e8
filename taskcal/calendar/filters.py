"""
TASKCAL Core API - Calendar Filters

Applies a CalendarFilterSet to a task collection. Filters are applied at
query time and never baked into the date index.
"""

from typing import Iterable, List, Optional

from taskcal.calendar.models import CalendarFilterSet
from taskcal.tasks.models import Task


def matches(task: Task, filter_set: CalendarFilterSet) -> bool:
    """
    True when the task passes every dimension.

    priority/status: empty set or contains the task's value.
    tags: empty set or shares at least one tag with the task.
    """
    if filter_set.priority and task.priority.value not in filter_set.priority:
        return False
    if filter_set.status and task.status.value not in filter_set.status:
        return False
    if filter_set.tags and filter_set.tags.isdisjoint(task.tags):
        return False
    return True


def apply_filters(tasks: Iterable[Task], filter_set: CalendarFilterSet) -> List[Task]:
    if filter_set.is_empty:
        return list(tasks)
    return [task for task in tasks if matches(task, filter_set)]


def clear_filters() -> CalendarFilterSet:
    return CalendarFilterSet()


def _split(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_filter_params(
    priority: Optional[str] = None,
    status: Optional[str] = None,
    tags: Optional[str] = None,
) -> CalendarFilterSet:
    """
    Build a filter set from comma-separated query values, e.g.
    priority=high,medium&tags=work. Unknown priorities or statuses raise
    ValidationError.
    """
    return CalendarFilterSet.build(
        priority=_split(priority),
        status=_split(status),
        tags=_split(tags),
    )
