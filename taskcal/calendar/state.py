"""
TASKCAL Core API - Calendar State

Single source of truth for a calendar session. State is an immutable
CalendarState; `apply(state, action)` is the only way to get a new one.
Derived fields (date_range, task_date_index) are recomputed from their
inputs on every transition that touches those inputs, never patched.

CalendarStore is a thin holder around the current state for callers that
want method-style actions (UI bindings, the async CalendarSession).
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from taskcal.calendar.binning import TaskDateIndex, bin_tasks, tasks_in_range
from taskcal.calendar.enums import Direction, FilterDimension, ViewMode
from taskcal.calendar.errors import StaleDropError, ValidationError
from taskcal.calendar.filters import apply_filters, clear_filters
from taskcal.calendar.models import CalendarFilterSet, CalendarSettings, Clock, DateRange, system_clock
from taskcal.calendar.ranges import as_datetime, as_direction, as_view, compute_range, date_key, step, today
from taskcal.tasks.models import Task

logger = logging.getLogger(__name__)

OPERATION_KEYS = ("events", "operations")


@dataclass(frozen=True)
class CalendarState:
    current_view: ViewMode
    anchor_date: datetime
    selected_date: Optional[datetime]
    date_range: DateRange
    settings: CalendarSettings
    tasks: Tuple[Task, ...] = ()
    task_date_index: TaskDateIndex = field(default_factory=dict, compare=False)
    filters: CalendarFilterSet = field(default_factory=CalendarFilterSet)
    dragged_task_id: Optional[str] = None
    selected_task_ids: frozenset = field(default_factory=frozenset)
    # Treated as read-only; transitions always build new dicts
    loading: Dict[str, bool] = field(default_factory=lambda: {key: False for key in OPERATION_KEYS})
    errors: Dict[str, Optional[str]] = field(default_factory=lambda: {key: None for key in OPERATION_KEYS})

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


def _range_for(anchor: datetime, view: ViewMode, settings: CalendarSettings) -> DateRange:
    return compute_range(anchor, view, settings.week_start_day, settings.agenda_lookahead_days)


def initial_state(
    clock: Clock = system_clock,
    settings: Optional[CalendarSettings] = None,
    view=ViewMode.MONTH,
    anchor=None,
) -> CalendarState:
    settings = settings or CalendarSettings.from_config()
    view = as_view(view)
    anchor = today(clock) if anchor is None else as_datetime(anchor)
    return CalendarState(
        current_view=view,
        anchor_date=anchor,
        selected_date=None,
        date_range=_range_for(anchor, view, settings),
        settings=settings,
    )


# Actions


@dataclass(frozen=True)
class SetView:
    view: ViewMode


@dataclass(frozen=True)
class SetAnchorDate:
    date: datetime


@dataclass(frozen=True)
class SelectDate:
    date: Optional[datetime]


@dataclass(frozen=True)
class Navigate:
    direction: Direction


@dataclass(frozen=True)
class GoToToday:
    pass


@dataclass(frozen=True)
class SetSettings:
    settings: CalendarSettings


@dataclass(frozen=True)
class SetTasks:
    tasks: Tuple[Task, ...]


@dataclass(frozen=True)
class AddTask:
    task: Task


@dataclass(frozen=True)
class UpdateTask:
    task: Task


@dataclass(frozen=True)
class RemoveTask:
    task_id: str


@dataclass(frozen=True)
class SetFilters:
    filters: CalendarFilterSet


@dataclass(frozen=True)
class UpdateFilter:
    dimension: FilterDimension
    values: Tuple[str, ...]


@dataclass(frozen=True)
class ClearFilters:
    pass


@dataclass(frozen=True)
class SetDraggedTask:
    task_id: Optional[str]


@dataclass(frozen=True)
class ClearDraggedTask:
    pass


@dataclass(frozen=True)
class SelectTasks:
    task_ids: frozenset


@dataclass(frozen=True)
class ToggleTaskSelection:
    task_id: str


@dataclass(frozen=True)
class SetLoading:
    key: str
    value: bool


@dataclass(frozen=True)
class SetError:
    key: str
    message: Optional[str]


@dataclass(frozen=True)
class ClearError:
    key: str


# Transitions


def _with_tasks(state: CalendarState, tasks: Iterable[Task], **changes) -> CalendarState:
    tasks = tuple(tasks)
    for task in tasks:
        if not isinstance(task, Task):
            raise ValidationError(f"Expected Task, got {type(task).__name__}")
    ids = {task.id for task in tasks}
    dragged = state.dragged_task_id if state.dragged_task_id in ids else None
    return replace(
        state,
        tasks=tasks,
        task_date_index=bin_tasks(tasks),
        selected_task_ids=frozenset(state.selected_task_ids & ids),
        dragged_task_id=dragged,
        **changes,
    )


def _check_key(key: str) -> None:
    if key not in OPERATION_KEYS:
        raise ValidationError(f"Unknown operation key: {key!r}")


def _flag(mapping: dict, key: str, value) -> dict:
    return {**mapping, key: value}


def _set_view(state, action: SetView, clock):
    view = as_view(action.view)
    return replace(state, current_view=view, date_range=_range_for(state.anchor_date, view, state.settings))


def _set_anchor_date(state, action: SetAnchorDate, clock):
    anchor = as_datetime(action.date)
    return replace(state, anchor_date=anchor, date_range=_range_for(anchor, state.current_view, state.settings))


def _select_date(state, action: SelectDate, clock):
    selected = None if action.date is None else as_datetime(action.date)
    return replace(state, selected_date=selected)


def _navigate(state, action: Navigate, clock):
    anchor = step(
        state.anchor_date,
        state.current_view,
        as_direction(action.direction),
        state.settings.agenda_lookahead_days,
    )
    return replace(state, anchor_date=anchor, date_range=_range_for(anchor, state.current_view, state.settings))


def _go_to_today(state, action: GoToToday, clock):
    now = today(clock)
    return replace(
        state,
        anchor_date=now,
        selected_date=now,
        date_range=_range_for(now, state.current_view, state.settings),
    )


def _set_settings(state, action: SetSettings, clock):
    if not isinstance(action.settings, CalendarSettings):
        raise ValidationError("settings must be a CalendarSettings")
    return replace(
        state,
        settings=action.settings,
        date_range=_range_for(state.anchor_date, state.current_view, action.settings),
    )


def _set_tasks(state, action: SetTasks, clock):
    return _with_tasks(
        state,
        action.tasks,
        loading=_flag(state.loading, "events", False),
        errors=_flag(state.errors, "events", None),
    )


def _add_task(state, action: AddTask, clock):
    if isinstance(action.task, Task) and state.find_task(action.task.id) is not None:
        raise ValidationError(f"Task {action.task.id} is already in the collection")
    # Newest first, matching how freshly created tasks are shown
    return _with_tasks(
        state,
        (action.task,) + state.tasks,
        loading=_flag(state.loading, "operations", False),
    )


def _update_task(state, action: UpdateTask, clock):
    if not isinstance(action.task, Task):
        raise ValidationError(f"Expected Task, got {type(action.task).__name__}")
    if state.find_task(action.task.id) is None:
        raise ValidationError(f"Cannot update unknown task {action.task.id}")
    tasks = [action.task if task.id == action.task.id else task for task in state.tasks]
    return _with_tasks(state, tasks, loading=_flag(state.loading, "operations", False))


def _remove_task(state, action: RemoveTask, clock):
    if state.find_task(action.task_id) is None:
        raise ValidationError(f"Cannot remove unknown task {action.task_id}")
    tasks = [task for task in state.tasks if task.id != action.task_id]
    return _with_tasks(state, tasks, loading=_flag(state.loading, "operations", False))


def _set_filters(state, action: SetFilters, clock):
    if not isinstance(action.filters, CalendarFilterSet):
        raise ValidationError("filters must be a CalendarFilterSet")
    return replace(state, filters=action.filters)


def _update_filter(state, action: UpdateFilter, clock):
    return replace(state, filters=state.filters.with_dimension(action.dimension, action.values))


def _clear_filters(state, action: ClearFilters, clock):
    return replace(state, filters=clear_filters())


def _set_dragged_task(state, action: SetDraggedTask, clock):
    if action.task_id is not None and state.find_task(action.task_id) is None:
        raise StaleDropError(action.task_id)
    return replace(state, dragged_task_id=action.task_id)


def _clear_dragged_task(state, action: ClearDraggedTask, clock):
    return replace(state, dragged_task_id=None)


def _select_tasks(state, action: SelectTasks, clock):
    requested = frozenset(action.task_ids)
    known = {task.id for task in state.tasks}
    unknown = requested - known
    if unknown:
        raise ValidationError(f"Cannot select unknown tasks: {sorted(unknown)}")
    return replace(state, selected_task_ids=requested)


def _toggle_task_selection(state, action: ToggleTaskSelection, clock):
    if state.find_task(action.task_id) is None:
        raise ValidationError(f"Cannot select unknown task {action.task_id}")
    return replace(state, selected_task_ids=state.selected_task_ids ^ {action.task_id})


def _set_loading(state, action: SetLoading, clock):
    _check_key(action.key)
    return replace(state, loading=_flag(state.loading, action.key, bool(action.value)))


def _set_error(state, action: SetError, clock):
    _check_key(action.key)
    return replace(
        state,
        errors=_flag(state.errors, action.key, action.message),
        loading=_flag(state.loading, action.key, False),
    )


def _clear_error(state, action: ClearError, clock):
    _check_key(action.key)
    return replace(state, errors=_flag(state.errors, action.key, None))


_HANDLERS: Dict[type, Callable] = {
    SetView: _set_view,
    SetAnchorDate: _set_anchor_date,
    SelectDate: _select_date,
    Navigate: _navigate,
    GoToToday: _go_to_today,
    SetSettings: _set_settings,
    SetTasks: _set_tasks,
    AddTask: _add_task,
    UpdateTask: _update_task,
    RemoveTask: _remove_task,
    SetFilters: _set_filters,
    UpdateFilter: _update_filter,
    ClearFilters: _clear_filters,
    SetDraggedTask: _set_dragged_task,
    ClearDraggedTask: _clear_dragged_task,
    SelectTasks: _select_tasks,
    ToggleTaskSelection: _toggle_task_selection,
    SetLoading: _set_loading,
    SetError: _set_error,
    ClearError: _clear_error,
}


def apply(state: CalendarState, action, clock: Clock = system_clock) -> CalendarState:
    """
    Pure transition: returns the next state, never mutates `state`.

    Invalid actions raise ValidationError (or StaleDropError for drags of
    tasks that are gone) and produce no new state.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise ValidationError(f"Unknown calendar action: {action!r}")
    return handler(state, action, clock)


class CalendarStore:
    """Holds the current CalendarState and applies actions to it."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[CalendarSettings] = None,
        view=ViewMode.MONTH,
        anchor=None,
    ):
        self._clock = clock or system_clock
        self._state = initial_state(self._clock, settings, view, anchor)

    @property
    def state(self) -> CalendarState:
        return self._state

    def dispatch(self, action) -> CalendarState:
        self._state = apply(self._state, action, self._clock)
        logger.debug(f"Applied {type(action).__name__}")
        return self._state

    # Navigation

    def set_view(self, view) -> CalendarState:
        return self.dispatch(SetView(view))

    def set_anchor_date(self, value) -> CalendarState:
        return self.dispatch(SetAnchorDate(value))

    def select_date(self, value) -> CalendarState:
        return self.dispatch(SelectDate(value))

    def navigate(self, direction) -> CalendarState:
        return self.dispatch(Navigate(direction))

    def go_to_today(self) -> CalendarState:
        return self.dispatch(GoToToday())

    def set_settings(self, settings: CalendarSettings) -> CalendarState:
        return self.dispatch(SetSettings(settings))

    # Tasks

    def set_tasks(self, tasks: Iterable[Task]) -> CalendarState:
        return self.dispatch(SetTasks(tuple(tasks)))

    def add_task(self, task: Task) -> CalendarState:
        return self.dispatch(AddTask(task))

    def update_task(self, task: Task) -> CalendarState:
        return self.dispatch(UpdateTask(task))

    def remove_task(self, task_id: str) -> CalendarState:
        return self.dispatch(RemoveTask(task_id))

    # Filters

    def set_filters(self, filters: CalendarFilterSet) -> CalendarState:
        return self.dispatch(SetFilters(filters))

    def update_filter(self, dimension, values) -> CalendarState:
        if isinstance(values, str):
            values = (values,)
        return self.dispatch(UpdateFilter(dimension, tuple(values)))

    def clear_filters(self) -> CalendarState:
        return self.dispatch(ClearFilters())

    # Drag and selection

    def set_dragged_task(self, task_id: Optional[str]) -> CalendarState:
        return self.dispatch(SetDraggedTask(task_id))

    def clear_dragged_task(self) -> CalendarState:
        return self.dispatch(ClearDraggedTask())

    def select_tasks(self, task_ids: Iterable[str]) -> CalendarState:
        return self.dispatch(SelectTasks(frozenset(task_ids)))

    def toggle_task_selection(self, task_id: str) -> CalendarState:
        return self.dispatch(ToggleTaskSelection(task_id))

    # Derived reads

    def filtered_tasks(self) -> List[Task]:
        return apply_filters(self._state.tasks, self._state.filters)

    def visible_tasks(self) -> List[Task]:
        """Filtered tasks due inside the current range."""
        return tasks_in_range(self.filtered_tasks(), self._state.date_range)

    def tasks_for_date(self, day) -> List[Task]:
        """Filtered tasks due on one date, in collection order."""
        bucket = self._state.task_date_index.get(date_key(day), [])
        return apply_filters(bucket, self._state.filters)

    def visible_index(self) -> TaskDateIndex:
        return bin_tasks(self.visible_tasks())
