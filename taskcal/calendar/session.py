"""
TASKCAL Core API - Calendar Session

Async glue between a CalendarStore and the task service. The store never
does I/O; this session fetches and persists, then applies the outcome to the
store as single synchronous actions.

- Refreshes are numbered. Only the most recently issued refresh may apply
  its result; anything older that completes later is dropped.
- Collaborator failures leave the last good tasks in place, record the
  message under state.errors and surface as ExternalFetchError.
- Drops are applied optimistically and rolled back if persisting fails.
  The dragged task is cleared whatever the outcome.
"""

import logging
from datetime import datetime, time
from typing import List, Optional

from taskcal.calendar.enums import ViewMode
from taskcal.calendar.errors import ExternalFetchError, StaleDropError, ValidationError
from taskcal.calendar.models import CalendarSettings, Clock, system_clock
from taskcal.calendar.ranges import as_datetime
from taskcal.calendar.reschedule import TimeSlot, compute_new_due, ensure_task_present, validate_drop
from taskcal.calendar.state import CalendarStore, SetError, SetLoading
from taskcal.tasks.enums import TaskPriority, TaskStatus
from taskcal.tasks.models import Task
from taskcal.tasks.schemas import TaskCreateRequest, TaskUpdateRequest
from taskcal.tasks.service import TaskService

logger = logging.getLogger(__name__)


class CalendarSession:
    """One user's calendar screen, from mount to unmount."""

    def __init__(
        self,
        owner_id: str,
        service: TaskService,
        clock: Optional[Clock] = None,
        settings: Optional[CalendarSettings] = None,
        view=ViewMode.MONTH,
        anchor=None,
    ):
        self.owner_id = owner_id
        self.service = service
        self.store = CalendarStore(
            clock=clock or system_clock,
            settings=settings,
            view=view,
            anchor=anchor,
        )
        self._generation = 0

    @property
    def state(self):
        return self.store.state

    def _fail(self, key: str, message: str, error: Exception) -> ExternalFetchError:
        self.store.dispatch(SetError(key, message))
        logger.error(f"{message} (owner {self.owner_id}): {error}", exc_info=True)
        return ExternalFetchError(message, operation=key)

    async def refresh(self) -> bool:
        """
        Reload the owner's tasks.

        Returns False when a newer refresh was issued while this one was in
        flight; its result (or failure) is then ignored.
        """
        self._generation += 1
        generation = self._generation
        self.store.dispatch(SetLoading("events", True))

        try:
            tasks = await self.service.list_tasks(self.owner_id)
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Ignoring failure of superseded refresh {generation} for owner {self.owner_id}")
                return False
            raise self._fail("events", "Failed to fetch calendar tasks", e) from e

        if generation != self._generation:
            logger.info(f"Discarding stale refresh {generation} for owner {self.owner_id}")
            return False

        self.store.set_tasks(tasks)
        logger.debug(f"Loaded {len(tasks)} tasks for owner {self.owner_id}")
        return True

    # Navigation changes the visible range; each one reloads tasks afterwards

    async def set_view(self, view) -> bool:
        self.store.set_view(view)
        return await self.refresh()

    async def navigate(self, direction) -> bool:
        self.store.navigate(direction)
        return await self.refresh()

    async def go_to_today(self) -> bool:
        self.store.go_to_today()
        return await self.refresh()

    async def create_task_on(
        self,
        day,
        title: str,
        priority: TaskPriority = TaskPriority.MEDIUM,
        tags: Optional[List[str]] = None,
        description: Optional[str] = None,
        time_slot: Optional[TimeSlot] = None,
    ) -> Task:
        """Create a task due on `day` (at the slot, else midnight) and add it to the store."""
        moment = as_datetime(day)
        due = datetime.combine(
            moment.date(),
            time_slot.as_time() if time_slot else time.min,
            tzinfo=moment.tzinfo,
        )
        request = TaskCreateRequest(
            title=title,
            status=TaskStatus.IN_PROGRESS,
            priority=priority,
            due=due,
            tags=tags or [],
            description=description,
        )
        self.store.dispatch(SetLoading("operations", True))
        try:
            task = await self.service.create_task(self.owner_id, request)
        except Exception as e:
            raise self._fail("operations", "Failed to create task", e) from e

        self.store.add_task(task)
        return task

    async def drop_task(self, task_id: str, target_date, time_slot: Optional[TimeSlot] = None) -> Task:
        """
        Move a task to `target_date` (drag and drop or form edit).

        Raises StaleDropError when the task is gone locally or remotely,
        ValidationError for a missing target, ExternalFetchError when
        persisting fails (after rolling the optimistic move back).
        """
        try:
            original = ensure_task_present(task_id, self.state.tasks)
            if not validate_drop(original, target_date):
                raise ValidationError(f"Cannot drop task {task_id} on {target_date!r}")
            new_due = compute_new_due(original, target_date, time_slot)

            self.store.dispatch(SetLoading("operations", True))
            self.store.update_task(original.with_changes(due=new_due))

            try:
                updated = await self.service.reschedule_task(task_id, self.owner_id, new_due)
            except Exception as e:
                self._rollback(original)
                raise self._fail("operations", "Failed to update task date", e) from e

            if updated is None:
                # Deleted elsewhere while we were dragging it
                if self.state.find_task(task_id) is not None:
                    self.store.remove_task(task_id)
                self.store.dispatch(SetError("operations", "Task no longer exists"))
                raise StaleDropError(task_id)

            if self.state.find_task(task_id) is not None:
                self.store.update_task(updated)
            else:
                self.store.dispatch(SetLoading("operations", False))
            return updated
        finally:
            self.store.clear_dragged_task()

    def _rollback(self, original: Task) -> None:
        if self.state.find_task(original.id) is not None:
            self.store.update_task(original)
            logger.warning(f"Rolled back reschedule of task {original.id}")

    async def update_task(self, task_id: str, request: TaskUpdateRequest) -> Task:
        """Persist a form edit and merge the result into the store."""
        ensure_task_present(task_id, self.state.tasks)
        self.store.dispatch(SetLoading("operations", True))
        try:
            updated = await self.service.update_task(task_id, self.owner_id, request)
        except Exception as e:
            raise self._fail("operations", "Failed to update task", e) from e

        if updated is None:
            if self.state.find_task(task_id) is not None:
                self.store.remove_task(task_id)
            self.store.dispatch(SetError("operations", "Task no longer exists"))
            raise StaleDropError(task_id)

        if self.state.find_task(task_id) is not None:
            self.store.update_task(updated)
        else:
            self.store.dispatch(SetLoading("operations", False))
        return updated

    async def delete_task(self, task_id: str) -> bool:
        """Delete remotely, then locally. Returns False if it was already gone remotely."""
        self.store.dispatch(SetLoading("operations", True))
        try:
            deleted = await self.service.delete_task(task_id, self.owner_id)
        except Exception as e:
            raise self._fail("operations", "Failed to delete task", e) from e

        if self.state.find_task(task_id) is not None:
            self.store.remove_task(task_id)
        else:
            self.store.dispatch(SetLoading("operations", False))
        if not deleted:
            logger.warning(f"Task {task_id} was already deleted for owner {self.owner_id}")
        return deleted
