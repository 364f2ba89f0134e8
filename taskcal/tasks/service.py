"""
TASKCAL Core API - Task Service

Business logic for task operations. This is the task source / task mutation
collaborator the calendar session talks to.
"""

from datetime import datetime, timezone
from typing import Optional, List, Callable

from taskcal.tasks.models import Task
from taskcal.tasks.repository import TaskRepositoryInterface
from taskcal.tasks.enums import TaskStatus, CLOSED_STATUSES
from taskcal.tasks.schemas import TaskCreateRequest, TaskUpdateRequest


class TaskService:
    """Service layer for task business logic."""

    def __init__(
        self,
        repository: TaskRepositoryInterface,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the task service.

        Args:
            repository: Task repository implementation
            clock: Optional clock function for testing (returns current datetime)
        """
        self.repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self._clock()

    @staticmethod
    def is_overdue(task: Task, now: datetime) -> bool:
        """
        A task is overdue when its due date is before today and it is still open.

        Day-level comparison: a task due earlier today is not overdue yet.
        """
        if task.due is None or task.status in CLOSED_STATUSES:
            return False
        due = task.due
        if due.tzinfo is None and now.tzinfo is not None:
            due = due.replace(tzinfo=now.tzinfo)
        return due.date() < now.date()

    async def create_task(self, owner_id: str, request: TaskCreateRequest) -> Task:
        """Create a new task for the owner."""
        task = Task.create(
            owner_id=owner_id,
            title=request.title.strip(),
            status=request.status,
            priority=request.priority,
            due=request.due,
            tags=request.tags,
            description=request.description.strip() if request.description else None,
        )
        await self.repository.create(task)
        return task

    async def get_task(self, task_id: str, owner_id: str) -> Optional[Task]:
        return await self.repository.get_by_id(task_id, owner_id)

    async def list_tasks(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        due_after: Optional[datetime] = None,
        due_before: Optional[datetime] = None,
    ) -> List[Task]:
        """List tasks for owner with optional filters."""
        return await self.repository.list_by_owner(
            owner_id=owner_id,
            status=status,
            due_after=due_after,
            due_before=due_before,
        )

    async def update_task(
        self,
        task_id: str,
        owner_id: str,
        request: TaskUpdateRequest,
    ) -> Optional[Task]:
        """Apply the fields the client actually sent, including explicit nulls."""
        sent = request.model_dump(exclude_unset=True)
        updates = {}
        for key, value in sent.items():
            if key in ("title", "status", "priority") and value is None:
                # Required fields cannot be cleared
                continue
            if key in ("status", "priority"):
                value = value.value
            updates[key] = value

        if not updates:
            return await self.get_task(task_id, owner_id)
        return await self.repository.update(task_id, owner_id, updates)

    async def reschedule_task(
        self,
        task_id: str,
        owner_id: str,
        new_due: datetime,
    ) -> Optional[Task]:
        """Persist a new due timestamp. Returns None when the task is gone."""
        return await self.repository.update(task_id, owner_id, {"due": new_due})

    async def delete_task(self, task_id: str, owner_id: str) -> bool:
        return await self.repository.delete(task_id, owner_id)
