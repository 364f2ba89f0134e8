"""
TASKCAL Core API - Task Repository

Repository pattern for task data access.
Includes MongoDB implementation for runtime and an in-memory one for tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from taskcal.database import TASKS_COLLECTION
from taskcal.tasks.models import Task
from taskcal.tasks.enums import TaskStatus


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are UTC, as MongoDB stores them
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _due_sort_key(task: Task) -> tuple:
    # Undated tasks sort after every dated one
    if task.due is None:
        return (1, 0.0)
    return (0, _as_utc(task.due).timestamp())


class TaskRepositoryInterface(ABC):
    """
    Abstract interface for task repository.

    All operations are scoped by owner_id to enforce ownership isolation.
    """

    @abstractmethod
    async def create(self, task: Task) -> Task:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        pass

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        due_after: Optional[datetime] = None,
        due_before: Optional[datetime] = None,
    ) -> List[Task]:
        """
        List tasks for owner, due ascending with undated tasks last.

        When a due bound is given, undated tasks are excluded.
        """
        pass

    @abstractmethod
    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        pass

    @abstractmethod
    async def delete(self, task_id: str, owner_id: str) -> bool:
        pass


class TaskRepository(TaskRepositoryInterface):
    """MongoDB implementation of the task repository."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[TASKS_COLLECTION]

    async def create(self, task: Task) -> Task:
        await self.collection.insert_one(task.to_dict())
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        doc = await self.collection.find_one({"_id": task_id, "owner_id": owner_id})
        if doc is None:
            return None
        return Task.from_dict(doc)

    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        due_after: Optional[datetime] = None,
        due_before: Optional[datetime] = None,
    ) -> List[Task]:
        query: dict = {"owner_id": owner_id}

        if status is not None:
            query["status"] = status.value

        if due_after is not None or due_before is not None:
            query["due"] = {"$ne": None}
            if due_after is not None:
                query["due"]["$gte"] = due_after
            if due_before is not None:
                query["due"]["$lte"] = due_before

        cursor = self.collection.find(query)
        tasks: List[Task] = []
        async for doc in cursor:
            tasks.append(Task.from_dict(doc))
        # Mongo sorts nulls first; keep the in-memory ordering contract instead
        tasks.sort(key=_due_sort_key)
        return tasks

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        updates["updated_at"] = datetime.now(timezone.utc)

        result = await self.collection.find_one_and_update(
            {"_id": task_id, "owner_id": owner_id},
            {"$set": updates},
            return_document=True,
        )
        if result is None:
            return None
        return Task.from_dict(result)

    async def delete(self, task_id: str, owner_id: str) -> bool:
        result = await self.collection.delete_one({"_id": task_id, "owner_id": owner_id})
        return result.deleted_count > 0


class InMemoryTaskRepository(TaskRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.

    Stored tasks are never handed out directly; callers get copies so that
    state held elsewhere (for example a calendar store) cannot change under
    them.
    """

    def __init__(self):
        self._tasks: dict[str, Task] = {}

    def clear(self) -> None:
        self._tasks.clear()

    async def create(self, task: Task) -> Task:
        self._tasks[task.id] = task.with_changes()
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        return task.with_changes()

    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        due_after: Optional[datetime] = None,
        due_before: Optional[datetime] = None,
    ) -> List[Task]:
        results: List[Task] = []
        bounded = due_after is not None or due_before is not None

        for task in self._tasks.values():
            if task.owner_id != owner_id:
                continue
            if status is not None and task.status != status:
                continue
            if bounded and task.due is None:
                continue
            if due_after is not None and _as_utc(task.due) < _as_utc(due_after):
                continue
            if due_before is not None and _as_utc(task.due) > _as_utc(due_before):
                continue
            results.append(task.with_changes())

        results.sort(key=_due_sort_key)
        return results

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None

        # Round-trip through the document form so enum values get coerced
        doc = task.to_dict()
        doc.update({key: value for key, value in updates.items() if hasattr(task, key)})
        doc["updated_at"] = datetime.now(timezone.utc)
        updated = Task.from_dict(doc)
        self._tasks[task_id] = updated
        return updated.with_changes()

    async def delete(self, task_id: str, owner_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return False
        del self._tasks[task_id]
        return True
