"""
TASKCAL Core API - Task Models

Internal task model shared by the repository, the service and the calendar
core.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional
import uuid

from taskcal.tasks.enums import TaskStatus, TaskPriority


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Task:
    """Task entity. `due` carries both the calendar date and time of day."""

    id: str
    owner_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    due: Optional[datetime] = None
    tags: list[str] = field(default_factory=list)
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        owner_id: str,
        title: str,
        status: TaskStatus = TaskStatus.PENDING,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due: Optional[datetime] = None,
        tags: Optional[list[str]] = None,
        description: Optional[str] = None,
    ) -> "Task":
        """Create a new task with generated ID."""
        now = _utcnow()
        return cls(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            status=status,
            priority=priority,
            due=due,
            tags=list(tags or []),
            description=description,
            created_at=now,
            updated_at=now,
        )

    def with_changes(self, **changes) -> "Task":
        """Return a copy with the given fields replaced."""
        changes.setdefault("tags", list(self.tags))
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert task to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value,
            "due": self.due,
            "tags": list(self.tags),
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """
        Create task from a stored document or an external payload.

        Identity is normalized here: documents carry `_id`, API payloads
        carry `id`. Nothing past this point looks at `_id`.
        """
        task_id = data.get("_id", data.get("id"))
        if task_id is None:
            raise KeyError("task document has neither '_id' nor 'id'")
        created_at = data.get("created_at") or _utcnow()
        return cls(
            id=str(task_id),
            owner_id=data["owner_id"],
            title=data["title"],
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            priority=TaskPriority(data.get("priority", TaskPriority.MEDIUM.value)),
            due=data.get("due"),
            tags=list(data.get("tags") or []),
            description=data.get("description"),
            created_at=created_at,
            updated_at=data.get("updated_at") or created_at,
        )
