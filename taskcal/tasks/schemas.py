"""
TASKCAL Core API - Task Schemas

Pydantic models for task API requests and responses.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from taskcal.tasks.enums import TaskStatus, TaskPriority
from taskcal.tasks.models import Task


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""

    title: str = Field(min_length=1, max_length=200, description="Task title")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    due: Optional[datetime] = Field(default=None, description="Due date and time")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    description: Optional[str] = Field(default=None, max_length=2000, description="Task description")


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task. Only fields that are sent are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due: Optional[datetime] = None
    tags: Optional[List[str]] = None
    description: Optional[str] = Field(default=None, max_length=2000)


class TaskResponse(BaseModel):
    """Response model for a single task."""

    id: str = Field(description="Task ID")
    owner_id: str = Field(description="Owner user ID")
    title: str
    status: TaskStatus
    priority: TaskPriority
    due: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    overdue: bool = Field(description="Due date passed and task still open")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task, overdue: bool) -> "TaskResponse":
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            title=task.title,
            status=task.status,
            priority=task.priority,
            due=task.due,
            tags=list(task.tags),
            description=task.description,
            overdue=overdue,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskListResponse(BaseModel):
    """Response model for a list of tasks."""

    tasks: List[TaskResponse]
    total: int


class TaskDeleteResponse(BaseModel):
    """Response model for task deletion."""

    message: str
    id: str
