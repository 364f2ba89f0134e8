"""
TASKCAL Core API - Task Router

CRUD endpoints for task management. All endpoints are owner-scoped.
"""

from datetime import datetime, timezone
from typing import Optional, Annotated

from fastapi import APIRouter, HTTPException, status, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from taskcal.database import get_database
from taskcal.dependencies import CurrentOwner
from taskcal.tasks.models import Task
from taskcal.tasks.service import TaskService
from taskcal.tasks.repository import TaskRepository, TaskRepositoryInterface
from taskcal.tasks.schemas import (
    TaskCreateRequest,
    TaskUpdateRequest,
    TaskResponse,
    TaskListResponse,
    TaskDeleteResponse,
)
from taskcal.tasks.enums import TaskStatus


router = APIRouter(prefix="/tasks", tags=["Tasks"])


async def get_task_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> TaskRepositoryInterface:
    """Dependency to get task repository instance."""
    return TaskRepository(db)


async def get_task_service(
    repository: Annotated[TaskRepositoryInterface, Depends(get_task_repository)]
) -> TaskService:
    """Dependency to get task service instance."""
    return TaskService(repository)


def to_response(task: Task, now: Optional[datetime] = None) -> TaskResponse:
    now = now or datetime.now(timezone.utc)
    return TaskResponse.from_task(task, overdue=TaskService.is_overdue(task, now))


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    request: TaskCreateRequest,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    task = await service.create_task(owner_id=owner_id, request=request)
    return to_response(task)


@router.get(
    "",
    response_model=TaskListResponse,
    summary="List tasks",
)
async def list_tasks(
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
    status_filter: Optional[TaskStatus] = Query(
        default=None,
        alias="status",
        description="Filter by task status",
    ),
    due_after: Optional[datetime] = Query(
        default=None,
        description="Only tasks due at or after this time",
    ),
    due_before: Optional[datetime] = Query(
        default=None,
        description="Only tasks due at or before this time",
    ),
) -> TaskListResponse:
    """
    List the owner's tasks, due ascending with undated tasks last.

    Supplying either due bound drops undated tasks from the result.
    """
    if due_after is not None and due_before is not None and due_after > due_before:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="due_after must not be later than due_before",
        )

    tasks = await service.list_tasks(
        owner_id=owner_id,
        status=status_filter,
        due_after=due_after,
        due_before=due_before,
    )
    now = datetime.now(timezone.utc)
    return TaskListResponse(tasks=[to_response(t, now) for t in tasks], total=len(tasks))


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task by ID",
)
async def get_task(
    task_id: str,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """Returns 404 if the task doesn't exist or belongs to another owner."""
    task = await service.get_task(task_id, owner_id)
    if task is None:
        raise _not_found()
    return to_response(task)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    task = await service.update_task(task_id, owner_id, request)
    if task is None:
        raise _not_found()
    return to_response(task)


@router.delete(
    "/{task_id}",
    response_model=TaskDeleteResponse,
    summary="Delete a task",
)
async def delete_task(
    task_id: str,
    owner_id: CurrentOwner,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskDeleteResponse:
    deleted = await service.delete_task(task_id, owner_id)
    if not deleted:
        raise _not_found()
    return TaskDeleteResponse(message="Task deleted successfully", id=task_id)
