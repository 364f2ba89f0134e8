"""
TASKCAL Core API - Test Configuration

Shared fixtures for CI-safe testing without MongoDB.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Optional
from fastapi.testclient import TestClient

from unittest.mock import MagicMock

from taskcal.main import app
from taskcal.calendar.router import get_clock
from taskcal.tasks.enums import TaskStatus, TaskPriority
from taskcal.tasks.models import Task
from taskcal.tasks.repository import InMemoryTaskRepository
from taskcal.tasks.router import get_task_repository
from taskcal.tasks.service import TaskService
from taskcal.database import get_database


# Global in-memory repository for tests
_test_repository = InMemoryTaskRepository()


async def override_get_task_repository():
    """Override dependency to use in-memory repository."""
    return _test_repository


async def override_get_database():
    """Override database dependency; nothing touches it once the repository is overridden."""
    return MagicMock()


# Time control fixtures for deterministic calendar testing
class FrozenClock:
    """A clock that returns a fixed time for deterministic testing."""

    def __init__(self, frozen_time: datetime):
        self._frozen_time = frozen_time

    def __call__(self) -> datetime:
        return self._frozen_time

    def set(self, new_time: datetime) -> None:
        self._frozen_time = new_time

    def advance(self, delta: timedelta) -> None:
        self._frozen_time += delta


@pytest.fixture
def frozen_now() -> datetime:
    """A fixed 'now': Wednesday 2025-01-15 12:00 UTC."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(frozen_now) -> FrozenClock:
    return FrozenClock(frozen_now)


@pytest.fixture
def task_repository():
    """Provide a fresh in-memory task repository for each test."""
    _test_repository.clear()
    return _test_repository


@pytest.fixture
def task_service(task_repository, frozen_clock):
    return TaskService(task_repository, clock=frozen_clock)


@pytest.fixture
def client(task_repository, frozen_clock):
    """Create test client with in-memory repository and a frozen calendar clock."""
    app.dependency_overrides[get_task_repository] = override_get_task_repository
    app.dependency_overrides[get_database] = override_get_database

    async def override_get_clock():
        return frozen_clock

    app.dependency_overrides[get_clock] = override_get_clock

    # Not used as a context manager, so the lifespan never connects to MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"X-Owner-Id": "user-1"}


@pytest.fixture
def second_owner_headers():
    return {"X-Owner-Id": "user-2"}


def make_task(
    title: str = "Task",
    due: Optional[datetime] = None,
    status: TaskStatus = TaskStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    tags: Optional[list] = None,
    owner_id: str = "user-1",
) -> Task:
    """Build a task without going through the repository."""
    return Task.create(
        owner_id=owner_id,
        title=title,
        status=status,
        priority=priority,
        due=due,
        tags=tags,
    )


@pytest.fixture
def task_factory():
    return make_task
