"""
TASKCAL Core API - Calendar Session Tests

Async refresh ordering, optimistic drops and collaborator failures.
"""

import asyncio
import pytest
import pytest_asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

from taskcal.calendar.errors import ExternalFetchError, StaleDropError, ValidationError
from taskcal.calendar.reschedule import TimeSlot
from taskcal.calendar.session import CalendarSession
from taskcal.config import settings as app_settings
from taskcal.tasks.enums import TaskPriority, TaskStatus
from taskcal.tasks.models import Task
from taskcal.tasks.schemas import TaskCreateRequest, TaskUpdateRequest


OWNER = "user-1"


@pytest.fixture
def session(task_service, frozen_clock):
    return CalendarSession(OWNER, task_service, clock=frozen_clock, anchor=datetime(2025, 1, 15))


async def seed(service, title: str, due=None) -> Task:
    return await service.create_task(OWNER, TaskCreateRequest(title=title, due=due))


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_loads_owner_tasks(self, session, task_service):
        await seed(task_service, "mine", datetime(2025, 1, 15, 9, tzinfo=timezone.utc))
        await task_service.create_task("someone-else", TaskCreateRequest(title="theirs"))

        assert await session.refresh() is True
        assert [t.title for t in session.state.tasks] == ["mine"]
        assert session.state.loading["events"] is False
        assert date(2025, 1, 15) in session.state.task_date_index

    @pytest.mark.asyncio
    async def test_stale_refresh_is_discarded(self, frozen_clock, task_factory):
        slow_release = asyncio.Event()
        old_tasks = [task_factory("old")]
        new_tasks = [task_factory("new")]
        calls = []

        async def list_tasks(owner_id):
            calls.append(owner_id)
            if len(calls) == 1:
                await slow_release.wait()
                return old_tasks
            return new_tasks

        service = AsyncMock()
        service.list_tasks = list_tasks
        session = CalendarSession(OWNER, service, clock=frozen_clock)

        first = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        assert await session.refresh() is True
        slow_release.set()
        assert await first is False

        assert [t.title for t in session.state.tasks] == ["new"]

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_last_good_tasks(self, session, task_service):
        await seed(task_service, "kept")
        await session.refresh()

        session.service = AsyncMock()
        session.service.list_tasks.side_effect = ConnectionError("mongo down")

        with pytest.raises(ExternalFetchError) as exc_info:
            await session.refresh()

        assert exc_info.value.operation == "events"
        assert [t.title for t in session.state.tasks] == ["kept"]
        assert session.state.errors["events"] == "Failed to fetch calendar tasks"
        assert session.state.loading["events"] is False

    @pytest.mark.asyncio
    async def test_navigation_reloads_tasks(self, session, task_service):
        await session.refresh()
        await seed(task_service, "added later", datetime(2025, 2, 3, 9, tzinfo=timezone.utc))

        assert await session.navigate("next") is True
        assert session.state.anchor_date == datetime(2025, 2, 15)
        assert [t.title for t in session.store.visible_tasks()] == ["added later"]

    @pytest.mark.asyncio
    async def test_rapid_view_switches_apply_last_result(self, frozen_clock, task_factory):
        releases = [asyncio.Event(), asyncio.Event()]
        results = [[task_factory("first")], [task_factory("second")]]
        calls = []

        async def list_tasks(owner_id):
            index = len(calls)
            calls.append(owner_id)
            await releases[index].wait()
            return results[index]

        service = AsyncMock()
        service.list_tasks = list_tasks
        session = CalendarSession(OWNER, service, clock=frozen_clock)

        week = asyncio.create_task(session.set_view("week"))
        await asyncio.sleep(0)
        day = asyncio.create_task(session.set_view("day"))
        await asyncio.sleep(0)

        # Newer request completes first, the older one straggles in afterwards
        releases[1].set()
        assert await day is True
        releases[0].set()
        assert await week is False

        assert session.state.current_view.value == "day"
        assert [t.title for t in session.state.tasks] == ["second"]
        assert session.state.loading["events"] is False

    @pytest.mark.asyncio
    async def test_successful_refresh_clears_error(self, session, task_service):
        session_service = session.service
        session.service = AsyncMock()
        session.service.list_tasks.side_effect = ConnectionError("mongo down")
        with pytest.raises(ExternalFetchError):
            await session.refresh()

        session.service = session_service
        await session.refresh()
        assert session.state.errors["events"] is None


class TestCreateOnDate:

    @pytest.mark.asyncio
    async def test_create_task_on_date(self, session, task_service):
        task = await session.create_task_on(
            date(2025, 1, 20),
            "Plan sprint",
            priority=TaskPriority.HIGH,
            time_slot=TimeSlot(10, 30),
        )
        assert task.due == datetime(2025, 1, 20, 10, 30)
        assert task.status == TaskStatus.IN_PROGRESS
        assert session.state.tasks[0].id == task.id
        assert await task_service.get_task(task.id, OWNER) is not None

    @pytest.mark.asyncio
    async def test_create_defaults_to_midnight(self, session):
        task = await session.create_task_on(date(2025, 1, 20), "All day")
        assert task.due == datetime(2025, 1, 20)

    @pytest.mark.asyncio
    async def test_create_failure_leaves_tasks(self, session):
        session.service = AsyncMock()
        session.service.create_task.side_effect = RuntimeError("boom")
        with pytest.raises(ExternalFetchError):
            await session.create_task_on(date(2025, 1, 20), "Lost")
        assert session.state.tasks == ()
        assert session.state.errors["operations"] == "Failed to create task"


class TestDropTask:

    @pytest_asyncio.fixture
    async def dragged(self, session, task_service):
        task = await seed(task_service, "movable", datetime(2025, 1, 15, 14, 30, tzinfo=timezone.utc))
        await session.refresh()
        session.store.set_dragged_task(task.id)
        return task

    @pytest.mark.asyncio
    async def test_drop_persists_and_rebins(self, session, task_service, dragged):
        updated = await session.drop_task(dragged.id, date(2025, 1, 20))

        expected = datetime(2025, 1, 20, 14, 30, tzinfo=timezone.utc)
        assert updated.due == expected
        assert (await task_service.get_task(dragged.id, OWNER)).due == expected
        assert [t.id for t in session.state.task_date_index[date(2025, 1, 20)]] == [dragged.id]
        assert date(2025, 1, 15) not in session.state.task_date_index
        assert session.state.dragged_task_id is None
        assert session.state.loading["operations"] is False

    @pytest.mark.asyncio
    async def test_drop_with_time_slot(self, session, dragged):
        updated = await session.drop_task(dragged.id, date(2025, 1, 20), TimeSlot(8))
        assert updated.due == datetime(2025, 1, 20, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_drop_failure_rolls_back(self, session, dragged):
        session.service = AsyncMock()
        session.service.reschedule_task.side_effect = ConnectionError("write failed")

        with pytest.raises(ExternalFetchError) as exc_info:
            await session.drop_task(dragged.id, date(2025, 1, 20))

        assert exc_info.value.operation == "operations"
        assert session.state.find_task(dragged.id).due == dragged.due
        assert date(2025, 1, 20) not in session.state.task_date_index
        assert session.state.errors["operations"] == "Failed to update task date"
        assert session.state.dragged_task_id is None

    @pytest.mark.asyncio
    async def test_drop_of_unknown_task_is_stale(self, session, dragged):
        with pytest.raises(StaleDropError):
            await session.drop_task("gone", date(2025, 1, 20))
        assert session.state.dragged_task_id is None

    @pytest.mark.asyncio
    async def test_drop_of_remotely_deleted_task(self, session, task_service, dragged):
        await task_service.delete_task(dragged.id, OWNER)

        with pytest.raises(StaleDropError):
            await session.drop_task(dragged.id, date(2025, 1, 20))

        assert session.state.find_task(dragged.id) is None
        assert session.state.errors["operations"] == "Task no longer exists"
        assert session.state.dragged_task_id is None

    @pytest.mark.asyncio
    async def test_drop_without_target_rejected(self, session, dragged):
        with pytest.raises(ValidationError):
            await session.drop_task(dragged.id, None)
        assert session.state.find_task(dragged.id).due == dragged.due
        assert session.state.dragged_task_id is None


class TestUpdateAndDelete:

    @pytest_asyncio.fixture
    async def loaded(self, session, task_service):
        task = await seed(task_service, "editable", datetime(2025, 1, 15, 9, tzinfo=timezone.utc))
        await session.refresh()
        return task

    @pytest.mark.asyncio
    async def test_update_merges_into_store(self, session, loaded):
        updated = await session.update_task(loaded.id, TaskUpdateRequest(title="edited"))
        assert updated.title == "edited"
        assert session.state.find_task(loaded.id).title == "edited"

    @pytest.mark.asyncio
    async def test_update_unknown_is_stale(self, session, loaded):
        with pytest.raises(StaleDropError):
            await session.update_task("gone", TaskUpdateRequest(title="x"))

    @pytest.mark.asyncio
    async def test_delete_removes_locally(self, session, task_service, loaded):
        assert await session.delete_task(loaded.id) is True
        assert session.state.find_task(loaded.id) is None
        assert await task_service.get_task(loaded.id, OWNER) is None

    @pytest.mark.asyncio
    async def test_delete_already_gone(self, session, loaded):
        await session.delete_task(loaded.id)
        assert await session.delete_task(loaded.id) is False


class TestSessionSettings:

    def test_session_uses_configured_week_start(self, task_service, frozen_clock, monkeypatch):
        monkeypatch.setattr(app_settings, "WEEK_START_DAY", 1)
        session = CalendarSession(OWNER, task_service, clock=frozen_clock, view="week")
        assert session.state.settings.week_start_day == 1
        assert session.state.date_range.start.date() == date(2025, 1, 13)
