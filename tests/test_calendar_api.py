"""
TASKCAL Core API - Calendar Endpoint Tests

The frozen clock puts "today" at Wednesday 2025-01-15.
"""

import pytest


def create(client, headers, title, due=None, **fields):
    payload = {"title": title, **fields}
    if due is not None:
        payload["due"] = due
    response = client.post("/tasks", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestEvents:

    @pytest.fixture
    def seeded(self, client, owner_headers):
        return {
            "jan10": create(client, owner_headers, "Jan 10", "2025-01-10T09:00:00Z", priority="high", tags=["work"]),
            "jan15": create(client, owner_headers, "Jan 15", "2025-01-15T14:00:00Z", tags=["home"]),
            "feb03": create(client, owner_headers, "Feb 3", "2025-02-03T09:00:00Z"),
            "undated": create(client, owner_headers, "Undated"),
        }

    def test_requires_owner(self, client):
        assert client.get("/calendar/events").status_code == 401

    def test_month_defaults_to_today(self, client, owner_headers, seeded):
        response = client.get("/calendar/events", headers=owner_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["view"] == "month"
        assert data["anchor_date"] == "2025-01-15"
        assert data["date_range"]["start"].startswith("2025-01-01T00:00:00")
        assert data["date_range"]["end"].startswith("2025-01-31T23:59:59.999")
        assert [d["date"] for d in data["days"]] == ["2025-01-10", "2025-01-15"]
        assert data["count"] == 2

    def test_week_view_with_monday_start(self, client, owner_headers, seeded):
        response = client.get(
            "/calendar/events",
            params={"view": "week", "date": "2025-01-15", "week_start": 1},
            headers=owner_headers,
        )
        data = response.json()
        assert data["date_range"]["start"].startswith("2025-01-13")
        assert [d["date"] for d in data["days"]] == ["2025-01-15"]

    def test_agenda_view(self, client, owner_headers, seeded):
        response = client.get(
            "/calendar/events",
            params={"view": "agenda", "date": "2025-01-15", "lookahead": 30},
            headers=owner_headers,
        )
        assert [d["date"] for d in response.json()["days"]] == ["2025-01-15", "2025-02-03"]

    def test_filters_applied(self, client, owner_headers, seeded):
        response = client.get(
            "/calendar/events",
            params={"priority": "high", "tags": "work,errands"},
            headers=owner_headers,
        )
        data = response.json()
        assert data["count"] == 1
        assert data["days"][0]["tasks"][0]["title"] == "Jan 10"

    def test_overdue_flag_uses_clock(self, client, owner_headers, seeded):
        data = client.get("/calendar/events", headers=owner_headers).json()
        by_title = {t["title"]: t for d in data["days"] for t in d["tasks"]}
        assert by_title["Jan 10"]["overdue"] is True
        assert by_title["Jan 15"]["overdue"] is False

    def test_invalid_filter_value_400(self, client, owner_headers):
        response = client.get("/calendar/events", params={"status": "open"}, headers=owner_headers)
        assert response.status_code == 400

    def test_invalid_view_422(self, client, owner_headers):
        response = client.get("/calendar/events", params={"view": "year"}, headers=owner_headers)
        assert response.status_code == 422

    def test_other_owner_sees_nothing(self, client, second_owner_headers, seeded):
        data = client.get("/calendar/events", headers=second_owner_headers).json()
        assert data["count"] == 0
        assert data["days"] == []


class TestDayTasks:

    def test_tasks_sorted_by_time(self, client, owner_headers):
        create(client, owner_headers, "Late", "2025-01-15T18:00:00Z")
        create(client, owner_headers, "Early", "2025-01-15T07:00:00Z")
        create(client, owner_headers, "Tomorrow", "2025-01-16T07:00:00Z")

        response = client.get("/calendar/tasks/2025-01-15", headers=owner_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [t["title"] for t in data["tasks"]] == ["Early", "Late"]
        assert data["times"] == ["07:00", "18:00"]

    def test_times_follow_configured_format(self, client, owner_headers, monkeypatch):
        from taskcal.config import settings

        monkeypatch.setattr(settings, "TIME_FORMAT", "12h")
        create(client, owner_headers, "Evening", "2025-01-15T18:30:00Z")

        data = client.get("/calendar/tasks/2025-01-15", headers=owner_headers).json()
        assert data["times"] == ["6:30 PM"]

    def test_time_format_query_overrides(self, client, owner_headers):
        create(client, owner_headers, "Morning", "2025-01-15T09:05:00Z")

        response = client.get("/calendar/tasks/2025-01-15?time_format=12h", headers=owner_headers)
        assert response.json()["times"] == ["9:05 AM"]

    def test_unknown_time_format_422(self, client, owner_headers):
        response = client.get("/calendar/tasks/2025-01-15?time_format=36h", headers=owner_headers)
        assert response.status_code == 422

    def test_bad_date_422(self, client, owner_headers):
        assert client.get("/calendar/tasks/not-a-date", headers=owner_headers).status_code == 422


class TestCreateOnDate:

    def test_create_at_midnight(self, client, owner_headers):
        response = client.post(
            "/calendar/tasks",
            json={"title": "All day", "date": "2025-01-20"},
            headers=owner_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["due"].startswith("2025-01-20T00:00:00")
        assert data["status"] == "in-progress"

    def test_create_in_time_slot(self, client, owner_headers):
        response = client.post(
            "/calendar/tasks",
            json={"title": "Standup", "date": "2025-01-20", "hour": 9, "minute": 15, "tags": ["team"]},
            headers=owner_headers,
        )
        data = response.json()
        assert data["due"].startswith("2025-01-20T09:15:00")
        assert data["tags"] == ["team"]

    def test_bad_hour_422(self, client, owner_headers):
        response = client.post(
            "/calendar/tasks",
            json={"title": "Bad", "date": "2025-01-20", "hour": 24},
            headers=owner_headers,
        )
        assert response.status_code == 422


class TestReschedule:

    @pytest.fixture
    def task(self, client, owner_headers):
        return create(client, owner_headers, "Movable", "2025-01-15T14:30:00Z")

    def test_keeps_time_of_day(self, client, owner_headers, task):
        response = client.put(
            f"/calendar/tasks/{task['id']}/date",
            json={"date": "2025-01-22"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["due"].startswith("2025-01-22T14:30:00")

        day = client.get("/calendar/tasks/2025-01-22", headers=owner_headers).json()
        assert [t["id"] for t in day["tasks"]] == [task["id"]]
        assert client.get("/calendar/tasks/2025-01-15", headers=owner_headers).json()["count"] == 0

    def test_time_slot(self, client, owner_headers, task):
        response = client.put(
            f"/calendar/tasks/{task['id']}/date",
            json={"date": "2025-01-22", "hour": 16},
            headers=owner_headers,
        )
        assert response.json()["due"].startswith("2025-01-22T16:00:00")

    def test_past_date_allowed_and_overdue(self, client, owner_headers, task):
        response = client.put(
            f"/calendar/tasks/{task['id']}/date",
            json={"date": "2025-01-01"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["overdue"] is True

    def test_missing_task_404(self, client, owner_headers):
        response = client.put("/calendar/tasks/gone/date", json={"date": "2025-01-22"}, headers=owner_headers)
        assert response.status_code == 404

    def test_other_owner_404(self, client, second_owner_headers, task):
        response = client.put(
            f"/calendar/tasks/{task['id']}/date",
            json={"date": "2025-01-22"},
            headers=second_owner_headers,
        )
        assert response.status_code == 404

    def test_missing_date_422(self, client, owner_headers, task):
        response = client.put(f"/calendar/tasks/{task['id']}/date", json={}, headers=owner_headers)
        assert response.status_code == 422


class TestSummary:

    def test_counts_per_date(self, client, owner_headers):
        create(client, owner_headers, "a", "2025-01-14T09:00:00Z", priority="high")
        create(client, owner_headers, "b", "2025-01-14T10:00:00Z", status="completed")
        create(client, owner_headers, "c", "2025-01-16T10:00:00Z")
        create(client, owner_headers, "outside", "2025-02-16T10:00:00Z")

        response = client.get(
            "/calendar/summary",
            params={"start": "2025-01-01", "end": "2025-01-31"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        days = response.json()["days"]
        assert [d["date"] for d in days] == ["2025-01-14", "2025-01-16"]
        assert days[0]["total"] == 2
        assert days[0]["completed"] == 1
        assert days[0]["high"] == 1
        assert days[0]["overdue"] == 1

    def test_reversed_range_400(self, client, owner_headers):
        response = client.get(
            "/calendar/summary",
            params={"start": "2025-01-31", "end": "2025-01-01"},
            headers=owner_headers,
        )
        assert response.status_code == 400
