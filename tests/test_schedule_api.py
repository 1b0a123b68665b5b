"""
HTTP tests for schedule CRUD, the change trigger and the processing endpoint.
"""
import time

import pytest
from fastapi.testclient import TestClient

from eventide.core.schedule.models import EventStatus


@pytest.fixture
def client(store):
    from eventide.core.api.schedules import get_schedule_service
    from eventide.core.main import app
    from eventide.core.schedule.service import ScheduleService

    service = ScheduleService(store)
    app.dependency_overrides[get_schedule_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _window(offset_start=-600, length=3600):
    now = int(time.time())
    return {"start_at": now + offset_start, "end_at": now + offset_start + length}


def test_create_list_and_get(client):
    body = {"cron": "*/5 * * * *", "message_id": "m-1", **_window(offset_start=60)}
    res = client.post("/schedules", json=body, headers={"X-User-Id": "u1"})
    assert res.status_code == 200
    out = res.json()
    schedule_id = out["scheduleId"]
    assert out["schedule"]["cron"] == "*/5 * * * *"
    assert out["event"]["scheduled"] is False
    assert out["event"]["status"] == "pending"

    listed = client.get("/schedules", headers={"X-User-Id": "u1"}).json()
    assert [s["id"] for s in listed["schedules"]] == [schedule_id]
    assert client.get("/schedules", headers={"X-User-Id": "u2"}).json()["schedules"] == []

    got = client.get(f"/schedules/{schedule_id}", headers={"X-User-Id": "u1"})
    assert got.status_code == 200
    assert got.json()["schedule"]["message_id"] == "m-1"


def test_user_header_required(client):
    res = client.post("/schedules", json={"cron": "* * * * *", **_window()})
    assert res.status_code == 400


def test_invalid_cron_rejected(client):
    res = client.post(
        "/schedules",
        json={"cron": "99 * * * *", **_window()},
        headers={"X-User-Id": "u1"},
    )
    assert res.status_code == 422
    assert "invalid cron" in res.json()["detail"]


def test_reversed_window_rejected(client):
    now = int(time.time())
    res = client.post(
        "/schedules",
        json={"cron": "* * * * *", "start_at": now, "end_at": now - 60},
        headers={"X-User-Id": "u1"},
    )
    assert res.status_code == 422


def test_other_users_schedule_is_not_found(client):
    out = client.post(
        "/schedules", json={"cron": "0 * * * *", **_window()}, headers={"X-User-Id": "u1"}
    ).json()
    res = client.delete(f"/schedules/{out['scheduleId']}", headers={"X-User-Id": "u2"})
    assert res.status_code == 404


def test_update_and_delete(client, store):
    out = client.post(
        "/schedules",
        json={"cron": "0 * * * *", **_window(offset_start=60)},
        headers={"X-User-Id": "u1"},
    ).json()
    schedule_id = out["scheduleId"]

    res = client.patch(
        f"/schedules/{schedule_id}", json={"cron": "30 * * * *"}, headers={"X-User-Id": "u1"}
    )
    assert res.status_code == 200
    events = client.get(f"/schedules/{schedule_id}/events", headers={"X-User-Id": "u1"}).json()["events"]
    assert len(events) == 1
    assert events[0]["plan_start"] % 3600 == 1800

    res = client.patch(f"/schedules/{schedule_id}", json={"user_id": "x"}, headers={"X-User-Id": "u1"})
    assert res.status_code == 422

    res = client.delete(f"/schedules/{schedule_id}", headers={"X-User-Id": "u1"})
    assert res.json() == {"success": True}
    assert store.list_events(schedule_id) == []
    assert client.get(f"/schedules/{schedule_id}", headers={"X-User-Id": "u1"}).status_code == 404


def test_change_trigger_insert_and_delete(client, store):
    now = int(time.time())
    row = {
        "id": "sched-1",
        "message_id": "m-1",
        "cron": "* * * * *",
        "start_at": now + 60,
        "end_at": now + 3600,
        "user_id": "u1",
    }
    res = client.post(
        "/events/schedule",
        json={"event": {"op": "INSERT", "data": {"old": None, "new": row}}, "table": {"schema": "public", "name": "schedule"}},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["operation"] == {"type": "INSERT", "table": "public.schedule", "processed": True}
    assert len(store.list_events("sched-1")) == 1

    res = client.post(
        "/events/schedule",
        json={"event": {"op": "DELETE", "data": {"old": row, "new": None}}, "table": {"schema": "public", "name": "schedule"}},
    )
    assert res.status_code == 200
    assert store.list_events("sched-1") == []


def test_change_trigger_ignores_other_tables(client):
    res = client.post(
        "/events/schedule",
        json={"event": {"op": "INSERT", "data": {"new": {}}}, "table": {"schema": "public", "name": "users"}},
    )
    assert res.status_code == 200
    assert res.json()["operation"]["processed"] is False


def test_change_trigger_requires_secret_when_configured(client, monkeypatch):
    from eventide.core.config import settings

    monkeypatch.setattr(settings, "event_secret", "s3cret")
    payload = {"event": {"op": "INSERT", "data": {"new": {}}}, "table": {"name": "other"}}
    assert client.post("/events/schedule", json=payload).status_code == 401
    assert client.post("/events/schedule", json=payload, headers={"X-Event-Secret": "nope"}).status_code == 401
    assert client.post("/events/schedule", json=payload, headers={"X-Event-Secret": "s3cret"}).status_code == 200


def test_schedule_cron_processes_due_events(client, store):
    out = client.post(
        "/schedules",
        json={"cron": "* * * * *", **_window(offset_start=-600)},
        headers={"X-User-Id": "u1"},
    ).json()
    res = client.post("/events/schedule-cron")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["result"]["claimed"] == 1
    assert body["result"]["materialized"] == 1

    events = store.list_events(out["scheduleId"])
    assert len(events) == 2
    assert events[0].status == EventStatus.COMPLETED

    assert client.get("/events/schedule-cron").status_code == 200


def test_window_beyond_representable_dates_creates_no_event(client):
    # 10000-01-01
    start = 253402300800
    res = client.post(
        "/schedules",
        json={"cron": "* * * * *", "start_at": start, "end_at": start + 3600},
        headers={"X-User-Id": "u1"},
    )
    assert res.status_code == 200
    assert res.json()["event"] is None
