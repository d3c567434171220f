from __future__ import annotations

import pytest

from src.lead_crm.lead_crm.container import build_services
from src.lead_crm.lead_crm.core.exceptions import StorageUnavailableError
from src.lead_crm.lead_crm.main import create_app


@pytest.fixture
def app(monkeypatch, attendance_repo, activity_repo, users_repo, tz):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_services(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        activity_repo=activity_repo,
        tz=tz,
    )
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id: str, role: str = "employee") -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


def test_requires_identity(client):
    assert client.post("/api/attendance/punch-in").status_code == 401
    assert client.get("/api/stats/attendance").status_code == 401


def test_punch_in_then_out(client, activity_repo):
    login(client, "u1")

    resp = client.post("/api/attendance/punch-in", json={"location": {"lat": 1, "lng": 1}})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["userId"] == "u1"
    assert body["punchInLocation"] == {"lat": 1.0, "lng": 1.0}
    assert body["status"] == "present"
    assert body["punchOut"] is None

    resp = client.post("/api/attendance/punch-out")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["punchOut"] is not None
    assert body["totalHours"] is not None

    assert [log.action for log in activity_repo.logs] == ["punched_in", "punched_out"]


def test_punch_out_without_punch_in(client, attendance_repo, activity_repo):
    login(client, "u2")

    resp = client.post("/api/attendance/punch-out", json={})

    assert resp.status_code == 400
    assert resp.get_json() == {"message": "No punch-in record found for today", "code": "punch_in_required"}
    assert attendance_repo.records == {}
    assert activity_repo.logs == []


def test_bad_location_is_400(client):
    login(client, "u1")

    resp = client.post("/api/attendance/punch-in", json={"location": {"lat": "north"}})

    assert resp.status_code == 400


def test_today_empty_then_present(client):
    login(client, "u1")

    assert client.get("/api/attendance/today").get_json() is None

    client.post("/api/attendance/punch-in")
    assert client.get("/api/attendance/today").get_json()["userId"] == "u1"


def test_employee_listing_is_scoped_to_self(client):
    for user_id in ("u1", "u2"):
        login(client, user_id)
        client.post("/api/attendance/punch-in")

    login(client, "u1")
    rows = client.get("/api/attendance?userId=u2").get_json()
    assert [r["userId"] for r in rows] == ["u1"]


def test_admin_listing_sees_everyone_or_filters(client):
    for user_id in ("u1", "u2"):
        login(client, user_id)
        client.post("/api/attendance/punch-in")

    login(client, "boss", "admin")
    assert {r["userId"] for r in client.get("/api/attendance").get_json()} == {"u1", "u2"}
    assert [r["userId"] for r in client.get("/api/attendance?userId=u2").get_json()] == ["u2"]


def test_listing_rows_carry_user(client):
    login(client, "u1")
    client.post("/api/attendance/punch-in")

    login(client, "boss", "admin")
    (row,) = client.get("/api/attendance").get_json()

    assert row["userId"] == "u1"
    assert row["user"] == {
        "id": "u1",
        "email": "u1@example.com",
        "firstName": "U1",
        "lastName": None,
        "name": "U1",
    }


def test_listing_rejects_bad_dates(client):
    login(client, "u1")

    assert client.get("/api/attendance?startDate=yesterday").status_code == 400


def test_stats(client):
    login(client, "u1")
    client.post("/api/attendance/punch-in")

    body = client.get("/api/stats/attendance").get_json()

    assert body == {"totalEmployees": 2, "presentToday": 1, "attendanceRate": 50}


def test_stats_daily_breakdown(client):
    login(client, "boss", "admin")

    resp = client.get("/api/stats/attendance?breakdown=daily&startDate=2026-01-01&endDate=2026-01-03")
    assert resp.status_code == 200
    assert [d["date"] for d in resp.get_json()] == ["2026-01-01", "2026-01-02", "2026-01-03"]

    assert client.get("/api/stats/attendance?breakdown=daily").status_code == 400


def test_activity_feed_scoping(client):
    for user_id in ("u1", "u2"):
        login(client, user_id)
        client.post("/api/attendance/punch-in")

    login(client, "u1")
    mine = client.get("/api/activity-logs").get_json()
    assert [e["userId"] for e in mine] == ["u1"]
    assert mine[0]["entityType"] == "attendance"
    assert mine[0]["user"]["firstName"] == "U1"
    assert mine[0]["user"]["email"] == "u1@example.com"

    login(client, "boss", "admin")
    assert len(client.get("/api/activity-logs?limit=1").get_json()) == 1
    assert client.get("/api/activity-logs?limit=many").status_code == 400


def test_auth_user(client):
    login(client, "u1")
    assert client.get("/api/auth/user").get_json()["id"] == "u1"

    login(client, "ghost")
    assert client.get("/api/auth/user").status_code == 404


def test_storage_outage_is_503(client, attendance_repo, monkeypatch):
    def down(*args, **kwargs):
        raise StorageUnavailableError("Database is unavailable")

    monkeypatch.setattr(attendance_repo, "find_by_user_and_day_window", down)
    login(client, "u1")

    resp = client.post("/api/attendance/punch-in")

    assert resp.status_code == 503
    assert resp.get_json() == {"message": "Database is unavailable"}
