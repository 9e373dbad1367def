"""
HTTP surface: status codes, response envelope and error rendering.
"""
import pytest
from fastapi.testclient import TestClient

from timecard.api.v1.endpoints.attendance import get_attendance_service
from timecard.db.session import get_db
from timecard.main import app
from tests.conftest import TODAY, YESTERDAY

BASE = "/api/v1/attendance"
HEADERS = {"X-User-Id": "1"}


@pytest.fixture
def client(db, service):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attendance_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(client, kind, time, work_date=YESTERDAY, headers=HEADERS):
    return client.post(
        f"{BASE}/events",
        json={"kind": kind, "time": time, "work_date": work_date.isoformat()},
        headers=headers,
    )


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_clock_in_and_status(client):
    response = client.post(f"{BASE}/clock-in", headers=HEADERS)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["event"]["ae_kind"] == "clock_in"
    assert body["data"]["affected_dates"] == [TODAY.isoformat()]

    status = client.get(f"{BASE}/status", headers=HEADERS).json()["data"]
    assert status["is_working"] is True
    assert status["work_date"] == TODAY.isoformat()


def test_manual_day_and_report(client):
    for kind, time in [("clock_in", "09:00"), ("clock_out", "12:00"), ("clock_in", "13:00"), ("clock_out", "17:30")]:
        assert _add(client, kind, time).status_code == 201

    status = client.get(f"{BASE}/status", params={"date": YESTERDAY.isoformat()}, headers=HEADERS).json()
    assert status["data"]["total_minutes"] == 450

    report = client.get(f"{BASE}/report", params={"period": "weekly"}, headers=HEADERS).json()["data"]
    assert report["total_minutes"] == 450
    assert report["date_from"] == "2024-01-08"


def test_malformed_time_is_bad_request(client):
    response = _add(client, "clock_in", "9h30")
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "INVALID_TIME"
    assert body["message"] == "Invalid time format. Use HH:MM (supports 00:00-47:59 for night shifts)"


def test_broken_order_is_unprocessable(client):
    response = _add(client, "clock_out", "18:00")
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "VALIDATION_FAILED"
    assert body["details"] == {"reason": "broken_alternation", "position": 1}


def test_edit_and_delete(client):
    _add(client, "clock_in", "09:00")
    out_id = _add(client, "clock_out", "18:00").json()["data"]["event"]["ae_id"]

    response = client.patch(f"{BASE}/events/{out_id}", json={"time": "17:00"}, headers=HEADERS)
    assert response.status_code == 200
    event = response.json()["data"]["event"]
    assert event["ae_is_modified"] is True

    response = client.delete(f"{BASE}/events/{out_id}", headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["data"]["event"] is None

    response = client.delete(f"{BASE}/events", params={"date": YESTERDAY.isoformat()}, headers=HEADERS)
    assert response.json()["data"]["deleted_count"] == 1


def test_other_users_event_is_not_found(client):
    event_id = _add(client, "clock_in", "09:00").json()["data"]["event"]["ae_id"]
    response = client.delete(f"{BASE}/events/{event_id}", headers={"X-User-Id": "2"})
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_recalculate(client):
    _add(client, "clock_in", "09:00")
    response = client.post(f"{BASE}/recalculate", params={"date": YESTERDAY.isoformat()}, headers=HEADERS)
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1


def test_missing_user_header(client):
    assert client.get(f"{BASE}/status").status_code == 422


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_user_header(client, value):
    response = client.get(f"{BASE}/status", headers={"X-User-Id": value})
    assert response.status_code == 400


def test_invalid_date_query(client):
    response = client.get(f"{BASE}/status", params={"date": "2024-13-01"}, headers=HEADERS)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid date format. Use YYYY-MM-DD"


def test_invalid_report_period(client):
    assert client.get(f"{BASE}/report", params={"period": "yearly"}, headers=HEADERS).status_code == 422
