from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from atams.exceptions import setup_exception_handlers
from scan_attendance.api import deps
from scan_attendance.api.v1.api import api_router
from scan_attendance.core.config import settings
from scan_attendance.db.session import get_db
from scan_attendance.models import AttendanceEvent

EMPLOYEE = {"user_id": 7, "username": "employee", "role_level": 1}
ADMIN = {"user_id": 1, "username": "admin", "role_level": 50}


@pytest.fixture
def app(db):
    app = FastAPI()
    setup_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.require_auth] = lambda: EMPLOYEE
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def login_as(app, user):
    app.dependency_overrides[deps.require_auth] = lambda: user


def rolling_token(client, code="OFFICE-01"):
    response = client.get(
        f"/api/v1/attendance/locations/{code}/rolling-token",
        headers={"X-Display-Key": settings.DISPLAY_API_KEY},
    )
    assert response.status_code == 200
    return response.json()["data"]


def test_rolling_token_requires_display_key(client, make_location):
    make_location()

    missing = client.get("/api/v1/attendance/locations/OFFICE-01/rolling-token")
    assert missing.status_code == 422

    wrong = client.get(
        "/api/v1/attendance/locations/OFFICE-01/rolling-token",
        headers={"X-Display-Key": "not-the-key"},
    )
    assert wrong.status_code == 403

    data = rolling_token(client)
    assert data["location_code"] == "OFFICE-01"
    assert data["rotation_interval"] == 300


def test_rolling_token_unknown_location(client):
    response = client.get(
        "/api/v1/attendance/locations/NOPE/rolling-token",
        headers={"X-Display-Key": settings.DISPLAY_API_KEY},
    )
    assert response.status_code == 404


def test_rejected_scan_returns_400_with_code(client, db, make_location):
    make_location()

    response = client.post(
        "/api/v1/attendance/scan",
        json={"token": "anything", "latitude": 0.0, "longitude": 0.0},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["details"]["code"] == "InvalidCoordinates"
    assert db.query(AttendanceEvent).count() == 0


def test_scan_records_forwarded_client_ip(client, db, make_location):
    make_location()
    token = rolling_token(client)["token"]

    response = client.post(
        "/api/v1/attendance/scan",
        json={"token": token, "latitude": -6.2, "longitude": 106.8, "accuracy": 10, "device_id": "phone-1"},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is True
    assert data["event"]["check_type"] == "IN"

    event = db.query(AttendanceEvent).one()
    assert event.ae_user_id == EMPLOYEE["user_id"]
    assert event.ae_ip_address == "203.0.113.7"
    assert event.ae_device_id == "phone-1"


def test_absence_sweep_requires_admin(app, client):
    response = client.post("/api/v1/maintenance/absence-sweep", params={"date": "2024-01-15"})
    assert response.status_code == 403


def test_absence_sweep_date_parsing(app, client, make_shift, assign_shift):
    assign_shift(3, make_shift())
    login_as(app, ADMIN)

    invalid = client.post("/api/v1/maintenance/absence-sweep", params={"date": "15-01-2024"})
    assert invalid.status_code == 400

    response = client.post(
        "/api/v1/maintenance/absence-sweep",
        params={"date": "2024-01-15", "dry_run": "true"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["target_date"] == date(2024, 1, 15).isoformat()
    assert data["user_ids"] == [3]
    assert data["created_count"] == 0
    assert data["dry_run"] is True
