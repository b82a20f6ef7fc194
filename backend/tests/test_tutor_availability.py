from datetime import datetime, timezone

from fastapi.testclient import TestClient

import tutorly.main as main_module
from fakes import FakeSession, make_profile
from tutorly.main import app


client = TestClient(app)
NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)
TUTOR_HEADERS = {"X-User-Id": "tutor_1", "X-User-Role": "tutor"}


def _use_session(monkeypatch, tutor):
    fake_session = FakeSession(profiles=[tutor, make_profile("student_1", "student")])
    monkeypatch.setattr(main_module, "SessionLocal", lambda: fake_session)
    monkeypatch.setattr(main_module, "utc_now", lambda: NOW)
    return fake_session


def test_read_tutor_availability(monkeypatch):
    tutor = make_profile(
        "tutor_1",
        "tutor",
        availability={"wednesday": [{"start": "09:00", "end": "17:00"}]},
    )
    _use_session(monkeypatch, tutor)

    response = client.get("/v1/tutors/tutor_1/availability")

    assert response.status_code == 200
    assert response.json()["data"]["availability"] == {
        "wednesday": [{"start": "09:00", "end": "17:00"}]
    }


def test_student_profile_has_no_availability(monkeypatch):
    _use_session(monkeypatch, make_profile("tutor_1", "tutor"))

    response = client.get("/v1/tutors/student_1/availability")

    assert response.status_code == 404
    assert response.json()["error_code"] == "TUTOR_NOT_FOUND"


def test_tutor_replaces_schedule_wholesale(monkeypatch):
    tutor = make_profile(
        "tutor_1",
        "tutor",
        availability={"monday": [{"start": "08:00", "end": "09:00"}]},
    )
    fake_session = _use_session(monkeypatch, tutor)

    response = client.put(
        "/v1/tutors/tutor_1/availability",
        json={
            "tuesday": [{"start": "09:00", "end": "10:00"}, {"start": "10:00", "end": "11:00"}],
            "sunday": [],
        },
        headers=TUTOR_HEADERS,
    )

    assert response.status_code == 200
    assert tutor.availability == {
        "tuesday": [{"start": "09:00", "end": "10:00"}, {"start": "10:00", "end": "11:00"}]
    }
    assert tutor.updated_at == NOW
    assert fake_session.commits == 1


def test_overlapping_schedule_is_not_saved(monkeypatch):
    original = {"monday": [{"start": "08:00", "end": "09:00"}]}
    tutor = make_profile("tutor_1", "tutor", availability=dict(original))
    fake_session = _use_session(monkeypatch, tutor)

    response = client.put(
        "/v1/tutors/tutor_1/availability",
        json={"monday": [{"start": "09:00", "end": "10:00"}, {"start": "09:30", "end": "10:30"}]},
        headers=TUTOR_HEADERS,
    )

    body = response.json()
    assert response.status_code == 422
    assert body["error_code"] == "OVERLAPPING_SLOTS"
    assert body["data"] == {"weekday": "monday"}
    assert tutor.availability == original
    assert fake_session.commits == 0


def test_only_owner_can_update(monkeypatch):
    _use_session(monkeypatch, make_profile("tutor_1", "tutor"))

    response = client.put(
        "/v1/tutors/tutor_1/availability",
        json={"monday": [{"start": "09:00", "end": "10:00"}]},
        headers={"X-User-Id": "student_1", "X-User-Role": "student"},
    )

    assert response.status_code == 403


def test_malformed_slot_is_invalid_args(monkeypatch):
    _use_session(monkeypatch, make_profile("tutor_1", "tutor"))

    response = client.put(
        "/v1/tutors/tutor_1/availability",
        json={"monday": [{"start": "25:00", "end": "26:00"}]},
        headers=TUTOR_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_ARGS"


def test_validate_endpoint():
    ok = client.post(
        "/v1/availability/validate",
        json={"monday": [{"start": "09:00", "end": "10:00"}, {"start": "10:00", "end": "11:00"}]},
    )
    assert ok.status_code == 200
    assert ok.json()["ok"] is True

    bad = client.post(
        "/v1/availability/validate",
        json={"thursday": [{"start": "12:00", "end": "11:00"}]},
    )
    assert bad.status_code == 422
    assert bad.json()["error_code"] == "INVALID_SLOT_ORDER"
    assert bad.json()["data"]["weekday"] == "thursday"


def test_database_failure_on_read_is_system_down(monkeypatch):
    fake_session = FakeSession(query_error=RuntimeError("connection refused"))
    monkeypatch.setattr(main_module, "SessionLocal", lambda: fake_session)

    response = client.get("/v1/tutors/tutor_1/availability")

    assert response.status_code == 500
    assert response.json()["error_code"] == "SYSTEM_DOWN"
    assert fake_session.closed is True


def test_unreadable_stored_schedule_is_system_down(monkeypatch):
    tutor = make_profile(
        "tutor_1",
        "tutor",
        availability={"monday": [{"start": "", "end": ""}]},
    )
    _use_session(monkeypatch, tutor)

    response = client.get("/v1/tutors/tutor_1/availability")

    assert response.status_code == 500
    assert response.json()["error_code"] == "SYSTEM_DOWN"
