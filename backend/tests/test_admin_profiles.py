from datetime import datetime, timezone

from fastapi.testclient import TestClient

import tutorly.main as main_module
from fakes import FakeSession, make_profile
from tutorly.db.models import Profile
from tutorly.main import app


client = TestClient(app)
NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)
ADMIN_HEADERS = {"X-Admin-Key": "super-secret"}


def _use_session(monkeypatch, profiles=None):
    fake_session = FakeSession(profiles=profiles)
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("ADMIN_API_KEY", "super-secret")
    monkeypatch.setattr(main_module, "SessionLocal", lambda: fake_session)
    monkeypatch.setattr(main_module, "utc_now", lambda: NOW)
    return fake_session


def test_admin_auth_required(monkeypatch):
    _use_session(monkeypatch)

    response = client.get("/v1/admin/profiles")

    assert response.status_code == 401
    assert response.json()["detail"]["error_code"] == "INVALID_ADMIN_API_KEY"


def test_admin_key_must_be_configured_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "prod")

    response = client.get("/v1/admin/profiles", headers=ADMIN_HEADERS)

    assert response.status_code == 401
    assert response.json()["detail"]["error_code"] == "ADMIN_AUTH_NOT_CONFIGURED"


def test_create_tutor_profile(monkeypatch):
    fake_session = _use_session(monkeypatch)

    response = client.post(
        "/v1/admin/profiles",
        json={
            "id": "tutor_1",
            "full_name": "Ada Tutor",
            "email": "Ada@Example.com",
            "role": "tutor",
            "subjects": ["Mathematics"],
            "hourly_rate": 45,
            "timezone": "Europe/London",
            "availability": {"monday": [{"start": "09:00", "end": "12:00"}]},
        },
        headers=ADMIN_HEADERS,
    )

    body = response.json()
    assert response.status_code == 200
    profile = body["data"]["profile"]
    assert profile["id"] == "tutor_1"
    assert profile["email"] == "ada@example.com"
    assert profile["hourly_rate"] == 45.0
    assert profile["availability"] == {"monday": [{"start": "09:00", "end": "12:00"}]}
    assert len(fake_session.store[Profile]) == 1


def test_create_profile_with_overlapping_availability(monkeypatch):
    fake_session = _use_session(monkeypatch)

    response = client.post(
        "/v1/admin/profiles",
        json={
            "full_name": "Ada Tutor",
            "email": "ada@example.com",
            "role": "tutor",
            "availability": {
                "friday": [{"start": "09:00", "end": "12:00"}, {"start": "11:00", "end": "13:00"}]
            },
        },
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 422
    assert response.json()["error_code"] == "OVERLAPPING_SLOTS"
    assert fake_session.store[Profile] == []


def test_duplicate_email_rejected(monkeypatch):
    _use_session(monkeypatch, profiles=[make_profile("student_1", "student")])

    response = client.post(
        "/v1/admin/profiles",
        json={"full_name": "Copy", "email": "STUDENT_1@example.com", "role": "student"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "DUPLICATE_EMAIL"


def test_unknown_role_is_invalid_args(monkeypatch):
    _use_session(monkeypatch)

    response = client.post(
        "/v1/admin/profiles",
        json={"full_name": "X", "email": "x@example.com", "role": "parent"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_ARGS"


def test_list_profiles_filtered_by_role(monkeypatch):
    _use_session(
        monkeypatch,
        profiles=[
            make_profile("tutor_b", "tutor", full_name="Zed"),
            make_profile("student_1", "student"),
            make_profile("tutor_a", "tutor", full_name="Amy"),
        ],
    )

    response = client.get("/v1/admin/profiles?role=tutor", headers=ADMIN_HEADERS)

    profiles = response.json()["data"]["profiles"]
    assert response.status_code == 200
    assert [item["id"] for item in profiles] == ["tutor_a", "tutor_b"]


def test_update_profile(monkeypatch):
    profile = make_profile("tutor_1", "tutor", hourly_rate=30)
    _use_session(monkeypatch, profiles=[profile])

    response = client.patch(
        "/v1/admin/profiles/tutor_1",
        json={"hourly_rate": 50, "subjects": ["Physics"]},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert profile.hourly_rate == 50
    assert profile.subjects == ["Physics"]
    assert profile.updated_at == NOW


def test_update_missing_profile(monkeypatch):
    _use_session(monkeypatch)

    response = client.patch(
        "/v1/admin/profiles/nobody",
        json={"full_name": "Nobody"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["error_code"] == "PROFILE_NOT_FOUND"


def test_update_rejects_unknown_fields(monkeypatch):
    _use_session(monkeypatch, profiles=[make_profile("tutor_1", "tutor")])

    response = client.patch(
        "/v1/admin/profiles/tutor_1",
        json={"availability": {}},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 400


def test_database_failure_on_list_is_system_down(monkeypatch):
    fake_session = _use_session(monkeypatch)
    fake_session.query_error = RuntimeError("connection refused")

    response = client.get("/v1/admin/profiles", headers=ADMIN_HEADERS)

    assert response.status_code == 500
    assert response.json()["error_code"] == "SYSTEM_DOWN"
    assert fake_session.closed is True


def test_update_email_collision_and_own_email(monkeypatch):
    tutor = make_profile("tutor_1", "tutor")
    _use_session(monkeypatch, profiles=[tutor, make_profile("student_1", "student")])

    taken = client.patch(
        "/v1/admin/profiles/tutor_1",
        json={"email": "Student_1@example.com"},
        headers=ADMIN_HEADERS,
    )
    assert taken.status_code == 409
    assert taken.json()["error_code"] == "DUPLICATE_EMAIL"
    assert tutor.email == "tutor_1@example.com"

    unchanged = client.patch(
        "/v1/admin/profiles/tutor_1",
        json={"email": "TUTOR_1@example.com"},
        headers=ADMIN_HEADERS,
    )
    assert unchanged.status_code == 200
    assert tutor.email == "tutor_1@example.com"
