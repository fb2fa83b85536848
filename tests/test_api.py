import numpy as np
import pytest
from fastapi.testclient import TestClient

from face_attendance.dependencies import get_extractor, get_store
from face_attendance.main import app
from face_attendance.utils.image import encode_jpeg

from .conftest import LIVE, FakeStore, StubExtractor, descriptor_at, make_detection


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def extractor():
    return StubExtractor(make_detection(LIVE))


@pytest.fixture
def client(store, extractor):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_extractor] = lambda: extractor
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def jpeg():
    return encode_jpeg(np.full((64, 64, 3), 127, dtype=np.uint8))


def _upload(data):
    return {"image": ("frame.jpg", data, "image/jpeg")}


def test_capture_returns_descriptor_without_storing(client, store, jpeg):
    response = client.post("/users/capture", files=_upload(jpeg))

    assert response.status_code == 200
    body = response.json()
    assert len(body["face_descriptor"]) == 128
    assert body["bbox"] == [10, 110, 110, 10]
    assert store.calls == []


def test_capture_without_face(client, extractor, jpeg):
    extractor.results = [None]

    response = client.post("/users/capture", files=_upload(jpeg))

    assert response.status_code == 422
    assert response.json()["error"] == "no_face_detected"


def test_capture_rejects_undecodable_upload(client):
    response = client.post("/users/capture", files=_upload(b"not an image"))

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_image"


def test_register_requires_a_capture(client, store):
    response = client.post(
        "/users/register", json={"name": "Jane", "email": "jane@example.com"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "missing_face_capture"
    assert store.calls == []


def test_register_and_duplicate(client, store):
    payload = {
        "name": "Jane",
        "email": "Jane@Example.com",
        "face_descriptor": descriptor_at(0.1),
    }

    first = client.post("/users/register", json=payload)
    assert first.status_code == 200
    user = first.json()["user"]
    assert user["email"] == "jane@example.com"
    assert user["enrolled"] is True

    second = client.post("/users/register", json=payload)
    assert second.status_code == 409
    assert second.json()["error"] == "duplicate_email"
    assert len(store.users) == 1


def test_register_validates_input(client):
    short = client.post(
        "/users/register",
        json={"name": "Jane", "email": "jane@example.com", "face_descriptor": [0.1] * 10},
    )
    bad_email = client.post(
        "/users/register",
        json={"name": "Jane", "email": "not-an-email", "face_descriptor": LIVE},
    )

    assert short.status_code == 422
    assert bad_email.status_code == 422


def test_mark_attendance_success(client, store, jpeg):
    user = store.add_user("Jane", "jane@example.com", descriptor_at(0.25))

    response = client.post("/attendance/mark", files=_upload(jpeg))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["user_id"] == str(user.id)
    assert body["confidence"] == 75.0
    assert body["message"] == "Welcome Jane! Attendance marked successfully."
    assert len(store.records) == 1


def test_mark_attendance_rejected(client, store, jpeg):
    store.add_user("Jane", "jane@example.com", descriptor_at(0.7))

    response = client.post("/attendance/mark", files=_upload(jpeg))

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["reason"] == "no_match"
    assert store.records == []


def test_mark_attendance_with_nobody_enrolled(client, jpeg):
    response = client.post("/attendance/mark", files=_upload(jpeg))

    assert response.json()["reason"] == "no_registered_users"


def test_mark_attendance_write_failure(client, store, store_error, jpeg):
    store.add_user("Jane", "jane@example.com", descriptor_at(0.1))
    store.fail_insert_attendance = store_error

    response = client.post("/attendance/mark", files=_upload(jpeg))

    assert response.status_code == 500
    assert response.json()["error"] == "attendance_write_failed"


def test_history_and_stats(client, store, jpeg):
    store.add_user("Jane", "jane@example.com", descriptor_at(0.25))
    client.post("/attendance/mark", files=_upload(jpeg))

    history = client.get("/attendance/history", params={"limit": 10}).json()
    stats = client.get("/attendance/stats").json()

    assert history["records"][0]["user"] == {"name": "Jane", "email": "jane@example.com"}
    assert history["records"][0]["face_match_confidence"] == 75.0
    assert stats == {"total_today": 1, "total_users": 1, "average_confidence": 75.0}


@pytest.mark.parametrize("limit", [0, 201])
def test_history_limit_bounds(client, limit):
    assert client.get("/attendance/history", params={"limit": limit}).status_code == 422


def test_user_count(client, store):
    store.add_user("Jane", "jane@example.com", None)
    assert client.get("/users/count").json() == {"total_users": 1}


def test_unexpected_errors_become_json(client, store):
    async def broken():
        raise RuntimeError("boom")

    store.count_users = broken

    response = client.get("/users/count")

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"


def test_health_and_ui(client):
    health = client.get("/health/").json()
    assert health["status"] == "ok"
    assert health["models_loaded"] is True

    ui = client.get("/ui")
    assert ui.status_code == 200
    assert "text/html" in ui.headers["content-type"]

    assert client.get("/").json()["ui"] == "/ui"
