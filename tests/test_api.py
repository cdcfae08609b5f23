"""Tests for the HTTP API."""

import time

import pytest
from fastapi.testclient import TestClient

from storyteller_api.app import create_app
from storyteller_api.deps import settings
from storyteller_gemini_client.client import set_client

from conftest import ROCKET_NARRATIONS, FakeGeminiClient


@pytest.fixture
def fake_gemini():
    client = FakeGeminiClient()
    set_client(client)
    yield client
    set_client(None)


@pytest.fixture
def api(fake_gemini):
    settings.require_auth = False
    settings.api_keys = set()
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def session_id(api):
    response = api.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_new_session_is_empty(api, session_id):
    body = api.get(f"/sessions/{session_id}").json()

    assert body["phase"] == "idle"
    assert body["busy"] is False
    assert body["scenes"] == []
    assert body["current_scene"] is None
    assert body["counter"] == "0 / 0"


def test_generate_and_wait(api, session_id):
    response = api.post(
        f"/sessions/{session_id}/storyboard",
        params={"wait": True},
        json={"concept": "How rockets work"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["phase"] == "completed"
    assert body["busy"] is False
    assert body["concept"] == "How rockets work"
    assert [s["narration"] for s in body["scenes"]] == ROCKET_NARRATIONS
    assert all(s["status"] == "ready" for s in body["scenes"])
    assert body["scenes"][0]["image_url"].startswith("data:image/jpeg;base64,")
    assert body["current_scene"]["number"] == 1
    assert body["counter"] == "1 / 5"


def test_generate_in_background_and_poll(api, session_id):
    response = api.post(f"/sessions/{session_id}/storyboard", json={"concept": "How rockets work"})
    assert response.status_code == 202

    body = response.json()
    for _ in range(200):
        body = api.get(f"/sessions/{session_id}").json()
        if body["phase"] == "completed":
            break
        time.sleep(0.01)

    assert body["phase"] == "completed"
    assert body["busy"] is False
    assert len(body["scenes"]) == 5


def test_new_run_response_discards_previous_storyboard(api, session_id):
    api.post(
        f"/sessions/{session_id}/storyboard",
        params={"wait": True},
        json={"concept": "How rockets work"},
    )
    api.post(f"/sessions/{session_id}/next")

    response = api.post(f"/sessions/{session_id}/storyboard", json={"concept": "Why the sky is blue"})

    assert response.status_code == 202
    body = response.json()
    assert body["concept"] == "Why the sky is blue"
    assert body["busy"] is True
    assert body["phase"] == "narrating"
    assert body["scenes"] == []
    assert body["cursor"] == 0
    assert body["current_scene"] is None


def test_navigation_is_clamped(api, session_id):
    api.post(
        f"/sessions/{session_id}/storyboard",
        params={"wait": True},
        json={"concept": "How rockets work"},
    )

    assert api.post(f"/sessions/{session_id}/prev").json()["cursor"] == 0

    for _ in range(6):
        body = api.post(f"/sessions/{session_id}/next").json()
    assert body["cursor"] == 4
    assert body["counter"] == "5 / 5"
    assert body["current_scene"]["narration"] == ROCKET_NARRATIONS[4]

    assert api.post(f"/sessions/{session_id}/prev").json()["cursor"] == 3


def test_blank_concept_is_rejected(api, session_id, fake_gemini):
    response = api.post(f"/sessions/{session_id}/storyboard", json={"concept": "   "})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "concept"
    assert fake_gemini.call_count == 0


def test_narration_failure_reports_error(api, session_id, fake_gemini):
    fake_gemini.narration_error = ConnectionError("network down")

    body = api.post(
        f"/sessions/{session_id}/storyboard",
        params={"wait": True},
        json={"concept": "How rockets work"},
    ).json()

    assert body["phase"] == "failed"
    assert body["busy"] is False
    assert body["scenes"] == []
    assert body["error"] == "Failed to generate the storyboard. Please try again."


def test_image_failure_marks_scene_unavailable(api, session_id, fake_gemini):
    fake_gemini.image_failures = {2}

    body = api.post(
        f"/sessions/{session_id}/storyboard",
        params={"wait": True},
        json={"concept": "How rockets work"},
    ).json()

    statuses = [s["status"] for s in body["scenes"]]
    assert statuses == ["ready", "ready", "unavailable", "ready", "ready"]
    assert body["scenes"][2]["image_url"] is None
    assert body["scenes"][2]["image_loading"] is False


def test_unknown_session(api):
    response = api.get("/sessions/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_list_and_delete_sessions(api, session_id):
    listing = api.get("/sessions").json()
    assert listing["pagination"]["total"] == 1
    assert listing["data"][0]["id"] == session_id

    assert api.delete(f"/sessions/{session_id}").status_code == 204
    assert api.get(f"/sessions/{session_id}").status_code == 404


def test_auth_required(fake_gemini):
    settings.require_auth = True
    settings.api_keys = {"secret"}
    try:
        with TestClient(create_app()) as client:
            assert client.post("/sessions").status_code == 401
            assert client.post("/sessions", headers={"Authorization": "Bearer wrong"}).status_code == 403
            ok = client.post("/sessions", headers={"Authorization": "Bearer secret"})
            assert ok.status_code == 201
    finally:
        settings.require_auth = False
        settings.api_keys = set()
