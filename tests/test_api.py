"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from blueprint_nlu import settings
from blueprint_nlu.api.app import create_app
from blueprint_nlu.session.store import DiscoverySessionStore


@pytest.fixture
def client():
    """Create a test client with fresh components."""
    app = create_app(session_store=DiscoverySessionStore())
    return TestClient(app)


@pytest.fixture
def app_context():
    return {
        "app_id": "app_1",
        "pages": [
            {"id": "dashboard", "name": "Dashboard"},
            {"id": "calendar", "name": "Calendar"},
        ],
        "entities": [{"id": "job", "name": "Job"}],
    }


class TestParseEndpoint:
    def test_parse(self, client):
        response = client.post("/parse", json={"text": "Add a calendar feature"})
        assert response.status_code == 200
        data = response.json()
        assert data["intent"] == "add_feature"
        assert data["confidence"] == 1.0
        assert data["original"] == "Add a calendar feature"

    def test_parse_requires_text(self, client):
        assert client.post("/parse", json={}).status_code == 422


class TestSessionEndpoints:
    def test_create_session(self, client):
        response = client.post("/sessions")
        assert response.status_code == 200
        data = response.json()
        assert data["session_id"].startswith("session_")
        assert data["gaps"] == ["industry", "primary_entities"]
        assert data["ready_to_build"] is False
        assert data["decisions"]["to_ask"] == ["industry", "sub_vertical"]

    def test_utterance_then_slot_override(self, client):
        session_id = client.post("/sessions").json()["session_id"]

        response = client.post(
            f"/sessions/{session_id}/utterances",
            json={"utterance": "I need an app for my plumbing business with 5 technicians"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["ledger"]["industry"]["value"] == "plumber"
        assert data["gaps"] == ["primary_entities"]
        assert data["context"].startswith('- Industry: "plumber"')

        response = client.put(
            f"/sessions/{session_id}/slots/primary_entities",
            json={"value": ["Job"], "confidence": 0.9},
        )
        assert response.status_code == 200
        assert response.json()["gaps"] == []

    def test_utterance_with_kit(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        response = client.post(
            f"/sessions/{session_id}/utterances",
            json={
                "utterance": "I run a plumbing company",
                "industry_kit": {
                    "id": "plumber",
                    "name": "Plumber",
                    "entities": [{"id": "job", "name": "Job"}],
                },
            },
        )
        data = response.json()
        assert data["ledger"]["primary_entities"]["value"] == ["Job"]
        assert data["ready_to_build"] is True

    def test_unknown_slot(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        response = client.put(
            f"/sessions/{session_id}/slots/budget",
            json={"value": 100, "confidence": 0.9},
        )
        assert response.status_code == 422

    def test_history_and_undo(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        client.post(f"/sessions/{session_id}/utterances", json={"utterance": "I run a gym"})

        history = client.get(f"/sessions/{session_id}/history").json()
        assert len(history) == 2
        assert history[1]["industry"]["value"] == "gym"

        response = client.post(f"/sessions/{session_id}/undo")
        assert response.json()["ledger"]["industry"]["value"] is None

    def test_list_and_delete(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        sessions = client.get("/sessions").json()
        assert [s["session_id"] for s in sessions] == [session_id]
        assert sessions[0]["turns"] == 0

        assert client.delete(f"/sessions/{session_id}").status_code == 200
        assert client.get(f"/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        assert client.get("/sessions/nope").status_code == 404
        assert client.post("/sessions/nope/utterances", json={"utterance": "hi"}).status_code == 404
        assert client.post("/sessions/nope/undo").status_code == 404
        assert client.get("/sessions/nope/history").status_code == 404
        assert client.delete("/sessions/nope").status_code == 404


class TestWorkflowEndpoints:
    def test_infer(self, client):
        response = client.post("/workflows/infer", json={
            "text": "I run a plumbing business",
            "entities": [{"id": "job", "name": "Job"}],
            "features": [{"id": "invoicing"}],
        })
        assert response.status_code == 200
        ids = [w["id"] for w in response.json()]
        assert ids[:3] == ["create-job", "update-job", "delete-job"]
        assert "send-invoice" in ids


class TestRevisionEndpoints:
    def test_plan_and_apply(self, client, app_context):
        response = client.post("/revisions", json={
            "utterance": "remove the calendar",
            "context": app_context,
        })
        assert response.status_code == 200
        plan = response.json()
        assert plan["intent"] == "remove_feature"
        assert plan["requires_confirmation"] is True

        response = client.post("/revisions/apply", json={
            "context": app_context,
            "changes": plan["changes"],
        })
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["pages"]] == ["dashboard"]

    def test_apply_skips_malformed_changes(self, client, app_context):
        response = client.post("/revisions/apply", json={
            "context": app_context,
            "changes": [
                {"type": "add", "target": "page", "target_id": "reports", "description": "Add reports"},
                {"type": "add", "target": "entity", "target_id": "x", "after": {"name": "X"},
                 "description": "Add X"},
                {"type": "remove", "target": "page", "target_id": "calendar",
                 "description": "Remove Calendar page"},
            ],
        })
        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data["pages"]] == ["dashboard"]
        assert [e["id"] for e in data["entities"]] == ["job"]


class TestLifespan:
    def test_logging_configured_on_startup_only(self, monkeypatch):
        calls = []
        monkeypatch.setattr(settings, "setup_logging", lambda: calls.append(True))

        app = create_app(session_store=DiscoverySessionStore())
        assert calls == []

        with TestClient(app) as started:
            assert started.post("/parse", json={"text": "help"}).status_code == 200
        assert calls == [True]
