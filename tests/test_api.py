"""Tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from operator_agent.api.deps import get_agent
from operator_agent.api.server import create_app

from conftest import OTHER_USER, USER

HEADERS = {"X-User-Id": USER}


@pytest.fixture
def client(agent):
    app = create_app()
    app.dependency_overrides[get_agent] = lambda: agent
    with TestClient(app) as client:
        yield client


def _events(response) -> list[dict]:
    frames = [f for f in response.text.split("\n\n") if f.strip()]
    assert all(f.startswith("data: ") for f in frames)
    return [json.loads(f[len("data: "):]) for f in frames]


class TestChat:
    """Tests for POST /api/operator/chat."""

    def test_streams_turn(self, client, oracle):
        oracle.reply("You have three adsets running.")

        response = client.post("/api/operator/chat", json={"message": "status?"}, headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        conversation_id = response.headers["x-conversation-id"]
        events = _events(response)
        assert "".join(e["chunk"] for e in events if e["type"] == "text") == "You have three adsets running."
        assert events[-1] == {"type": "done", "conversation_id": conversation_id}

    def test_write_flow_with_confirmation(self, client, oracle, meta):
        oracle.call_tools(("pause_meta_adset", {"name": "Retargeting Q2"}))
        oracle.reply("Confirm pausing Retargeting Q2?")

        first = client.post("/api/operator/chat", json={"message": "pause retargeting"}, headers=HEADERS)
        conversation_id = first.headers["x-conversation-id"]
        statuses = [e for e in _events(first) if e["type"] == "tool_status"]
        assert [s["status"] for s in statuses] == ["running", "done"]
        assert meta.calls == []

        pending = client.get("/api/operator/pending", headers=HEADERS).json()
        assert len(pending) == 1
        assert pending[0]["action"] == "pause_meta_adset"
        assert pending[0]["details"]["adset_id"] == "63"

        second = client.post(
            "/api/operator/chat",
            json={"message": "yes", "conversation_id": conversation_id},
            headers=HEADERS,
        )
        assert second.headers["x-conversation-id"] == conversation_id
        assert _events(second)[-1]["type"] == "done"
        assert meta.calls == [("pause", USER, "63")]
        assert client.get("/api/operator/pending", headers=HEADERS).json() == []

    def test_oracle_failure_is_error_event(self, client, oracle):
        from operator_agent.exceptions import ProviderUnavailableError

        oracle.fail(ProviderUnavailableError("down"))
        response = client.post("/api/operator/chat", json={"message": "hi"}, headers=HEADERS)

        assert response.status_code == 200
        events = _events(response)
        assert events == [{"type": "error", "message": "down"}]

    def test_empty_message(self, client, oracle):
        response = client.post("/api/operator/chat", json={"message": "  "}, headers=HEADERS)
        assert response.status_code == 400
        assert oracle.calls == []

    def test_unknown_conversation(self, client):
        response = client.post(
            "/api/operator/chat",
            json={"message": "hi", "conversation_id": "missing"},
            headers=HEADERS,
        )
        assert response.status_code == 404

    def test_missing_user_header(self, client):
        response = client.post("/api/operator/chat", json={"message": "hi"})
        assert response.status_code == 401

    def test_malformed_body(self, client):
        response = client.post("/api/operator/chat", json={}, headers=HEADERS)
        assert response.status_code == 422


class TestConversations:
    """Tests for the conversation routes."""

    def test_create_list_get_delete(self, client, oracle):
        created = client.post("/api/operator/conversations", json={"title": "Weekly"}, headers=HEADERS)
        assert created.status_code == 201
        conversation_id = created.json()["id"]
        assert created.json()["title"] == "Weekly"

        listed = client.get("/api/operator/conversations", headers=HEADERS).json()
        assert [c["id"] for c in listed] == [conversation_id]

        oracle.reply("Hello!")
        client.post(
            "/api/operator/chat",
            json={"message": "hi", "conversation_id": conversation_id},
            headers=HEADERS,
        )
        detail = client.get(f"/api/operator/conversations/{conversation_id}", headers=HEADERS).json()
        assert [(m["role"], m["content"]) for m in detail["messages"]] == [
            ("user", "hi"),
            ("assistant", "Hello!"),
        ]

        deleted = client.delete(f"/api/operator/conversations/{conversation_id}", headers=HEADERS)
        assert deleted.json() == {"status": "deleted"}
        missing = client.get(f"/api/operator/conversations/{conversation_id}", headers=HEADERS)
        assert missing.status_code == 404

    def test_owner_scoped(self, client):
        created = client.post("/api/operator/conversations", json={}, headers=HEADERS).json()
        other = {"X-User-Id": OTHER_USER}

        assert client.get("/api/operator/conversations", headers=other).json() == []
        assert client.get(f"/api/operator/conversations/{created['id']}", headers=other).status_code == 404
        assert client.delete(f"/api/operator/conversations/{created['id']}", headers=other).status_code == 404

    def test_default_title(self, client):
        created = client.post("/api/operator/conversations", json={}, headers=HEADERS).json()
        assert created["title"] == "New conversation"


class TestLifespan:
    """The app starts and stops the agent's background work."""

    def test_sweeper_runs_while_serving(self, agent):
        app = create_app()
        app.dependency_overrides[get_agent] = lambda: agent
        with TestClient(app):
            assert agent.sweeper.running
        assert not agent.sweeper.running
