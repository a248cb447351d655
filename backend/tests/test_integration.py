"""
Integration tests for the session API.
Exercises the HTTP status mapping on top of a fresh store per test.
"""

import pytest
from fastapi.testclient import TestClient

from app.core import SessionStore
from app.main import app

UNKNOWN_ID = "sess_abc123_" + "x" * 39


@pytest.fixture
def session_store(clock):
    return SessionStore(
        ttl_seconds=30 * 60,
        max_sessions=10,
        rate_limit_max=5,
        rate_limit_window_seconds=10 * 60,
        clock=clock,
    )


@pytest.fixture
def client(session_store):
    with TestClient(app) as test_client:
        app.state.session_store = session_store
        yield test_client


def _create(client, ip="1.2.3.4"):
    response = client.post("/api/session", headers={"X-Forwarded-For": ip})
    assert response.status_code == 200
    return response.json()


class TestSessionAPI:
    """Create/read/update/delete round trips."""

    def test_create_session(self, client):
        data = _create(client)
        assert data["sessionId"].startswith("sess_")
        state = data["conversationState"]
        assert state["messages"] == []
        assert state["isGenerating"] is False
        assert state["conversationPhase"] == "discovery"

    def test_create_rate_limited_returns_429(self, client):
        for _ in range(5):
            _create(client)
        response = client.post("/api/session", headers={"X-Forwarded-For": "1.2.3.4"})
        assert response.status_code == 429

        # another address is unaffected
        _create(client, ip="5.6.7.8")

    def test_create_at_capacity_returns_429(self, client, session_store):
        session_store.max_sessions = 2
        _create(client, ip="10.0.0.1")
        _create(client, ip="10.0.0.2")
        response = client.post("/api/session", headers={"X-Forwarded-For": "10.0.0.3"})
        assert response.status_code == 429

    def test_get_session(self, client):
        session_id = _create(client)["sessionId"]
        response = client.get("/api/session", params={"sessionId": session_id})
        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"] == session_id
        assert data["email"] is None
        assert data["projectName"] is None

    def test_get_requires_session_id(self, client):
        assert client.get("/api/session").status_code == 400

    def test_get_unknown_returns_404(self, client):
        response = client.get("/api/session", params={"sessionId": UNKNOWN_ID})
        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"

    def test_get_expired_returns_404(self, client, clock):
        session_id = _create(client)["sessionId"]
        clock.advance(31 * 60)
        response = client.get("/api/session", params={"sessionId": session_id})
        assert response.status_code == 404

    def test_update_session(self, client):
        session_id = _create(client)["sessionId"]
        response = client.put("/api/session", json={
            "sessionId": session_id,
            "email": "a@b.com",
            "projectName": "launchpad",
        })
        assert response.status_code == 200
        assert response.json()["email"] == "a@b.com"

        data = client.get("/api/session", params={"sessionId": session_id}).json()
        assert data["email"] == "a@b.com"
        assert data["projectName"] == "launchpad"
        assert data["conversationState"]["conversationPhase"] == "discovery"

    def test_update_replaces_conversation_state(self, client):
        session_id = _create(client)["sessionId"]
        response = client.put("/api/session", json={
            "sessionId": session_id,
            "conversationState": {
                "messages": [{"role": "user", "content": "Build me a marketplace"}],
                "conversationPhase": "recommendation",
            },
        })
        assert response.status_code == 200
        state = response.json()["conversationState"]
        assert state["conversationPhase"] == "recommendation"
        assert state["messages"][0]["content"] == "Build me a marketplace"

    def test_update_requires_session_id(self, client):
        assert client.put("/api/session", json={"email": "a@b.com"}).status_code == 400

    def test_update_unknown_returns_404(self, client):
        response = client.put("/api/session", json={"sessionId": UNKNOWN_ID, "email": "a@b.com"})
        assert response.status_code == 404

    def test_delete_session(self, client):
        session_id = _create(client)["sessionId"]
        response = client.delete("/api/session", params={"sessionId": session_id})
        assert response.status_code == 200
        assert response.json() == {"success": True}

        again = client.delete("/api/session", params={"sessionId": session_id})
        assert again.status_code == 404

    def test_delete_requires_session_id(self, client):
        assert client.delete("/api/session").status_code == 400


class TestConversationEndpoints:
    """Message append and state patch routes."""

    def test_add_message(self, client):
        session_id = _create(client)["sessionId"]
        response = client.post("/api/session/messages", json={
            "sessionId": session_id,
            "message": {"role": "user", "content": "What should I use for auth?"},
        })
        assert response.status_code == 200
        messages = response.json()["conversationState"]["messages"]
        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        assert "id" in messages[0]

    def test_add_message_invalid_role(self, client):
        session_id = _create(client)["sessionId"]
        response = client.post("/api/session/messages", json={
            "sessionId": session_id,
            "message": {"role": "system", "content": "nope"},
        })
        assert response.status_code == 422

    def test_add_message_unknown_session(self, client):
        response = client.post("/api/session/messages", json={
            "sessionId": UNKNOWN_ID,
            "message": {"role": "user", "content": "hi"},
        })
        assert response.status_code == 404

    def test_patch_conversation_state(self, client):
        session_id = _create(client)["sessionId"]
        response = client.patch("/api/session/conversation-state", json={
            "sessionId": session_id,
            "updates": {"isGenerating": True, "conversationPhase": "generation"},
        })
        assert response.status_code == 200
        state = response.json()["conversationState"]
        assert state["isGenerating"] is True
        assert state["conversationPhase"] == "generation"
        assert state["messages"] == []

    def test_patch_conversation_state_invalid_value(self, client):
        session_id = _create(client)["sessionId"]
        response = client.patch("/api/session/conversation-state", json={
            "sessionId": session_id,
            "updates": {"conversationPhase": "shipping"},
        })
        assert response.status_code == 422

    def test_stats(self, client):
        _create(client)
        _create(client)
        data = client.get("/api/session/stats").json()
        assert data["count"] == 2
        assert data["oldestSession"] is not None


class TestCollectEmail:
    """Email collection route."""

    def test_collect_email(self, client):
        session_id = _create(client)["sessionId"]
        response = client.post("/api/collect-email", json={
            "sessionId": session_id,
            "email": "dev@example.com",
            "projectName": "stack-starter",
        })
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Email collected successfully",
            "sessionId": session_id,
        }

        data = client.get("/api/session", params={"sessionId": session_id}).json()
        assert data["email"] == "dev@example.com"
        assert data["projectName"] == "stack-starter"

    def test_collect_invalid_email(self, client):
        session_id = _create(client)["sessionId"]
        response = client.post("/api/collect-email", json={"sessionId": session_id, "email": "nope"})
        assert response.status_code == 400

    def test_collect_email_unknown_session(self, client):
        response = client.post("/api/collect-email", json={"sessionId": UNKNOWN_ID, "email": "a@b.com"})
        assert response.status_code == 404

    def test_collect_email_missing_fields(self, client):
        assert client.post("/api/collect-email", json={"email": "a@b.com"}).status_code == 422


class TestAppEndpoints:
    """Tests for basic app endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["app"] == "Stack Navigator Sessions"
        assert data["status"] == "running"

    def test_health_check(self, client):
        _create(client)
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["sessions"] == 1
