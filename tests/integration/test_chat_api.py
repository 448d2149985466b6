"""Testes de integração da API HTTP do widget (TestClient, backend em memória)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

from chatbot_widget.application.factories.pipeline_factory import build_pipeline, build_use_case
from chatbot_widget.domain.errors import AIInteractionTimeoutError

CONFIG_ID = "cfg-widget-1"
ORG_ID = "org-acme"


def _open_session(client) -> str:
    response = client.post(
        "/chat/sessions", json={"chatbot_config_id": CONFIG_ID, "visitor_id": "visitor-1"}
    )
    assert response.status_code == 201
    return response.json()["session_id"]


def _send(client, session_id: str, text: str, organization_id: str | None = ORG_ID):
    return client.post(
        "/chat/messages",
        json={"session_id": session_id, "organization_id": organization_id, "user_message": text},
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["service"] == "chatbot_widget"

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "corr-123"})
        assert response.headers["x-correlation-id"] == "corr-123"

    def test_correlation_id_is_generated(self, client):
        response = client.get("/health")
        assert response.headers["x-correlation-id"]


class TestSessions:
    def test_create_session(self, client):
        response = client.post("/chat/sessions", json={"chatbot_config_id": CONFIG_ID})

        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "active"
        assert body["session_token"]
        assert body["visitor_id"]

    def test_unknown_config_is_404(self, client):
        response = client.post("/chat/sessions", json={"chatbot_config_id": "cfg-missing"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_end_session(self, client):
        session_id = _open_session(client)

        response = client.post(f"/chat/sessions/{session_id}/end")

        assert response.status_code == 200
        assert response.json()["status"] == "ended"

    def test_end_unknown_session_is_404(self, client):
        assert client.post("/chat/sessions/missing/end").status_code == 404

    def test_sweep_without_expired_sessions(self, client):
        _open_session(client)

        response = client.post("/internal/sessions/sweep", json={})

        assert response.status_code == 200
        assert response.json() == {"abandoned": 0, "session_ids": []}

    def test_sweep_rejects_non_positive_timeout(self, client):
        response = client.post("/internal/sessions/sweep", json={"timeout_minutes": 0})
        assert response.status_code == 400


class TestSendMessage:
    def test_turn_returns_bot_reply(self, client):
        session_id = _open_session(client)

        response = _send(client, session_id, "How much does it cost?")

        body = response.json()
        assert response.status_code == 200
        assert body["session_id"] == session_id
        assert body["session_status"] == "active"
        assert body["intent"] == "pricing_inquiry"
        assert body["bot_message"]["content"]
        assert body["conversation_metrics"]["message_count"] == 2

    def test_history_is_persisted(self, client):
        session_id = _open_session(client)
        _send(client, session_id, "hello")
        _send(client, session_id, "Can I get a demo?")

        messages = client.app.state.repositories.messages

        stored = asyncio.run(messages.find_by_session_id(session_id))
        assert [m.content for m in stored][::2] == ["hello", "Can I get a demo?"]
        assert len(stored) == 4

    def test_blank_organization_is_400(self, client):
        session_id = _open_session(client)

        response = _send(client, session_id, "hello", organization_id="   ")

        assert response.status_code == 400
        assert response.json()["error"]["context"]["field"] == "organization_id"

    def test_unknown_session_is_404(self, client):
        assert _send(client, "missing-session", "hello").status_code == 404

    def test_other_organization_is_404(self, client):
        session_id = _open_session(client)
        assert _send(client, session_id, "hello", organization_id="org-other").status_code == 404

    def test_ai_timeout_is_504(self, client, test_settings):
        ai = AsyncMock()
        ai.process.side_effect = AIInteractionTimeoutError(20.0)
        pipeline = build_pipeline(
            repositories=client.app.state.repositories,
            ai_interaction=ai,
            settings=test_settings,
        )
        client.app.state.use_case = build_use_case(pipeline, settings=test_settings)
        session_id = _open_session(client)

        response = _send(client, session_id, "hello")

        body = response.json()
        assert response.status_code == 504
        assert body["error"]["code"] == "AI_INTERACTION_TIMEOUT"
        assert body["error"]["retryable"] is True
