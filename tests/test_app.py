"""Tests for the HTTP layer: event intake and health endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from voicenotify.events import EventType
from voicenotify.main import create_app


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.dispatch = MagicMock()
    orch.status = MagicMock(
        return_value={"mode": "sound-first", "pending_reminders": ["idle"], "batches": {}}
    )
    orch.aclose = AsyncMock()
    return orch


@pytest.fixture
def messages():
    service = MagicMock()
    service.check_ai_connection = AsyncMock(
        return_value={"success": True, "message": "Connected!", "models": ["llama3"]}
    )
    service.aclose = AsyncMock()
    return service


@pytest.fixture
def client(orchestrator, messages):
    app = create_app(orchestrator=orchestrator, messages=messages)
    with TestClient(app) as test_client:
        yield test_client


class TestEventEndpoint:
    def test_known_event_is_dispatched(self, client, orchestrator):
        resp = client.post(
            "/event",
            json={"type": "permission.asked", "properties": {"id": "perm-1"}},
        )
        assert resp.status_code == 202
        assert resp.json() == {"accepted": True, "type": "permission-asked"}

        event = orchestrator.dispatch.call_args.args[0]
        assert event.type is EventType.PERMISSION_ASKED
        assert event.request_id == "perm-1"

    def test_unknown_event_is_acknowledged_but_ignored(self, client, orchestrator):
        resp = client.post("/event", json={"type": "file.edited", "properties": {}})
        assert resp.status_code == 202
        assert resp.json() == {"accepted": False, "type": "file.edited"}
        orchestrator.dispatch.assert_not_called()

    def test_invalid_json(self, client, orchestrator):
        resp = client.post(
            "/event", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert resp.status_code == 400
        orchestrator.dispatch.assert_not_called()


class TestHealth:
    def test_health_reports_engine_state(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["engine"]["pending_reminders"] == ["idle"]
        assert "counters" in data["metrics"]
        assert data["sink"] is None

    def test_health_ai(self, client, messages):
        resp = client.get("/health/ai")
        assert resp.json()["success"] is True
        messages.check_ai_connection.assert_awaited_once()


def test_lifespan_closes_services(orchestrator, messages):
    app = create_app(orchestrator=orchestrator, messages=messages)
    with TestClient(app):
        pass
    orchestrator.aclose.assert_awaited_once()
    messages.aclose.assert_awaited_once()
