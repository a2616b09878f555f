"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end, with the Todoist
client replaced by a double and the snapshot cache in memory.
"""

import json

from fastapi.testclient import TestClient

from todoview.auth.webhook import WEBHOOK_SIGNATURE_HEADER, compute_webhook_signature
from todoview.integrations.todoist import TodoistError


def _signed(body: dict, secret: str):
    raw = json.dumps(body).encode("utf-8")
    return raw, {WEBHOOK_SIGNATURE_HEADER: compute_webhook_signature(raw, secret)}


class TestRootAndHealth:
    """Test unauthenticated endpoints."""

    def test_root_serves_client(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "/api/tasks" in response.text

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["has_snapshot"] is False
        assert data["last_error"] is None


class TestLogin:
    """Test POST /api/auth/login."""

    def test_login_success(self, test_client, test_settings):
        response = test_client.post("/api/auth/login", json={"password": test_settings.app_password})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["token"]

    def test_login_token_works(self, test_client, test_settings):
        token = test_client.post("/api/auth/login", json={"password": test_settings.app_password}).json()["token"]
        response = test_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_wrong_password(self, test_client):
        response = test_client.post("/api/auth/login", json={"password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid password"

    def test_missing_password(self, test_client):
        assert test_client.post("/api/auth/login", json={}).status_code == 400
        assert test_client.post("/api/auth/login", json={"password": ""}).status_code == 400

    def test_server_not_configured(self, test_app, test_settings):
        test_app.state.settings = test_settings.model_copy(update={"app_password": None})
        with TestClient(test_app) as client:
            response = client.post("/api/auth/login", json={"password": test_settings.app_password})
        assert response.status_code == 500
        assert response.json()["detail"] == "Server configuration error"


class TestTasksEndpoint:
    """Test GET /api/tasks."""

    def test_requires_token(self, test_client):
        response = test_client.get("/api/tasks")
        assert response.status_code == 401

    def test_rejects_bad_token(self, test_client):
        response = test_client.get("/api/tasks", headers={"Authorization": "Bearer forged"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_first_request_fetches(self, test_client, auth_headers, mock_todoist_client):
        response = test_client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["projects"]] == ["Inbox", "Work"]
        assert [label["name"] for label in data["labels"]] == ["urgent"]
        assert data["syncToken"] == "sync-token-1"
        assert data["fetchedAt"].startswith("2026-01-26T12:00:00")
        assert data["stale"] is False
        assert data["error"] is None
        mock_todoist_client.fetch_snapshot.assert_called_once()

    def test_task_shape(self, test_client, auth_headers):
        data = test_client.get("/api/tasks", headers=auth_headers).json()
        work = data["projects"][1]

        assert work["color_hex"] == "#4073ff"
        assert [s["name"] for s in work["sections"]] == [None, "Doing"]
        done = work["tasks"][0]
        assert done["id"] == "t-done"
        assert done["isRecentlyCompleted"] is True
        assert work["tasks"][1]["subtasks"][0]["id"] == "t-sub"

    def test_serves_cached_snapshot_without_refetch(self, test_client, auth_headers, mock_todoist_client):
        test_client.get("/api/tasks", headers=auth_headers)
        test_client.get("/api/tasks", headers=auth_headers)
        assert mock_todoist_client.fetch_snapshot.call_count == 1

    def test_refresh_param_forces_fetch(self, test_client, auth_headers, mock_todoist_client):
        test_client.get("/api/tasks", headers=auth_headers)
        test_client.get("/api/tasks", params={"refresh": "true"}, headers=auth_headers)
        assert mock_todoist_client.fetch_snapshot.call_count == 2

    def test_upstream_failure_without_snapshot(self, test_client, auth_headers, mock_todoist_client):
        mock_todoist_client.fetch_snapshot.side_effect = TodoistError("Todoist API returned 503")

        response = test_client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["detail"] == "Todoist API returned 503"

    def test_upstream_failure_serves_stale_snapshot(self, test_client, auth_headers, mock_todoist_client):
        test_client.get("/api/tasks", headers=auth_headers)
        mock_todoist_client.fetch_snapshot.side_effect = TodoistError("down")

        response = test_client.get("/api/tasks", params={"refresh": "true"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["stale"] is True
        assert data["error"] == "down"
        assert len(data["projects"]) == 2

    def test_missing_todoist_token(self, test_app, test_settings, auth_headers):
        test_app.state.settings = test_settings.model_copy(update={"todoist_api_token": None})
        with TestClient(test_app) as client:
            response = client.get("/api/tasks", headers=auth_headers)
        assert response.status_code == 500

    def test_cached_snapshot_survives_restart(self, test_settings, mock_todoist_client, session_factory, auth_headers):
        from todoview.api.app import create_app

        first = create_app(test_settings, lambda: mock_todoist_client, session_factory)
        with TestClient(first) as client:
            client.get("/api/tasks", headers=auth_headers)

        mock_todoist_client.fetch_snapshot.side_effect = TodoistError("down")
        second = create_app(test_settings, lambda: mock_todoist_client, session_factory)
        with TestClient(second) as client:
            response = client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["syncToken"] == "sync-token-1"
        assert mock_todoist_client.fetch_snapshot.call_count == 1


class TestWebhook:
    """Test POST /api/webhook."""

    def test_valid_delivery_triggers_refresh(self, test_client, test_settings, mock_todoist_client):
        raw, headers = _signed({"event_name": "item:completed", "user_id": "42", "triggered_at": "2026-01-26T12:00:00Z"}, test_settings.todoist_client_secret)

        response = test_client.post("/api/webhook", content=raw, headers=headers)

        assert response.status_code == 200
        mock_todoist_client.fetch_snapshot.assert_called_once()

    def test_bad_signature(self, test_client, mock_todoist_client):
        raw, headers = _signed({"event_name": "item:added"}, secret="wrong-secret")

        response = test_client.post("/api/webhook", content=raw, headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid signature"
        mock_todoist_client.fetch_snapshot.assert_not_called()

    def test_missing_signature(self, test_client):
        response = test_client.post("/api/webhook", content=b"{}")
        assert response.status_code == 401

    def test_invalid_json(self, test_client, test_settings):
        raw = b"not json"
        headers = {WEBHOOK_SIGNATURE_HEADER: compute_webhook_signature(raw, test_settings.todoist_client_secret)}

        response = test_client.post("/api/webhook", content=raw, headers=headers)

        assert response.status_code == 400

    def test_non_object_json(self, test_client, test_settings):
        raw = b"[1, 2]"
        headers = {WEBHOOK_SIGNATURE_HEADER: compute_webhook_signature(raw, test_settings.todoist_client_secret)}

        assert test_client.post("/api/webhook", content=raw, headers=headers).status_code == 400

    def test_secret_not_configured(self, test_app, test_settings):
        test_app.state.settings = test_settings.model_copy(update={"todoist_client_secret": None})
        raw, headers = _signed({"event_name": "item:added"}, test_settings.todoist_client_secret)
        with TestClient(test_app) as client:
            response = client.post("/api/webhook", content=raw, headers=headers)
        assert response.status_code == 500


class TestEventStream:
    """Test GET /api/events."""

    def test_requires_query_token(self, test_client):
        assert test_client.get("/api/events").status_code == 401
        assert test_client.get("/api/events", params={"token": "forged"}).status_code == 401

    def test_stream_sends_connected_then_heartbeats(self, test_client, auth_headers):
        token = auth_headers["Authorization"].split(" ", 1)[1]

        response = test_client.get("/api/events", params={"token": token})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        events = [block for block in response.text.split("\n\n") if block]
        assert events[0].startswith("event: connected\ndata: ")
        assert [e.split("\n")[0] for e in events[1:]] == ["event: heartbeat", "event: heartbeat"]
        payload = json.loads(events[1].split("data: ", 1)[1])
        assert isinstance(payload["timestamp"], int)
