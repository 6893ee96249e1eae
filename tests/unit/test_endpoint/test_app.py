"""Tests for the FastAPI application: REST routes and the terminal socket."""

from __future__ import annotations

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from webterminal.config.settings import ExecutorConfig, SandboxConfig, Settings
from webterminal.endpoint.server import create_app


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        sandbox=SandboxConfig(root=tmp_path / "sandboxes"),
        executor=ExecutorConfig(timeout=5.0),
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def _wait_for_history(client: TestClient, session_id: str, count: int) -> list[dict]:
    deadline = time.monotonic() + 5.0
    while True:
        records = client.get(f"/api/sessions/{session_id}/commands").json()
        if len(records) >= count or time.monotonic() > deadline:
            return records
        time.sleep(0.05)


class TestRestRoutes:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "active_connections": 0}

    def test_create_session(self, client: TestClient, settings: Settings) -> None:
        resp = client.post("/api/sessions")
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"]
        assert body["currentDirectory"] == str(settings.sandbox.root / body["id"])
        assert body["environmentVars"]["HOME"] == body["currentDirectory"]

        fetched = client.get(f"/api/sessions/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == body["id"]

    def test_unknown_session(self, client: TestClient) -> None:
        resp = client.get("/api/sessions/missing")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Session not found"}

    def test_file_tree(self, client: TestClient) -> None:
        session_id = client.post("/api/sessions").json()["id"]
        resp = client.get(f"/api/sessions/{session_id}/files")
        assert resp.status_code == 200
        nodes = resp.json()
        assert len(nodes) == 7
        assert nodes[0]["isDirectory"] is True

    def test_history_of_unknown_session_is_empty(self, client: TestClient) -> None:
        assert client.get("/api/sessions/missing/commands").json() == []

    def test_history_limit_validated(self, client: TestClient) -> None:
        assert client.get("/api/sessions/x/commands", params={"limit": 0}).status_code == 422


class TestTerminalSocket:
    def test_full_session(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json() == {"type": "connected", "data": {}}

            ws.send_json({"type": "init", "data": {"sessionId": "abc123"}})
            welcome = ws.receive_json()
            assert welcome["type"] == "output"
            assert welcome["data"]["exitCode"] == "0"
            prompt = ws.receive_json()
            assert prompt == {
                "type": "prompt",
                "data": {"user": "user", "hostname": "webterminal", "directory": "abc123"},
            }
            assert client.get("/health").json()["active_connections"] == 1

            ws.send_json({"type": "command", "data": {"command": "echo hello"}})
            assert ws.receive_json() == {
                "type": "output",
                "data": {"output": "hello\n", "exitCode": "0"},
            }

            ws.send_json({"type": "command", "data": {"command": "cd sample-project"}})
            assert ws.receive_json()["data"] == {"output": "", "exitCode": "0"}
            assert ws.receive_json()["data"]["directory"] == "sample-project"

        records = _wait_for_history(client, "abc123", 2)
        assert [r["command"] for r in records] == ["echo hello", "cd sample-project"]
        assert records[0]["exitCode"] == "0"

        session = client.get("/api/sessions/abc123").json()
        assert session["currentDirectory"].endswith("/sample-project")

    def test_malformed_and_uninitialized(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("definitely not json")
            assert ws.receive_json() == {"type": "error", "data": "Failed to process message"}
            ws.send_json({"type": "command", "data": {"command": "ls"}})
            assert ws.receive_json() == {"type": "error", "data": "Session not initialized"}

    def test_reconnect_resumes_directory(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "init", "data": {"sessionId": "resume1"}})
            ws.receive_json()
            ws.receive_json()
            ws.send_json({"type": "command", "data": {"command": "cd sample-project"}})
            ws.receive_json()
            ws.receive_json()

        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "init", "data": {"sessionId": "resume1"}})
            ws.receive_json()
            prompt = ws.receive_json()
            assert prompt["data"]["directory"] == "sample-project"
