"""Tests for the HTTP adapter and the service lifecycle."""
import os

import pytest
from fastapi.testclient import TestClient

from cmdgate.exceptions import StartupError
from cmdgate.main import create_app
from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import JsonAuditLog
from cmdgate.services.confirmation import CONFIRMATION_PHRASE


def logged_actions(settings):
    return [e.action for e in JsonAuditLog(settings.logs_dir).query(1000)]


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


class TestLifecycle:

    def test_startup_bootstraps_and_audits(self, settings):
        with TestClient(create_app(settings)):
            assert settings.commands_file.exists()

        # One partition, so the query returns events in write order
        assert logged_actions(settings) == [
            AuditAction.CONFIG_FILE_CREATED,
            AuditAction.CONFIG_LOADED,
            AuditAction.SERVICE_INITIALIZED,
            AuditAction.SERVICE_STARTED,
            AuditAction.SERVICE_STOPPED,
        ]

    def test_service_started_payload(self, settings):
        with TestClient(create_app(settings)):
            pass

        started = JsonAuditLog(settings.logs_dir).query(10, "service_started")[0]
        assert started.payload.version == "0.1.0"
        assert started.payload.config_file == str(settings.commands_file)
        assert started.payload.log_dir == str(settings.logs_dir)

    def test_inaccessible_registry_aborts_startup(self, settings, monkeypatch):
        """CRITICAL: the service refuses to start without read/write access."""
        monkeypatch.setattr(os, "access", lambda path, mode: False)

        with pytest.raises(StartupError):
            with TestClient(create_app(settings)):
                pass

        assert AuditAction.SERVICE_STARTED not in logged_actions(settings)

    def test_corrupt_registry_does_not_abort_startup(self, settings):
        settings.commands_file.parent.mkdir(parents=True)
        settings.commands_file.write_text("{", encoding="utf-8")

        with TestClient(create_app(settings)) as client:
            response = client.post("/api/commands/query", json={})

        assert response.json()["text"].startswith("Query failed:")

    def test_terminated_and_uncaught_are_recorded(self, settings):
        app = create_app(settings)
        with TestClient(app):
            app.state.lifecycle.terminated()
            app.state.lifecycle.record_uncaught(RuntimeError("boom"))

        actions = logged_actions(settings)
        assert AuditAction.SERVICE_TERMINATED in actions
        assert AuditAction.UNCAUGHT_EXCEPTION in actions


class TestRoutes:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "service": "Command Gateway", "port": 4321}

    def test_execute_unknown(self, client):
        response = client.post("/api/execute", json={"command": "nope"})

        assert response.status_code == 200
        assert response.json() == {"text": 'Error: Unknown command "nope"', "requiresConfirmation": False}

    def test_execute_validation(self, client):
        assert client.post("/api/execute", json={"command": ""}).status_code == 422
        assert client.post("/api/execute", json={"command": "x" * 201}).status_code == 422

    def test_dangerous_flow_over_http(self, client, settings):
        """Enable format, then see the two-step protocol without running it."""
        client.post("/api/commands/manage", json={"action": "enable", "name": "format"})

        pending = client.post("/api/execute", json={"command": "format", "args": "C:", "requestId": "r9"}).json()
        rejected = client.post(
            "/api/execute",
            json={"command": "format", "args": "C:", "confirmationToken": "please"}
        ).json()

        assert pending["requiresConfirmation"] is True
        assert CONFIRMATION_PHRASE in pending["text"]
        assert rejected == {"text": "Error: Invalid confirmation token", "requiresConfirmation": False}
        actions = logged_actions(settings)
        assert AuditAction.DANGEROUS_COMMAND_ATTEMPT in actions
        assert AuditAction.DANGEROUS_COMMAND_REJECTED in actions
        assert AuditAction.COMMAND_EXECUTED not in actions

    def test_manage_and_query(self, client):
        added = client.post("/api/commands/manage", json={
            "action": "add",
            "name": "echo",
            "description": "Print text",
            "dangerous": False,
            "confirmationPrompt": "dropped"
        }).json()
        listing = client.post("/api/commands/query", json={"filter": "all", "detailed": True}).json()

        assert added["text"] == "Added command: echo"
        assert "echo\nDescription: Print text" in listing["text"]

    def test_manage_validation(self, client):
        assert client.post("/api/commands/manage", json={"action": "explode"}).status_code == 422
        assert client.post("/api/commands/manage", json={"action": "add", "name": "x" * 51}).status_code == 422

    def test_query_logs(self, client):
        response = client.post("/api/logs/query", json={"limit": 3, "filter": "service"}).json()

        assert response["text"].startswith("Recent 2 log entries:")
        assert client.post("/api/logs/query", json={"limit": 1001}).status_code == 422

    def test_lookups(self, client):
        assert '"name": "ping"' in client.get("/api/commands").text
        assert client.get("/api/commands/ghost").text == "Command not found: ghost"
