"""Tests for the read-side operations: command queries, log queries and lookups."""
import json
from datetime import timedelta

import pytest

from cmdgate.models.enums import AuditAction
from cmdgate.services.gateway import CommandGateway


class TestQueryCommands:

    def test_default_filter_is_enabled(self, gateway, shell_registry):
        gateway.manage_command("disable", name="ping")

        response = gateway.query_commands()

        assert response.text.startswith("Available commands (enabled, 4):")
        assert "ping" not in response.text

    @pytest.mark.parametrize("command_filter, expected", [
        ("all", ["dir", "ping", "format ⚠️", "echo", "printf ⚠️"]),
        ("dangerous", ["format ⚠️", "printf ⚠️"]),
        ("disabled", []),
    ])
    def test_filters(self, gateway, command_filter, expected):
        text = gateway.query_commands(command_filter).text

        header, _, listing = text.partition("\n\n")
        assert header == f"Available commands ({command_filter}, {len(expected)}):"
        assert (listing.split("\n\n") if listing else []) == expected

    def test_disabled_marker(self, registry, memory_audit):
        gateway = CommandGateway(registry, memory_audit)

        text = gateway.query_commands("disabled").text

        assert text.endswith("format ⚠️ (disabled)")

    def test_detailed_view(self, gateway):
        text = gateway.query_commands("dangerous", detailed=True).text

        assert "format ⚠️\nDescription: Format disk drive\nExample: format C:\nConsequences: Permanent data loss" in text

    def test_detailed_safe_command_has_no_consequences(self, gateway):
        text = gateway.query_commands("all", detailed=True).text

        assert "echo\nDescription: Print text\nExample: echo hi\n\nprintf" in text

    def test_query_records_event_and_never_saves(self, gateway, shell_registry, memory_audit):
        """Querying leaves the registry untouched."""
        before = shell_registry.path.read_text(encoding="utf-8")

        gateway.query_commands("all")

        assert shell_registry.path.read_text(encoding="utf-8") == before
        assert memory_audit.actions() == [AuditAction.COMMANDS_QUERIED]
        assert memory_audit.events[0].payload.count == 5
        assert memory_audit.events[0].payload.filter == "all"

    def test_invalid_filter(self, gateway, memory_audit):
        response = gateway.query_commands("weird")

        assert response.text.startswith("Query failed:")
        assert memory_audit.actions() == [AuditAction.QUERY_FAILED]

    def test_corrupt_registry(self, gateway, shell_registry, memory_audit):
        shell_registry.path.write_text("nope", encoding="utf-8")

        assert gateway.query_commands().text.startswith("Query failed: Commands file is not valid JSON")
        assert memory_audit.actions() == [AuditAction.CONFIG_LOAD_FAILED, AuditAction.QUERY_FAILED]


class TestQueryLogs:

    @pytest.fixture
    def file_gateway(self, shell_registry, json_audit, stub_engine):
        shell_registry.audit = json_audit
        return CommandGateway(shell_registry, json_audit, engine=stub_engine)

    def test_scenario_e_limit_and_filter(self, file_gateway, json_audit, clock):
        """At most limit events, newest partition first, all matching the filter."""
        for day in range(3):
            json_audit.record(AuditAction.COMMAND_FAILED, command=f"day{day}-a", status="error", execution_time=1)
            json_audit.record(AuditAction.COMMAND_EXECUTED, command=f"day{day}-b", status="success", execution_time=1)
            json_audit.record(AuditAction.CONFIG_SAVE_FAILED, error="full")
            json_audit.record(AuditAction.COMMAND_ADDED, name=f"failed-{day}")
            clock.now = clock.now + timedelta(days=1)

        events = json_audit.query(5, "failed")
        response = file_gateway.query_logs(limit=5, text_filter="failed")

        lines = response.text.split("\n\n", 1)[1].split("\n")
        assert response.text.startswith("Recent 5 log entries:")
        assert len(lines) == 5
        assert [e.command or e.name or e.action.value for e in events] == [
            "day2-a", "config_save_failed", "failed-2", "day1-a", "config_save_failed"
        ]
        assert lines[0].endswith("[command_failed] Command: day2-a error")
        assert lines[2].endswith("[command_added] Name: failed-2 ")
        for event in events:
            assert any("failed" in (v or "") for v in (event.action.value, event.command, event.name))

    def test_logs_queried_recorded_after_scan(self, file_gateway, json_audit):
        json_audit.record(AuditAction.COMMAND_ADDED, name="x")

        first = file_gateway.query_logs(limit=10)
        second = file_gateway.query_logs(limit=10, text_filter="logs_queried")

        assert first.text.startswith("Recent 1 log entries:")
        assert second.text.startswith("Recent 1 log entries:")
        assert [e.payload.count for e in json_audit.query(10, "logs_queried")] == [1, 1]

    def test_missing_log_directory(self, file_gateway):
        assert file_gateway.query_logs().text == "No logs available - log directory not found"

    @pytest.mark.parametrize("limit", [0, 1001])
    def test_limit_bounds(self, gateway, memory_audit, limit):
        response = gateway.query_logs(limit=limit)

        assert response.text == "Log query failed: limit must be between 1 and 1000"
        assert memory_audit.actions() == [AuditAction.LOG_QUERY_FAILED]

    def test_query_failure_reported(self, gateway, memory_audit, monkeypatch):
        def broken(limit, text_filter=None):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(memory_audit, "query", broken)

        assert gateway.query_logs().text == "Log query failed: disk on fire"
        assert memory_audit.actions() == [AuditAction.LOG_QUERY_FAILED]


class TestLookups:

    def test_list_commands_returns_full_records(self, gateway):
        records = json.loads(gateway.list_commands().text)

        assert [r["name"] for r in records] == ["dir", "ping", "format", "echo", "printf"]
        assert records[2]["consequences"] == "Permanent data loss"

    def test_get_command(self, gateway):
        record = json.loads(gateway.get_command("printf").text)

        assert record["dangerous"] is True
        assert record["confirmationPrompt"] == "Really print?"

    def test_get_unknown_command(self, gateway):
        assert gateway.get_command("ghost").text == "Command not found: ghost"

    def test_lookups_write_no_events(self, gateway, memory_audit):
        gateway.list_commands()
        gateway.get_command("dir")

        assert memory_audit.events == []
