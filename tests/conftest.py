"""Pytest configuration and shared fixtures."""
from datetime import datetime, timezone

import pytest

from cmdgate.config import Settings
from cmdgate.models.domain import CommandDefinition
from cmdgate.services.audit_log import InMemoryAuditLog, JsonAuditLog
from cmdgate.services.executor import ExecutionResult
from cmdgate.services.gateway import CommandGateway
from cmdgate.services.registry import CommandRegistry

# Noon UTC keeps the local partition date stable in any timezone within +/-11h
FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StubEngine:
    """Records command lines instead of spawning processes."""

    def __init__(self, output: str = "stub output"):
        self.output = output
        self.calls = []

    async def run(self, command_line, request_id=None):
        self.calls.append(command_line)
        return ExecutionResult(output=self.output, elapsed_ms=0, exit_code=0)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def memory_audit(clock):
    """In-memory audit log for tests that only inspect events."""
    return InMemoryAuditLog(clock=clock)


@pytest.fixture
def json_audit(tmp_path, clock):
    """File-backed audit log in a fresh temporary directory."""
    return JsonAuditLog(tmp_path / "logs", clock=clock)


@pytest.fixture
def registry(tmp_path, memory_audit):
    """Registry seeded with the default commands."""
    registry = CommandRegistry(tmp_path / "config" / "commands.json", memory_audit)
    registry.ensure_exists()
    memory_audit.events.clear()
    return registry


@pytest.fixture
def shell_registry(registry):
    """Default commands plus harmless ones that run anywhere."""
    commands = registry.load()
    commands.append(CommandDefinition(name="echo", description="Print text", example="echo hi"))
    commands.append(CommandDefinition(
        name="printf",
        description="Print formatted text",
        example="printf hi",
        dangerous=True,
        enabled=True,
        confirmation_prompt="Really print?",
        consequences="Text appears on stdout"
    ))
    # Enable format so its gating can be exercised
    for command in commands:
        if command.name == "format":
            command.enabled = True
    registry.save(commands)
    registry.audit.events.clear()
    return registry


@pytest.fixture
def stub_engine():
    return StubEngine()


@pytest.fixture
def gateway(shell_registry, memory_audit, stub_engine):
    """Gateway whose engine never spawns processes."""
    return CommandGateway(shell_registry, memory_audit, engine=stub_engine)


@pytest.fixture
def live_gateway(shell_registry, memory_audit):
    """Gateway with the real execution engine."""
    return CommandGateway(shell_registry, memory_audit)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        commands_file=tmp_path / "config" / "commands.json",
        logs_dir=tmp_path / "logs",
        port=4321,
        environment="test",
        watch_config=False
    )
