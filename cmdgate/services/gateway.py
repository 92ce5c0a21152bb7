"""
Gateway facade - the operations exposed to the transport layer.

Every operation reloads the registry from disk, writes its audit events and
answers with a single text block. Known failures become descriptive text;
anything unexpected is logged as critical and answered generically.
"""
import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from cmdgate.exceptions import ConfigError, ExecutionError, RefusalError
from cmdgate.models.domain import (
    DEFAULT_CONFIRMATION_PROMPT,
    DEFAULT_CONSEQUENCES,
    CommandDefinition,
)
from cmdgate.models.enums import AuditAction, CommandFilter, ManageAction
from cmdgate.services.audit_log import AuditLog
from cmdgate.services.confirmation import ConfirmationGate, PendingConfirmation
from cmdgate.services.executor import ExecutionEngine
from cmdgate.services.registry import CommandRegistry, find_command

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Error: request could not be processed"
SAVE_FAILED_MESSAGE = "Operation succeeded but failed to save config"
NAME_REQUIRED_MESSAGE = "Error: Command name is required"
MAX_LOG_LIMIT = 1000

FILTERS: Dict[CommandFilter, Callable[[CommandDefinition], bool]] = {
    CommandFilter.ALL: lambda c: True,
    CommandFilter.ENABLED: lambda c: c.enabled,
    CommandFilter.DISABLED: lambda c: not c.enabled,
    CommandFilter.DANGEROUS: lambda c: c.dangerous,
}


@dataclass(frozen=True)
class GatewayResponse:
    text: str
    requires_confirmation: bool = False


def describe_command(command: CommandDefinition, detailed: bool = False) -> str:
    info = f"{command.name}{' ⚠️' if command.dangerous else ''}{'' if command.enabled else ' (disabled)'}"
    if detailed:
        info += f"\nDescription: {command.description}\nExample: {command.example}"
        if command.dangerous:
            info += f"\nConsequences: {command.consequences}"
    return info


class CommandGateway:
    """Composes registry, gate, engine and audit log into the public operations."""

    def __init__(
        self,
        registry: CommandRegistry,
        audit: AuditLog,
        gate: Optional[ConfirmationGate] = None,
        engine: Optional[ExecutionEngine] = None
    ):
        self.registry = registry
        self.audit = audit
        self.gate = gate or ConfirmationGate(audit)
        self.engine = engine or ExecutionEngine(audit)

    def _unexpected(self, operation: str, error: Exception) -> GatewayResponse:
        logger.critical("Unexpected failure in %s", operation, exc_info=error)
        self.audit.record(AuditAction.UNCAUGHT_EXCEPTION, error=f"{operation}: {error}")
        return GatewayResponse(GENERIC_FAILURE)

    # Execution
    async def execute(
        self,
        command: str,
        args: Optional[str] = None,
        confirmation_token: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> GatewayResponse:
        """
        Run a registered command.

        Dangerous commands need a second call carrying the confirmation
        phrase; the first call answers with requires_confirmation set.
        """
        command_line = f"{command} {args}" if args else command

        try:
            commands = self.registry.load()
            entry = find_command(commands, command)
            decision = self.gate.evaluate(
                command,
                entry,
                token=confirmation_token,
                command_line=command_line,
                request_id=request_id
            )
            if isinstance(decision, PendingConfirmation):
                return GatewayResponse(decision.message(), requires_confirmation=True)

            result = await self.engine.run(command_line, request_id=request_id)
            return GatewayResponse(result.output)
        except RefusalError as e:
            return GatewayResponse(e.message)
        except ExecutionError as e:
            # Already recorded by the engine
            return GatewayResponse(f"Error: {e.message}")
        except ConfigError as e:
            self.audit.record(
                AuditAction.COMMAND_FAILED,
                request_id=request_id,
                command=command_line,
                status="error",
                error=e.message,
                execution_time=0
            )
            return GatewayResponse(f"Error: {e.message}")
        except Exception as e:
            return self._unexpected("execute", e)

    # Queries
    def query_commands(
        self,
        filter: Union[CommandFilter, str] = CommandFilter.ENABLED,
        detailed: bool = False,
        request_id: Optional[str] = None
    ) -> GatewayResponse:
        try:
            command_filter = CommandFilter(filter)
            selected = [c for c in self.registry.load() if FILTERS[command_filter](c)]
            listing = "\n\n".join(describe_command(c, detailed) for c in selected)

            self.audit.record(
                AuditAction.COMMANDS_QUERIED,
                request_id=request_id,
                filter=command_filter.value,
                count=len(selected)
            )
            return GatewayResponse(
                f"Available commands ({command_filter.value}, {len(selected)}):\n\n{listing}"
            )
        except (ConfigError, ValueError) as e:
            error = e.message if isinstance(e, ConfigError) else str(e)
            self.audit.record(AuditAction.QUERY_FAILED, request_id=request_id, error=error)
            return GatewayResponse(f"Query failed: {error}")
        except Exception as e:
            return self._unexpected("queryCommands", e)

    def query_logs(
        self,
        limit: int = 100,
        text_filter: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> GatewayResponse:
        """Newest partitions first; within a partition, events keep write order."""
        try:
            if not 1 <= limit <= MAX_LOG_LIMIT:
                error = f"limit must be between 1 and {MAX_LOG_LIMIT}"
                self.audit.record(AuditAction.LOG_QUERY_FAILED, request_id=request_id, error=error)
                return GatewayResponse(f"Log query failed: {error}")

            if not self.audit.available:
                return GatewayResponse("No logs available - log directory not found")

            events = self.audit.query(limit, text_filter)

            self.audit.record(
                AuditAction.LOGS_QUERIED,
                request_id=request_id,
                count=len(events),
                filter=text_filter
            )
            lines = "\n".join(e.summary() for e in events)
            return GatewayResponse(f"Recent {len(events)} log entries:\n\n{lines}")
        except Exception as e:
            logger.error("Log query failed: %s", e)
            self.audit.record(AuditAction.LOG_QUERY_FAILED, request_id=request_id, error=str(e))
            return GatewayResponse(f"Log query failed: {e}")

    # Read-only lookups
    def list_commands(self) -> GatewayResponse:
        try:
            commands = self.registry.load()
        except ConfigError as e:
            return GatewayResponse(f"Error loading commands: {e.message}")
        return GatewayResponse(json.dumps([c.to_record() for c in commands], indent=2, ensure_ascii=False))

    def get_command(self, name: str) -> GatewayResponse:
        try:
            entry = find_command(self.registry.load(), name)
        except ConfigError as e:
            return GatewayResponse(f"Error loading command: {e.message}")
        if entry is None:
            return GatewayResponse(f"Command not found: {name}")
        return GatewayResponse(json.dumps(entry.to_record(), indent=2, ensure_ascii=False))

    # Management
    def manage_command(
        self,
        action: Union[ManageAction, str],
        name: Optional[str] = None,
        description: Optional[str] = None,
        example: Optional[str] = None,
        dangerous: Optional[bool] = None,
        confirmation_prompt: Optional[str] = None,
        consequences: Optional[str] = None,
        enabled: Optional[bool] = None,
        request_id: Optional[str] = None
    ) -> GatewayResponse:
        """
        Apply one management action to the registry.

        Invariants:
        - Names are unique; add refuses an existing name
        - update/remove/enable/disable refuse unknown names
        - A safe command never keeps a prompt or consequences
        - The registry is saved only when it was mutated
        """
        try:
            try:
                manage_action = ManageAction(action)
            except ValueError:
                return GatewayResponse(f'Error: Unknown action "{action}"')

            commands = self.registry.load()
            fields = {
                "description": description,
                "example": example,
                "dangerous": dangerous,
                "confirmation_prompt": confirmation_prompt,
                "consequences": consequences,
                "enabled": enabled,
            }

            if manage_action == ManageAction.LIST:
                message, updated = self._list(commands, request_id), False
            elif not name:
                message, updated = NAME_REQUIRED_MESSAGE, False
            else:
                handler = getattr(self, f"_{manage_action.value}")
                message, updated = handler(commands, name, fields, request_id)

            if updated and not self.registry.save(commands):
                message = SAVE_FAILED_MESSAGE

            return GatewayResponse(message)
        except ConfigError as e:
            return self._management_failed(action, e.message, request_id)
        except ValueError as e:
            return self._management_failed(action, str(e), request_id)
        except Exception as e:
            return self._unexpected("manageCommand", e)

    def _management_failed(self, action, error: str, request_id: Optional[str]) -> GatewayResponse:
        action = getattr(action, "value", action)
        self.audit.record(AuditAction.MANAGEMENT_FAILED, request_id=request_id, action=action, error=error)
        return GatewayResponse(f"Management operation failed: {error}")

    def _add(self, commands: List[CommandDefinition], name: str, fields: dict, request_id) -> Tuple[str, bool]:
        if find_command(commands, name):
            return f'Error: Command "{name}" already exists', False

        is_dangerous = bool(fields["dangerous"])
        command = CommandDefinition(
            name=name,
            description=fields["description"] or "No description",
            example=fields["example"] or "No example",
            dangerous=is_dangerous,
            enabled=fields["enabled"] if fields["enabled"] is not None else not is_dangerous,
            confirmation_prompt=fields["confirmation_prompt"] or DEFAULT_CONFIRMATION_PROMPT,
            consequences=fields["consequences"] or DEFAULT_CONSEQUENCES,
        )
        commands.append(command)
        self.audit.record(
            AuditAction.COMMAND_ADDED,
            request_id=request_id,
            name=name,
            dangerous=command.dangerous,
            enabled=command.enabled
        )
        return f"Added command: {name}", True

    def _update(self, commands: List[CommandDefinition], name: str, fields: dict, request_id) -> Tuple[str, bool]:
        entry = find_command(commands, name)
        if entry is None:
            return f'Error: Command "{name}" not found', False

        changes = {k: v for k, v in fields.items() if v is not None}
        data = entry.model_dump()
        data.update(changes)

        # A command turned dangerous without a prompt gets the defaults
        if data["dangerous"]:
            data["confirmation_prompt"] = data["confirmation_prompt"] or DEFAULT_CONFIRMATION_PROMPT
            data["consequences"] = data["consequences"] or DEFAULT_CONSEQUENCES

        commands[commands.index(entry)] = CommandDefinition.model_validate(data)

        self.audit.record(
            AuditAction.COMMAND_UPDATED,
            request_id=request_id,
            name=name,
            changes={CommandDefinition.model_fields[k].alias or k: v for k, v in changes.items()}
        )
        return f"Updated command: {name}", True

    def _remove(self, commands: List[CommandDefinition], name: str, fields: dict, request_id) -> Tuple[str, bool]:
        entry = find_command(commands, name)
        if entry is None:
            return f'Error: Command "{name}" not found', False

        commands.remove(entry)
        self.audit.record(
            AuditAction.COMMAND_REMOVED,
            request_id=request_id,
            name=name,
            was_dangerous=entry.dangerous
        )
        return f"Removed command: {name}", True

    def _set_enabled(self, commands: List[CommandDefinition], name: str, enabled: bool, request_id) -> Tuple[str, bool]:
        entry = find_command(commands, name)
        if entry is None:
            return f'Error: Command "{name}" not found', False

        entry.enabled = enabled
        if enabled:
            self.audit.record(AuditAction.COMMAND_ENABLED, request_id=request_id, name=name)
            return f"Enabled command: {name}", True
        self.audit.record(AuditAction.COMMAND_DISABLED, request_id=request_id, name=name)
        return f"Disabled command: {name}", True

    def _enable(self, commands, name, fields, request_id) -> Tuple[str, bool]:
        return self._set_enabled(commands, name, True, request_id)

    def _disable(self, commands, name, fields, request_id) -> Tuple[str, bool]:
        return self._set_enabled(commands, name, False, request_id)

    def _list(self, commands: List[CommandDefinition], request_id) -> str:
        enabled_count = sum(1 for c in commands if c.enabled)
        dangerous_count = sum(1 for c in commands if c.dangerous)
        self.audit.record(
            AuditAction.COMMAND_LISTED,
            request_id=request_id,
            total=len(commands),
            enabled=enabled_count,
            dangerous=dangerous_count
        )
        return f"Total commands: {len(commands)}\nEnabled: {enabled_count}\nDangerous: {dangerous_count}"
