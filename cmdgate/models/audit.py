"""
Audit event model.

An event is an immutable envelope (timestamp, action, pid) plus one payload.
Each action maps to exactly one payload kind, so the set of event shapes is
closed: a payload rejects fields it does not declare. On disk an event is a
single flat JSON object (envelope fields followed by the payload fields).
"""
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from cmdgate.models.enums import AuditAction


class EventPayload(BaseModel):
    """Fields shared by every payload kind."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    request_id: Optional[str] = Field(None, alias="requestId")


class ServicePayload(EventPayload):
    version: Optional[str] = None
    config_file: Optional[str] = Field(None, alias="configFile")
    log_dir: Optional[str] = Field(None, alias="logDir")
    code: Optional[int] = None


class ErrorPayload(EventPayload):
    error: Optional[str] = None


class ConfigPayload(EventPayload):
    file: Optional[str] = None
    count: Optional[int] = None
    error: Optional[str] = None
    event_type: Optional[str] = Field(None, alias="eventType")


class GatePayload(EventPayload):
    # command_disabled is shared by the gate (command) and management (name)
    command: Optional[str] = None
    name: Optional[str] = None
    reason: Optional[str] = None


class ExecutionPayload(EventPayload):
    command: str
    status: str
    execution_time: int = Field(..., alias="executionTime")
    output_length: Optional[int] = Field(None, alias="outputLength")
    error: Optional[str] = None


class ManagementPayload(EventPayload):
    name: Optional[str] = None
    # Stored as manageAction so it cannot shadow the envelope action
    action: Optional[str] = Field(None, alias="manageAction")
    dangerous: Optional[bool] = None
    enabled: Optional[bool] = None
    was_dangerous: Optional[bool] = Field(None, alias="wasDangerous")
    changes: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ListingPayload(EventPayload):
    total: int
    enabled: int
    dangerous: int


class QueryPayload(EventPayload):
    filter: Optional[str] = None
    count: Optional[int] = None
    error: Optional[str] = None


PAYLOAD_TYPES: Dict[AuditAction, Type[EventPayload]] = {
    AuditAction.SERVICE_STARTED: ServicePayload,
    AuditAction.SERVICE_STOPPED: ServicePayload,
    AuditAction.SERVICE_TERMINATED: ServicePayload,
    AuditAction.SERVICE_INITIALIZED: ServicePayload,
    AuditAction.UNCAUGHT_EXCEPTION: ErrorPayload,
    AuditAction.CONFIG_FILE_CREATED: ConfigPayload,
    AuditAction.CONFIG_LOADED: ConfigPayload,
    AuditAction.CONFIG_LOAD_FAILED: ConfigPayload,
    AuditAction.CONFIG_SAVED: ConfigPayload,
    AuditAction.CONFIG_SAVE_FAILED: ConfigPayload,
    AuditAction.CONFIG_FILE_CHANGED: ConfigPayload,
    AuditAction.COMMAND_NOT_FOUND: GatePayload,
    AuditAction.COMMAND_DISABLED: GatePayload,
    AuditAction.DANGEROUS_COMMAND_ATTEMPT: GatePayload,
    AuditAction.DANGEROUS_COMMAND_CONFIRMED: GatePayload,
    AuditAction.DANGEROUS_COMMAND_REJECTED: GatePayload,
    AuditAction.COMMAND_EXECUTED: ExecutionPayload,
    AuditAction.COMMAND_FAILED: ExecutionPayload,
    AuditAction.COMMANDS_QUERIED: QueryPayload,
    AuditAction.QUERY_FAILED: QueryPayload,
    AuditAction.LOGS_QUERIED: QueryPayload,
    AuditAction.LOG_QUERY_FAILED: QueryPayload,
    AuditAction.COMMAND_ADDED: ManagementPayload,
    AuditAction.COMMAND_UPDATED: ManagementPayload,
    AuditAction.COMMAND_REMOVED: ManagementPayload,
    AuditAction.COMMAND_ENABLED: ManagementPayload,
    AuditAction.COMMAND_LISTED: ListingPayload,
    AuditAction.MANAGEMENT_FAILED: ManagementPayload,
}

ENVELOPE_FIELDS = ("timestamp", "action", "pid")


@dataclass(frozen=True)
class AuditEvent:
    """
    Immutable audit event.

    Invariants:
    - Once written, never edited or deleted
    - payload is the kind registered for action in PAYLOAD_TYPES
    """
    timestamp: str
    action: AuditAction
    pid: int
    payload: EventPayload

    @classmethod
    def create(
        cls,
        kind: AuditAction,
        timestamp: Optional[datetime] = None,
        **fields: Any
    ) -> "AuditEvent":
        """Build an event stamped now (UTC) for the current process."""
        action = AuditAction(kind)
        moment = timestamp or datetime.now(timezone.utc)
        payload = PAYLOAD_TYPES[action](**fields)
        return cls(
            timestamp=moment.isoformat(),
            action=action,
            pid=os.getpid(),
            payload=payload
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AuditEvent":
        """
        Rebuild an event from its on-disk form.

        Raises ValueError (or a pydantic ValidationError, which subclasses it)
        when the record does not describe a known event.
        """
        if not isinstance(record, dict):
            raise ValueError("Audit record is not an object")
        fields = {k: v for k, v in record.items() if k not in ENVELOPE_FIELDS}
        action = AuditAction(record.get("action"))
        return cls(
            timestamp=str(record.get("timestamp", "")),
            action=action,
            pid=int(record.get("pid", 0)),
            payload=PAYLOAD_TYPES[action].model_validate(fields)
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "action": self.action.value,
            "pid": self.pid,
        }
        record.update(self.payload.model_dump(by_alias=True, exclude_none=True))
        return record

    # Fields used by log filtering and formatting
    @property
    def command(self) -> Optional[str]:
        return getattr(self.payload, "command", None)

    @property
    def name(self) -> Optional[str]:
        return getattr(self.payload, "name", None)

    @property
    def status(self) -> Optional[str]:
        return getattr(self.payload, "status", None)

    def summary(self) -> str:
        """One-line summary: timestamp [action] Command:/Name: ... status (trailing blanks kept)"""
        if self.command:
            subject = f"Command: {self.command}"
        elif self.name:
            subject = f"Name: {self.name}"
        else:
            subject = ""
        return f"{self.timestamp} [{self.action.value}] {subject} {self.status or ''}"
