"""
Confirmation gate for registered commands.

This is the core enforcement mechanism - every execution request MUST pass
through evaluate() before a process is spawned.
"""
from dataclasses import dataclass
from typing import Optional, Union

from cmdgate.exceptions import CommandDisabled, CommandNotFound, InvalidConfirmationToken
from cmdgate.models.domain import CommandDefinition
from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import AuditLog

# Global shared phrase. Any holder can confirm any dangerous command.
CONFIRMATION_PHRASE = "I understand the risks and confirm execution"


@dataclass(frozen=True)
class Allowed:
    """The command may run. confirmed is set when a token was accepted."""
    confirmed: bool = False


@dataclass(frozen=True)
class PendingConfirmation:
    """A dangerous command was requested without a token."""
    command: str
    description: str
    confirmation_prompt: str
    consequences: str

    def message(self) -> str:
        return (
            "⚠️ DANGEROUS COMMAND WARNING ⚠️\n\n"
            f"Command: {self.command}\n"
            f"Description: {self.description}\n"
            f"Potential Consequences: {self.consequences}\n\n"
            f"Safety Confirmation: {self.confirmation_prompt}\n\n"
            f'To execute, include: "confirmationToken":"{CONFIRMATION_PHRASE}"'
        )


Decision = Union[Allowed, PendingConfirmation]


class ConfirmationGate:
    """Decides whether a request may run, and audits every non-trivial decision."""

    def __init__(self, audit: AuditLog):
        self.audit = audit

    def evaluate(
        self,
        name: str,
        entry: Optional[CommandDefinition],
        token: Optional[str] = None,
        command_line: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> Decision:
        """
        Classify a request for the registry entry matching name.

        Refusal invariants:
        - Unknown and disabled commands are blocked, whatever the token
        - A dangerous command without a token is never allowed; the caller
          gets the prompt and the phrase to resupply
        - A token that is not exactly the phrase is rejected
        - Each blocked, pending or confirmed outcome writes exactly one
          audit event before returning or raising

        Raises CommandNotFound, CommandDisabled or InvalidConfirmationToken
        for blocked requests.
        """
        command_line = command_line or name

        if entry is None:
            self.audit.record(AuditAction.COMMAND_NOT_FOUND, request_id=request_id, command=name)
            raise CommandNotFound(name)

        if not entry.enabled:
            self.audit.record(AuditAction.COMMAND_DISABLED, request_id=request_id, command=name)
            raise CommandDisabled(name)

        if not entry.dangerous:
            return Allowed()

        if not token:
            self.audit.record(
                AuditAction.DANGEROUS_COMMAND_ATTEMPT,
                request_id=request_id,
                command=command_line
            )
            return PendingConfirmation(
                command=name,
                description=entry.description,
                confirmation_prompt=entry.confirmation_prompt,
                consequences=entry.consequences
            )

        if token != CONFIRMATION_PHRASE:
            self.audit.record(
                AuditAction.DANGEROUS_COMMAND_REJECTED,
                request_id=request_id,
                command=command_line,
                reason="invalid_confirmation_token"
            )
            raise InvalidConfirmationToken(name)

        self.audit.record(
            AuditAction.DANGEROUS_COMMAND_CONFIRMED,
            request_id=request_id,
            command=command_line
        )
        return Allowed(confirmed=True)
