"""
Command registry persisted as a single JSON array file.

The registry is never cached: every caller loads it, mutates the returned
list and saves it back as a whole.
"""
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from cmdgate.exceptions import ConfigCorrupt, ConfigError, ConfigMissing
from cmdgate.models.domain import DEFAULT_COMMANDS, CommandDefinition
from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import AuditLog
from cmdgate.services.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


def find_command(commands: Iterable[CommandDefinition], name: str) -> Optional[CommandDefinition]:
    return next((c for c in commands if c.name == name), None)


class CommandRegistry:
    """Load/mutate/save access to the durable command definitions."""

    def __init__(self, path: Path, audit: AuditLog):
        self.path = Path(path)
        self.audit = audit

    def exists(self) -> bool:
        return self.path.exists()

    def ensure_exists(self) -> bool:
        """
        Seed the registry with the default commands if the file is absent.

        Returns True when the file was created.
        """
        if self.exists():
            return False

        write_json_atomic(self.path, [c.to_record() for c in DEFAULT_COMMANDS])
        logger.info("Created new commands file at: %s", self.path)
        self.audit.record(AuditAction.CONFIG_FILE_CREATED, file=str(self.path))
        return True

    def verify_access(self) -> bool:
        """Check read and write permission on the registry file."""
        if os.access(self.path, os.R_OK | os.W_OK):
            return True
        logger.error("Cannot access commands file: %s", self.path)
        return False

    def load(self) -> List[CommandDefinition]:
        """
        Read every command definition, in stored order.

        Raises ConfigMissing when the file is absent and ConfigCorrupt when it
        is not a JSON array of valid definitions.
        """
        try:
            return self._read()
        except ConfigError as e:
            self.audit.record(AuditAction.CONFIG_LOAD_FAILED, error=e.message)
            raise

    def _read(self) -> List[CommandDefinition]:
        if not self.exists():
            raise ConfigMissing(f"Commands file not found at {self.path}")

        try:
            data = read_json(self.path)
        except ValueError as e:
            raise ConfigCorrupt(f"Commands file is not valid JSON: {e}") from e
        except OSError as e:
            raise ConfigCorrupt(f"Commands file could not be read: {e}") from e

        if not isinstance(data, list):
            raise ConfigCorrupt("Invalid command config format")

        try:
            return [CommandDefinition.model_validate(item) for item in data]
        except ValidationError as e:
            raise ConfigCorrupt(f"Invalid command definition: {e}") from e

    def save(self, commands: List[CommandDefinition]) -> bool:
        """
        Persist the full list with write-to-temporary-then-replace.

        Returns False instead of raising when the write fails, so callers can
        report an operation that was applied but not persisted.
        """
        try:
            write_json_atomic(self.path, [c.to_record() for c in commands])
        except OSError as e:
            logger.error("Failed to save commands file %s: %s", self.path, e)
            self.audit.record(AuditAction.CONFIG_SAVE_FAILED, error=str(e))
            return False

        self.audit.record(AuditAction.CONFIG_SAVED, count=len(commands))
        return True
