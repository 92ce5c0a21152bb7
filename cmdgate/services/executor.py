"""
Execution engine for approved commands.

The command line is handed to the shell as one string: arguments are not
escaped and the process is not sandboxed, time-limited or output-limited.
Only commands that passed the confirmation gate reach this module.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from cmdgate.exceptions import ExecutionError
from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import AuditLog

logger = logging.getLogger(__name__)

NO_OUTPUT = "Command executed with no output"


@dataclass(frozen=True)
class ExecutionResult:
    output: str
    elapsed_ms: int
    exit_code: int


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ExecutionEngine:
    """Spawns shell commands and records one outcome event per run."""

    def __init__(self, audit: AuditLog):
        self.audit = audit

    async def run(self, command_line: str, request_id: Optional[str] = None) -> ExecutionResult:
        """
        Run command_line through the shell and wait for it to exit.

        Returns stdout, falling back to stderr, falling back to NO_OUTPUT.
        Raises ExecutionError when the process cannot be spawned or exits
        with a non-zero status.
        """
        started = time.monotonic()
        logger.info("Executing: %s", command_line)

        try:
            process = await asyncio.create_subprocess_shell(
                command_line,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except (OSError, ValueError) as e:
            # ValueError: the command line cannot be passed to the shell (e.g. a NUL byte)
            self._failed(command_line, str(e), started, request_id)
            raise ExecutionError(str(e)) from e

        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")

        if process.returncode != 0:
            message = f"Command failed: {command_line}\n{err}".rstrip()
            self._failed(command_line, message, started, request_id)
            raise ExecutionError(message, exit_code=process.returncode)

        elapsed = _elapsed_ms(started)
        # Only the length is logged to keep partitions bounded
        self.audit.record(
            AuditAction.COMMAND_EXECUTED,
            request_id=request_id,
            command=command_line,
            status="success",
            execution_time=elapsed,
            output_length=len(out or err)
        )
        return ExecutionResult(
            output=out or err or NO_OUTPUT,
            elapsed_ms=elapsed,
            exit_code=process.returncode
        )

    def _failed(self, command_line: str, error: str, started: float, request_id: Optional[str]) -> None:
        logger.warning("Command failed: %s", command_line)
        self.audit.record(
            AuditAction.COMMAND_FAILED,
            request_id=request_id,
            command=command_line,
            status="error",
            error=error,
            execution_time=_elapsed_ms(started)
        )
