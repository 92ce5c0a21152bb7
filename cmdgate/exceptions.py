"""Error taxonomy for the command gateway."""
from typing import Optional


class GatewayError(Exception):
    """Base class for every error raised by the gateway core."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


# Registry persistence
class ConfigError(GatewayError):
    pass


class ConfigMissing(ConfigError):
    pass


class ConfigCorrupt(ConfigError):
    pass


class RefusalError(GatewayError):
    """
    Raised when the confirmation gate blocks a request.
    This is NOT a fault - it's the gate working correctly.
    """
    reason = "refused"

    def __init__(self, message: str, command: Optional[str] = None):
        self.command = command
        super().__init__(message)


class CommandNotFound(RefusalError):
    reason = "not_found"

    def __init__(self, command: str):
        super().__init__(f'Error: Unknown command "{command}"', command=command)


class CommandDisabled(RefusalError):
    reason = "disabled"

    def __init__(self, command: str):
        super().__init__(f'Error: Command "{command}" is disabled', command=command)


class InvalidConfirmationToken(RefusalError):
    reason = "invalid_token"

    def __init__(self, command: str):
        super().__init__("Error: Invalid confirmation token", command=command)


class ExecutionError(GatewayError):
    """Process spawn failure or non-zero exit."""
    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class LogPartitionUnreadable(GatewayError):
    """A log partition could not be read; queries skip it."""
    pass


class StartupError(GatewayError):
    """Unrecoverable startup condition. The service must not start."""
    pass
