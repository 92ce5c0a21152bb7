"""Enums for the gateway - these define the valid values for actions and filters."""
from enum import Enum


class AuditAction(str, Enum):
    """The closed vocabulary of audit event actions. No other actions are allowed."""
    # Service lifecycle
    SERVICE_STARTED = "service_started"
    SERVICE_STOPPED = "service_stopped"
    SERVICE_TERMINATED = "service_terminated"
    SERVICE_INITIALIZED = "service_initialized"
    UNCAUGHT_EXCEPTION = "uncaught_exception"

    # Registry persistence
    CONFIG_FILE_CREATED = "config_file_created"
    CONFIG_LOADED = "config_loaded"
    CONFIG_LOAD_FAILED = "config_load_failed"
    CONFIG_SAVED = "config_saved"
    CONFIG_SAVE_FAILED = "config_save_failed"
    CONFIG_FILE_CHANGED = "config_file_changed"

    # Confirmation gate
    COMMAND_NOT_FOUND = "command_not_found"
    COMMAND_DISABLED = "command_disabled"
    DANGEROUS_COMMAND_ATTEMPT = "dangerous_command_attempt"
    DANGEROUS_COMMAND_CONFIRMED = "dangerous_command_confirmed"
    DANGEROUS_COMMAND_REJECTED = "dangerous_command_rejected"

    # Execution
    COMMAND_EXECUTED = "command_executed"
    COMMAND_FAILED = "command_failed"

    # Queries
    COMMANDS_QUERIED = "commands_queried"
    QUERY_FAILED = "query_failed"
    LOGS_QUERIED = "logs_queried"
    LOG_QUERY_FAILED = "log_query_failed"

    # Management (disable shares command_disabled with the gate)
    COMMAND_ADDED = "command_added"
    COMMAND_UPDATED = "command_updated"
    COMMAND_REMOVED = "command_removed"
    COMMAND_ENABLED = "command_enabled"
    COMMAND_LISTED = "command_listed"
    MANAGEMENT_FAILED = "management_failed"


class CommandFilter(str, Enum):
    """Filters accepted by the command query."""
    ALL = "all"
    ENABLED = "enabled"
    DISABLED = "disabled"
    DANGEROUS = "dangerous"


class ManageAction(str, Enum):
    """Registry management actions."""
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    ENABLE = "enable"
    DISABLE = "disable"
    LIST = "list"
