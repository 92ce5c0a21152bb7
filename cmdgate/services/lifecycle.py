"""Service startup, shutdown and process-level audit events."""
import asyncio
import logging
import sys
from typing import Optional

from cmdgate.config import VERSION, Settings
from cmdgate.exceptions import ConfigError, StartupError
from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import AuditLog
from cmdgate.services.registry import CommandRegistry
from cmdgate.services.watcher import CommandsFileWatcher

logger = logging.getLogger(__name__)


class ServiceLifecycle:
    """
    Drives the service through startup and shutdown.

    Startup invariants:
    - The commands file exists (seeded with defaults on first run) before
      any request is served
    - An inaccessible commands file aborts startup
    """

    def __init__(self, settings: Settings, registry: CommandRegistry, audit: AuditLog):
        self.settings = settings
        self.registry = registry
        self.audit = audit
        self.watcher = CommandsFileWatcher(registry.path, audit)

    def startup(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Bootstrap the registry and verify it is usable.

        Raises StartupError when the commands file cannot be created or
        accessed.
        """
        logger.info(
            "Starting service with commands file %s, logs directory %s",
            self.registry.path,
            self.settings.logs_dir
        )
        try:
            self.registry.ensure_exists()
        except OSError as e:
            logger.critical("Fatal: Cannot create commands file: %s", e)
            raise StartupError(f"Cannot create commands file: {e}") from e

        if not self.registry.verify_access():
            logger.critical("Fatal: Cannot access commands file")
            raise StartupError(f"Cannot access commands file: {self.registry.path}")

        # A corrupt file is reported per request, it does not stop the service
        try:
            commands = self.registry.load()
            self.audit.record(AuditAction.CONFIG_LOADED, file=str(self.registry.path), count=len(commands))
        except ConfigError as e:
            logger.error("Commands file could not be loaded: %s", e.message)

        self.audit.record(AuditAction.SERVICE_INITIALIZED)

        if loop is not None and self.settings.watcher_enabled:
            self.watcher.start(loop)

    def started(self) -> None:
        logger.info("Service ready on port %s", self.settings.port)
        self.audit.record(
            AuditAction.SERVICE_STARTED,
            version=VERSION,
            config_file=str(self.registry.path),
            log_dir=str(self.settings.logs_dir)
        )

    def shutdown(self, code: int = 0) -> None:
        self.watcher.stop()
        self.audit.record(AuditAction.SERVICE_STOPPED, code=code)

    def terminated(self) -> None:
        self.audit.record(AuditAction.SERVICE_TERMINATED)

    def record_uncaught(self, error: BaseException) -> None:
        logger.critical("Critical error: %s", error, exc_info=error)
        self.audit.record(AuditAction.UNCAUGHT_EXCEPTION, error=str(error))

    def install_excepthook(self) -> None:
        """Record exceptions that escape to the interpreter before the default hook runs."""
        previous = sys.excepthook

        def hook(exc_type, exc, tb):
            if not issubclass(exc_type, KeyboardInterrupt):
                self.audit.record(AuditAction.UNCAUGHT_EXCEPTION, error=str(exc))
            previous(exc_type, exc, tb)

        sys.excepthook = hook
