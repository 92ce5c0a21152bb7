"""
Commands file watcher.

Uses watchdog to report changes of the registry file as config_file_changed
audit events. The watchdog thread never writes the audit log itself: events
are handed to the event loop, which stays the single writer.
"""
import asyncio
import logging
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cmdgate.models.enums import AuditAction
from cmdgate.services.audit_log import AuditLog

logger = logging.getLogger(__name__)


class CommandsFileHandler(FileSystemEventHandler):
    """Forwards events touching the commands file, ignores the rest of the directory."""

    def __init__(self, path: Path, audit: AuditLog, loop: asyncio.AbstractEventLoop):
        self.path = Path(path)
        self.audit = audit
        self.loop = loop

    def _touches_commands_file(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and Path(str(p)) == self.path for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed", "closed_no_write"):
            return
        if not self._touches_commands_file(event):
            return

        logger.info("Commands file %s detected", event.event_type)
        if not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.record_change, event.event_type)

    def record_change(self, event_type: str) -> None:
        self.audit.record(AuditAction.CONFIG_FILE_CHANGED, event_type=event_type)


class CommandsFileWatcher:
    """Owns the watchdog observer for the commands file directory."""

    def __init__(self, path: Path, audit: AuditLog):
        self.path = Path(path)
        self.audit = audit
        self._observer = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        if self.running:
            return
        handler = CommandsFileHandler(self.path, self.audit, loop)
        observer = Observer()
        observer.schedule(handler, str(self.path.parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching commands file %s", self.path)

    def stop(self) -> None:
        if not self.running:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
