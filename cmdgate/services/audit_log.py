"""
Append-only, date-partitioned audit log.

The gateway talks to the log through the AuditLog interface so components can
be exercised against InMemoryAuditLog in tests.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from cmdgate.exceptions import LogPartitionUnreadable
from cmdgate.models.audit import AuditEvent
from cmdgate.models.enums import AuditAction
from cmdgate.services.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def matches_filter(event: AuditEvent, text_filter: Optional[str]) -> bool:
    """True when action, command or name contains the filter substring."""
    if not text_filter:
        return True
    return any(
        value and text_filter in value
        for value in (event.action.value, event.command, event.name)
    )


class AuditLog:
    """Interface of the audit log collaborator."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now

    @property
    def available(self) -> bool:
        """Whether there is any stored log to query."""
        return True

    def append(self, event: AuditEvent) -> None:
        raise NotImplementedError

    def query(self, limit: int, text_filter: Optional[str] = None) -> List[AuditEvent]:
        raise NotImplementedError

    def record(self, kind: AuditAction, **fields) -> AuditEvent:
        """
        Build an event stamped by this log's clock and append it.

        kind is the event action; fields (which may include a payload field
        named action) go to the payload.
        """
        event = AuditEvent.create(kind, timestamp=self.clock(), **fields)
        self.append(event)
        return event


class JsonAuditLog(AuditLog):
    """
    One JSON array file per local calendar day, named YYYY-MM-DD.json.

    Invariants:
    - A partition is only ever appended to, never truncated or reordered
    - A partition that cannot be parsed is left as is; the new event is
      reported on standard error instead
    - A failed write never propagates to the caller

    Each append reads the whole partition, appends and rewrites it, so its
    cost grows with the partition. Two processes appending to the same
    partition can overwrite each other's events; within one process all
    appends run on the event loop thread.
    """

    def __init__(self, log_dir: Path, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.log_dir = Path(log_dir)

    @property
    def available(self) -> bool:
        return self.log_dir.is_dir()

    def partition_path(self, moment: datetime) -> Path:
        # Partitions follow the local date at write time
        local_date = moment.astimezone().date() if moment.tzinfo else moment.date()
        return self.log_dir / f"{local_date.isoformat()}.json"

    def append(self, event: AuditEvent) -> None:
        partition = self.partition_path(self.clock())
        try:
            events = read_json(partition, default=[])
            if not isinstance(events, list):
                raise ValueError(f"{partition.name} does not hold an event list")
            events.append(event.to_record())
            write_json_atomic(partition, events)
        except (OSError, ValueError) as e:
            logger.error("Log write failed for %s event: %s", event.action.value, e)

    def partitions(self) -> List[Path]:
        """Partition files, newest first."""
        if not self.available:
            return []
        return sorted(self.log_dir.glob("*.json"), reverse=True)

    def read_partition(self, partition: Path) -> List[AuditEvent]:
        """
        Load every valid event of one partition.

        Raises LogPartitionUnreadable when the file cannot be read or is not
        an event list. Individual malformed records are skipped.
        """
        try:
            records = read_json(partition, default=[])
        except (OSError, ValueError) as e:
            raise LogPartitionUnreadable(f"Error reading log file {partition}: {e}") from e
        if not isinstance(records, list):
            raise LogPartitionUnreadable(f"Error reading log file {partition}: not an event list")

        events = []
        for index, record in enumerate(records):
            try:
                events.append(AuditEvent.from_record(record))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed record %d in %s: %s", index, partition.name, e)
        return events

    def query(self, limit: int, text_filter: Optional[str] = None) -> List[AuditEvent]:
        found: List[AuditEvent] = []
        for partition in self.partitions():
            try:
                events = self.read_partition(partition)
            except LogPartitionUnreadable as e:
                logger.warning("%s", e.message)
                continue

            found.extend(e for e in events if matches_filter(e, text_filter))
            if len(found) >= limit:
                break

        return found[:limit]


class InMemoryAuditLog(AuditLog):
    """List-backed audit log for tests and embedding."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.events: List[AuditEvent] = []

    def append(self, event: AuditEvent) -> None:
        self.events.append(event)

    def query(self, limit: int, text_filter: Optional[str] = None) -> List[AuditEvent]:
        return [e for e in self.events if matches_filter(e, text_filter)][:limit]

    def actions(self) -> List[AuditAction]:
        return [e.action for e in self.events]
