"""
Pure data models — no network, caldav or icalendar imports.
"""

from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG = Path.home() / ".config/outlook-ical-sync.conf"
DEFAULT_CALDAV_URL = "https://caldav.icloud.com/"

BUSY = "BUSY"
FREE = "FREE"
OOF = "OOF"


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""

    pass


class NormalizationError(CalendarSyncError):
    """A provider event lacks a field required to build a canonical event."""

    pass


class SerializationError(CalendarSyncError):
    """A canonical event could not be rendered as iCal text."""

    pass


class StoreError(CalendarSyncError):
    """A CalDAV create/update/delete/list call failed."""

    pass


class ProviderError(CalendarSyncError):
    """The Outlook (Graph) event download failed."""

    pass


@dataclass
class Organizer:
    name: str | None
    email: str | None


@dataclass
class Alarm:
    """A display reminder fired ``minutes`` before (or after) the start."""

    minutes: int
    action: str = "display"
    before: bool = True
    repeat: int = 0


@dataclass
class CanonicalEvent:
    """Provider-independent event, ready to be serialized for the destination."""

    uid: str
    title: str
    description: str | None
    start: list[int]  # [Y, M, D] for all-day events, [Y, M, D, h, m] otherwise
    end: list[int]
    location: str | None = None
    url: str | None = None
    organizer: Organizer | None = None
    busy_status: str = BUSY
    alarms: list[Alarm] | None = None

    @property
    def all_day(self) -> bool:
        return len(self.start) == 3


@dataclass
class RemoteObject:
    """An entry of the destination calendar as listed at the start of a run."""

    url: str
    data: str | None
    native: Any = None


@dataclass
class ProcessOptions:
    """Selection/conversion options (the ``[process]`` config section)."""

    allday: bool = False
    alarm: int | None = None
    select: tuple[str, ...] = ("busy",)


@dataclass
class SyncConfig:
    """Configuration for calendar sync operation."""

    calendar_name: str
    username: str
    password: str
    access_token: str
    caldav_url: str = DEFAULT_CALDAV_URL
    timezone: str | None = None
    days: int = 1
    max_events: int = 100
    process: ProcessOptions = field(default_factory=ProcessOptions)
    workers: int = 8
    timeout: int = 30  # seconds, per HTTP request
    dry_run: bool = False
    verbose: bool = False
    yes: bool = False  # Auto-confirm without prompting


@dataclass
class SyncFailure:
    uid: str
    operation: str  # 'serialize', 'create', 'update', 'delete'
    reason: str


@dataclass
class SyncStats:
    """Statistics for sync operation."""

    added: int = 0
    modified: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
    failures: list[SyncFailure] = field(default_factory=list)

    def record_failure(self, uid: str, operation: str, reason) -> None:
        self.failures.append(SyncFailure(uid, operation, str(reason)))
        self.errors += 1
