"""
Shared pytest fixtures and Graph / iCal helpers.
"""

import logging

import pytest

from outlook_ical_sync.models import CanonicalEvent
from outlook_ical_sync.models import ProcessOptions
from outlook_ical_sync.models import RemoteObject

CALENDAR = "work-calendar-test"


def make_graph_event(
    ical_uid: str = "040000008200E00074C5B7101A82E00800000000ABCDEF0123456789",
    subject: str = "Test Event",
    start: str = "2026-03-01T10:00:00.0000000",
    end: str = "2026-03-01T11:00:00.0000000",
    **extra,
) -> dict:
    """Return a minimal Graph calendarView event dict (UTC date-times)."""
    event = {
        "iCalUId": ical_uid,
        "subject": subject,
        "bodyPreview": f"{subject} preview",
        "body": {"contentType": "html", "content": f"<p>{subject}</p>"},
        "start": {"dateTime": start, "timeZone": "UTC"},
        "end": {"dateTime": end, "timeZone": "UTC"},
        "location": {"displayName": ""},
        "isCancelled": False,
        "isAllDay": False,
        "showAs": "busy",
        "webLink": "https://outlook.office365.com/owa/?itemid=abc",
    }
    event.update(extra)
    return event


def make_event(uid: str, title: str = "Test Event") -> CanonicalEvent:
    """Return a canonical timed event."""
    return CanonicalEvent(
        uid=uid,
        title=title,
        description=None,
        start=[2026, 3, 1, 10, 0],
        end=[2026, 3, 1, 11, 0],
    )


def make_vcalendar(uid: str, summary: str = "Test Event", extra_lines: list[str] = ()) -> str:
    """Return a minimal VCALENDAR string wrapping one VEVENT."""
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//TestSuite//EN",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"SUMMARY:{summary}",
        "DTSTART:20260301T100000Z",
        "DTEND:20260301T110000Z",
        "DTSTAMP:20260224T000000Z",
    ]
    lines.extend(extra_lines)
    lines += ["END:VEVENT", "END:VCALENDAR"]
    return "\r\n".join(lines) + "\r\n"


def make_remote(uid: str, summary: str = "Test Event", data: str | None = None) -> RemoteObject:
    """Return a RemoteObject as listed from the destination calendar."""
    body = data if data is not None else make_vcalendar(uid, summary)
    return RemoteObject(url=f"https://caldav.example.test/cal/{uid}.ics", data=body)


@pytest.fixture
def options():
    return ProcessOptions()


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")

