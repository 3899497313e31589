"""
Outlook event normalization — selection and conversion to canonical events.

Everything here is pure: raw Graph event dicts in, CanonicalEvent out.
Decisions are narrated on the logger passed by the caller.
"""

import logging
import re
from collections import Counter

from outlook_ical_sync.models import BUSY
from outlook_ical_sync.models import FREE
from outlook_ical_sync.models import OOF
from outlook_ical_sync.models import Alarm
from outlook_ical_sync.models import CanonicalEvent
from outlook_ical_sync.models import NormalizationError
from outlook_ical_sync.models import Organizer
from outlook_ical_sync.models import ProcessOptions

_logger = logging.getLogger(__name__)

# Length of the iCalUId suffix kept in the canonical uid.
UID_SUFFIX_LENGTH = 16

_UID_TIME_STRIP_RE = re.compile(r"[-T:]")

# Online meeting links, searched in this order.  Each one stops before a
# space, a quote, a period or an opening angle bracket so that a link
# embedded in prose or HTML is captured without its trailing punctuation.
_URL_TAIL = r'[^ ".<]*'
ONLINE_URL_PATTERNS = (
    re.compile(r"https://teams\.microsoft\.com/l/meetup-join/" + _URL_TAIL),
    re.compile(r"https://.*\.webex\.com/.*/j\.php" + _URL_TAIL),
    re.compile(r"https://.*\.webex\.com/join/" + _URL_TAIL),
    re.compile(r"https://.*\.webex\.com/meet/" + _URL_TAIL),
    re.compile(r"https://zoom\.us/j/" + _URL_TAIL),
    re.compile(r"https://meet\.google\.com/" + _URL_TAIL),
)

_BUSY_STATUS_MAP = {
    "busy": BUSY,
    "tentative": FREE,
    "free": FREE,
    "oof": OOF,
}


def _nested(raw: dict, *keys):
    """Walk nested dicts, returning None as soon as a level is missing."""
    value = raw
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def select_event(raw: dict, options: ProcessOptions, logger=None) -> bool:
    """Return True when a raw event should be mirrored to the destination."""
    logger = logger or _logger
    subject = raw.get("subject")

    if raw.get("isCancelled"):
        logger.debug(f"Skipped (cancelled): {subject}")
        return False

    if raw.get("isAllDay") and not options.allday:
        logger.debug(f"Skipped (all day): {subject}")
        return False

    show_as = raw.get("showAs")
    if show_as not in options.select:
        logger.debug(f"Skipped ({show_as}): {subject}")
        return False

    logger.debug(f"Preserved: {subject}")
    return True


def is_valid_url(url) -> bool:
    return isinstance(url, str) and len(url) > 0


def _search_online_url(raw: dict, pattern: re.Pattern) -> str | None:
    """Search one pattern in the location text, then in the body."""
    for text in (_nested(raw, "location", "displayName"), _nested(raw, "body", "content")):
        if not isinstance(text, str):
            continue
        m = pattern.search(text)
        if m and is_valid_url(m.group(0)):
            return m.group(0)
    return None


def resolve_online_url(raw: dict) -> str | None:
    """Find the best join link for an event.

    Structured fields win over text search; the event's own web link is
    the last resort.  Any non-empty string is accepted as-is.
    """
    url = raw.get("onlineMeetingUrl")
    if is_valid_url(url):
        return url

    url = _nested(raw, "onlineMeeting", "joinUrl")
    if is_valid_url(url):
        return url

    for pattern in ONLINE_URL_PATTERNS:
        url = _search_online_url(raw, pattern)
        if url:
            return url

    return raw.get("webLink")


def extract_date_time(value: str, all_day: bool) -> list[int]:
    """Slice ``YYYY-MM-DDTHH:MM...`` into integer components.

    This is a fixed-offset textual extraction: the string is assumed to be
    UTC already, and out-of-range numbers are returned unchanged.  Only a
    slice that is not plain ASCII digits raises NormalizationError.
    """
    if not isinstance(value, str):
        raise NormalizationError(f"Invalid date/time value: {value!r}")
    offsets = [(0, 4), (5, 7), (8, 10)]
    if not all_day:
        offsets += [(11, 13), (14, 16)]
    # int() alone would accept "1_0" or " 1"
    slices = [value[a:b] for a, b in offsets]
    if not all(s.isascii() and s.isdigit() for s in slices):
        raise NormalizationError(f"Invalid date/time value: {value!r}")
    return [int(s) for s in slices]


def compute_uid(ical_uid: str, start: str) -> str:
    """Build the canonical uid: identifier suffix plus start YYYYMMDDHHMM.

    Occurrences of a recurring series share their iCalUId suffix, so the
    start time is what keeps them apart.
    """
    return ical_uid[-UID_SUFFIX_LENGTH:] + _UID_TIME_STRIP_RE.sub("", start[:16])


def map_busy_status(show_as) -> str:
    return _BUSY_STATUS_MAP.get(show_as, BUSY)


def convert_event(raw: dict, options: ProcessOptions) -> CanonicalEvent:
    """Convert one selected Graph event into a CanonicalEvent."""
    ical_uid = raw.get("iCalUId")
    if not ical_uid:
        raise NormalizationError("Event has no iCalUId")
    start = _nested(raw, "start", "dateTime")
    end = _nested(raw, "end", "dateTime")
    if not start or not end:
        raise NormalizationError(f"Event {ical_uid} has no start/end date/time")

    all_day = bool(raw.get("isAllDay"))

    organizer = None
    email_address = _nested(raw, "organizer", "emailAddress")
    if email_address is not None:
        organizer = Organizer(name=email_address.get("name"), email=email_address.get("address"))

    alarms = None
    if options.alarm is not None:
        alarms = [Alarm(minutes=options.alarm)]

    return CanonicalEvent(
        uid=compute_uid(ical_uid, start),
        title=raw.get("subject") or "",
        description=raw.get("bodyPreview"),
        start=extract_date_time(start, all_day),
        end=extract_date_time(end, all_day),
        location=_nested(raw, "location", "displayName"),
        url=resolve_online_url(raw),
        organizer=organizer,
        busy_status=map_busy_status(raw.get("showAs")),
        alarms=alarms,
    )


def process_events(
    raw_events: list[dict], options: ProcessOptions, logger=None
) -> list[CanonicalEvent]:
    """Filter and transform raw events, skipping the ones that cannot be converted."""
    logger = logger or _logger

    logger.info("Filtering Outlook events...")
    selected = [raw for raw in raw_events if select_event(raw, options, logger)]

    logger.info(f"Transforming {len(selected)} Outlook events...")
    events: list[CanonicalEvent] = []
    for raw in selected:
        try:
            events.append(convert_event(raw, options))
        except NormalizationError as e:
            logger.warning(f"Skipped (invalid): {raw.get('subject')}: {e}")

    # Two series sharing an identifier suffix and a start time collapse onto
    # one uid.  Report it; both events are still handed to the reconciler.
    counts = Counter(event.uid for event in events)
    for uid, count in counts.items():
        if count > 1:
            logger.warning(f"Duplicate uid {uid} shared by {count} events")

    return events
