"""
iCal rendering of canonical events.
"""

import datetime

from icalendar import Alarm as ICalAlarm
from icalendar import Calendar
from icalendar import Event
from icalendar import vCalAddress
from icalendar import vText

from outlook_ical_sync.models import FREE
from outlook_ical_sync.models import CanonicalEvent
from outlook_ical_sync.models import SerializationError

PRODID = "-//outlook-ical-sync//EN"


def _to_ical_time(parts: list[int]) -> datetime.date | datetime.datetime:
    """[Y, M, D] → date, [Y, M, D, h, m] → UTC datetime."""
    if len(parts) == 3:
        return datetime.date(*parts)
    if len(parts) == 5:
        return datetime.datetime(*parts, tzinfo=datetime.timezone.utc)
    raise ValueError(f"expected 3 or 5 date/time components, got {len(parts)}")


def build_vevent(event: CanonicalEvent) -> Event:
    vevent = Event()
    vevent.add("uid", event.uid)
    vevent.add("dtstamp", datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0))
    vevent.add("dtstart", _to_ical_time(event.start))
    vevent.add("dtend", _to_ical_time(event.end))
    vevent.add("summary", event.title)
    if event.description:
        vevent.add("description", event.description)
    if event.location:
        vevent.add("location", event.location)
    if event.url:
        vevent.add("url", event.url)

    if event.organizer is not None and event.organizer.email:
        organizer = vCalAddress(f"mailto:{event.organizer.email}")
        if event.organizer.name:
            organizer.params["cn"] = vText(event.organizer.name)
        vevent["organizer"] = organizer

    vevent.add("x-microsoft-cdo-busystatus", event.busy_status)
    vevent.add("transp", "TRANSPARENT" if event.busy_status == FREE else "OPAQUE")

    for alarm in event.alarms or []:
        valarm = ICalAlarm()
        valarm.add("action", alarm.action.upper())
        valarm.add("description", event.title or "Reminder")
        offset = datetime.timedelta(minutes=alarm.minutes)
        valarm.add("trigger", -offset if alarm.before else offset)
        valarm.add("repeat", alarm.repeat)
        vevent.add_component(valarm)

    return vevent


def serialize_event(event: CanonicalEvent) -> str:
    """Render a CanonicalEvent as a VCALENDAR document.

    Raises SerializationError when the event cannot be represented, e.g.
    date components that do not form a real date.
    """
    try:
        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("calscale", "GREGORIAN")
        cal.add_component(build_vevent(event))
        return cal.to_ical().decode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize event {event.uid}: {e}") from e
