"""
Unit tests for serialize_event in outlook_ical_sync.ics.

The output is parsed back with icalendar and inspected property by property.
"""

import datetime

import pytest
from icalendar import Calendar

from outlook_ical_sync.ics import serialize_event
from outlook_ical_sync.models import Alarm
from outlook_ical_sync.models import CanonicalEvent
from outlook_ical_sync.models import Organizer
from outlook_ical_sync.models import SerializationError
from outlook_ical_sync.sync.utils import extract_remote_uid


def _event(**fields) -> CanonicalEvent:
    values = dict(
        uid="klmnopqrstuvwxyz197211271154",
        title="Design review",
        description="Agenda inside",
        start=[2026, 3, 1, 10, 0],
        end=[2026, 3, 1, 11, 30],
    )
    values.update(fields)
    return CanonicalEvent(**values)


def _vevent(ical: str):
    cal = Calendar.from_ical(ical)
    vevents = [c for c in cal.walk() if c.name == "VEVENT"]
    assert len(vevents) == 1
    return vevents[0]


class TestSerializeEvent:
    def test_uid_is_a_verbatim_substring(self):
        event = _event()
        ical = serialize_event(event)
        assert event.uid in ical
        assert extract_remote_uid(ical) == event.uid

    def test_timed_event_in_utc(self):
        vevent = _vevent(serialize_event(_event()))
        assert vevent.decoded("dtstart") == datetime.datetime(
            2026, 3, 1, 10, 0, tzinfo=datetime.timezone.utc
        )
        assert vevent.decoded("dtend") == datetime.datetime(
            2026, 3, 1, 11, 30, tzinfo=datetime.timezone.utc
        )
        assert str(vevent["summary"]) == "Design review"
        assert str(vevent["description"]) == "Agenda inside"

    def test_all_day_event_uses_dates(self):
        ical = serialize_event(_event(start=[2026, 3, 1], end=[2026, 3, 2]))
        vevent = _vevent(ical)
        assert vevent.decoded("dtstart") == datetime.date(2026, 3, 1)
        assert vevent.decoded("dtend") == datetime.date(2026, 3, 2)
        assert "DTSTART;VALUE=DATE:20260301" in ical

    def test_optional_properties(self):
        event = _event(
            location="Room 1",
            url="https://zoom.us/j/42",
            organizer=Organizer(name="Ada", email="ada@example.org"),
        )
        vevent = _vevent(serialize_event(event))
        assert str(vevent["location"]) == "Room 1"
        assert str(vevent["url"]) == "https://zoom.us/j/42"
        assert str(vevent["organizer"]) == "mailto:ada@example.org"
        assert vevent["organizer"].params["CN"] == "Ada"

    def test_absent_optionals_omitted(self):
        vevent = _vevent(serialize_event(_event(description=None)))
        for prop in ("description", "location", "url", "organizer"):
            assert prop not in vevent

    @pytest.mark.parametrize("status, transp", [("BUSY", "OPAQUE"), ("FREE", "TRANSPARENT"), ("OOF", "OPAQUE")])
    def test_busy_status(self, status, transp):
        vevent = _vevent(serialize_event(_event(busy_status=status)))
        assert str(vevent["x-microsoft-cdo-busystatus"]) == status
        assert str(vevent["transp"]) == transp

    def test_alarm(self):
        vevent = _vevent(serialize_event(_event(alarms=[Alarm(minutes=5)])))
        alarms = [c for c in vevent.subcomponents if c.name == "VALARM"]
        assert len(alarms) == 1
        assert str(alarms[0]["action"]) == "DISPLAY"
        assert alarms[0].decoded("trigger") == -datetime.timedelta(minutes=5)
        assert int(alarms[0]["repeat"]) == 0

    def test_no_alarm(self):
        vevent = _vevent(serialize_event(_event()))
        assert not [c for c in vevent.subcomponents if c.name == "VALARM"]

    def test_impossible_date_raises(self):
        with pytest.raises(SerializationError):
            serialize_event(_event(start=[2026, 13, 45, 99, 99]))
