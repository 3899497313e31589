"""
End-to-end tests: Graph events → normalizer → reconciler → in-memory store.

The Outlook side is a FakeOutlookClient returning canned calendarView dicts,
the CalDAV side is FakeStoreClient.
"""

import pytest

from outlook_ical_sync.models import CalendarSyncError
from outlook_ical_sync.models import ProcessOptions
from outlook_ical_sync.models import SyncConfig
from outlook_ical_sync.normalizer import compute_uid
from outlook_ical_sync.sync import CalendarSynchronizer
from tests.conftest import CALENDAR
from tests.conftest import make_graph_event
from tests.conftest import make_remote
from tests.fake_client import FakeStoreClient

UID_A = "040000008200E00074C5B7101A82E00800000000AAAAAAAAAAAAAAAA"
UID_B = "040000008200E00074C5B7101A82E00800000000BBBBBBBBBBBBBBBB"


class FakeOutlookClient:
    def __init__(self, events: list[dict]):
        self.events = events
        self.windows: list[tuple[str, str]] = []

    def list_events(self, start: str, end: str) -> list[dict]:
        self.windows.append((start, end))
        return list(self.events)


def _config(**overrides) -> SyncConfig:
    values = dict(
        calendar_name=CALENDAR,
        username="user@example.test",
        password="app-password",
        access_token="token",
        workers=2,
    )
    values.update(overrides)
    return SyncConfig(**values)


def test_full_run_creates_selected_events():
    outlook = FakeOutlookClient(
        [
            make_graph_event(UID_A, "Standup"),
            make_graph_event(UID_B, "Lunch", showAs="free"),
            make_graph_event("C" * 32, "Cancelled", isCancelled=True),
        ]
    )
    store = FakeStoreClient(calendar=CALENDAR)

    stats = CalendarSynchronizer(_config(), outlook_client=outlook, store_client=store).run()

    expected_uid = compute_uid(UID_A, "2026-03-01T10:00:00.0000000")
    assert store.connected
    assert len(outlook.windows) == 1
    assert store.creates == [f"{expected_uid}.ics"]
    assert stats.added == 1
    assert stats.errors == 0


def test_run_replaces_obsolete_remote_events():
    uid_a = compute_uid(UID_A, "2026-03-01T10:00:00.0000000")
    outlook = FakeOutlookClient([make_graph_event(UID_A, "Standup moved")])
    store = FakeStoreClient([make_remote(uid_a), make_remote("GONE")], calendar=CALENDAR)

    stats = CalendarSynchronizer(_config(), outlook_client=outlook, store_client=store).run()

    assert store.updates == [f"https://caldav.example.test/cal/{uid_a}.ics"]
    assert store.removes == ["https://caldav.example.test/cal/GONE.ics"]
    assert (stats.added, stats.modified, stats.deleted) == (0, 1, 1)
    assert any("Standup moved" in body for body in store.bodies())


def test_select_option_widens_selection():
    outlook = FakeOutlookClient(
        [make_graph_event(UID_A, "Standup"), make_graph_event(UID_B, "Lunch", showAs="free")]
    )
    store = FakeStoreClient(calendar=CALENDAR)
    cfg = _config(process=ProcessOptions(select=("busy", "free")))

    stats = CalendarSynchronizer(cfg, outlook_client=outlook, store_client=store).run()

    assert stats.added == 2


def test_invalid_event_is_skipped_not_fatal():
    broken = make_graph_event(UID_B, "Broken")
    del broken["start"]
    outlook = FakeOutlookClient([make_graph_event(UID_A, "Standup"), broken])
    store = FakeStoreClient(calendar=CALENDAR)

    stats = CalendarSynchronizer(_config(), outlook_client=outlook, store_client=store).run()

    assert stats.added == 1
    assert stats.errors == 0


def test_dry_run_leaves_store_untouched():
    outlook = FakeOutlookClient([make_graph_event(UID_A, "Standup")])
    store = FakeStoreClient([make_remote("GONE")], calendar=CALENDAR)

    stats = CalendarSynchronizer(
        _config(dry_run=True), outlook_client=outlook, store_client=store
    ).run()

    assert store.creates == []
    assert store.removes == []
    assert store.object_count == 1
    assert (stats.added, stats.deleted) == (1, 1)


def test_missing_calendar_raises():
    outlook = FakeOutlookClient([make_graph_event(UID_A, "Standup")])
    store = FakeStoreClient(calendar="some-other-calendar")

    with pytest.raises(CalendarSyncError, match="not found"):
        CalendarSynchronizer(_config(), outlook_client=outlook, store_client=store).run()

    assert store.creates == []
