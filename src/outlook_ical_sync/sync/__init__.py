"""
CalendarSynchronizer — thin orchestrator that delegates to the normalizer and reconciler.
"""

import logging

from outlook_ical_sync.caldav_client import CalDAVCalendarClient
from outlook_ical_sync.models import CalendarSyncError
from outlook_ical_sync.models import SyncConfig
from outlook_ical_sync.models import SyncStats
from outlook_ical_sync.normalizer import process_events
from outlook_ical_sync.outlook import OutlookClient
from outlook_ical_sync.outlook import compute_window
from outlook_ical_sync.sync.reconcile import reconcile


class CalendarSynchronizer:
    """Main synchronization engine."""

    def __init__(self, config: SyncConfig, outlook_client=None, store_client=None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.stats = SyncStats()
        self.outlook_client = outlook_client or OutlookClient(
            config.access_token,
            max_events=config.max_events,
            timeout=config.timeout,
        )
        self.store_client = store_client or CalDAVCalendarClient(
            config.username,
            config.password,
            url=config.caldav_url,
            timeout=config.timeout,
        )

    def run(self) -> SyncStats:
        """Execute the synchronization process."""
        start, end = compute_window(self.config.timezone, self.config.days)
        raw_events = self.outlook_client.list_events(start, end)
        events = process_events(raw_events, self.config.process, self.logger)

        self.logger.info(f"Connecting to {self.config.caldav_url}...")
        self.store_client.connect()
        calendar = self.store_client.find_calendar(self.config.calendar_name)
        if calendar is None:
            raise CalendarSyncError(f"Calendar '{self.config.calendar_name}' not found")

        self.logger.info(f"Loading objects of '{self.config.calendar_name}'...")
        remote_objects = self.store_client.list_calendar_objects(calendar)

        try:
            reconcile(
                events,
                remote_objects,
                self.store_client,
                calendar,
                self.logger,
                stats=self.stats,
                max_workers=self.config.workers,
                dry_run=self.config.dry_run,
            )
        except Exception as e:
            self.logger.error(f"Unexpected error: {e}", exc_info=True)
            raise

        return self.stats
