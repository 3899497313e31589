"""
Microsoft Graph calendarView download.

The access token is supplied by the caller; acquiring or refreshing it
is not this module's job.
"""

import logging
from datetime import datetime
from datetime import timedelta
from zoneinfo import ZoneInfo

import requests

from outlook_ical_sync.models import ProviderError

logger = logging.getLogger(__name__)

GRAPH_BASE = "https://graph.microsoft.com/v1.0"
CALENDAR_VIEW_URL = f"{GRAPH_BASE}/me/calendar/calendarView"


def compute_window(
    timezone: str | None = None, days: int = 1, now: datetime | None = None
) -> tuple[str, str]:
    """Return (start, end) for today 00:00 through today+days 23:59.

    "Today" is evaluated in ``timezone`` when given, else in local time.
    """
    if now is None:
        now = datetime.now(ZoneInfo(timezone)) if timezone else datetime.now()
    elif timezone:
        now = now.astimezone(ZoneInfo(timezone))
    today = now.date()
    last = today + timedelta(days=days)
    return f"{today.isoformat()}T00:00", f"{last.isoformat()}T23:59"


class OutlookClient:
    """Read-only access to the signed-in user's default calendar."""

    def __init__(
        self,
        access_token: str,
        max_events: int = 100,
        timeout: int = 25,
        session: requests.Session | None = None,
    ):
        self.access_token = access_token
        self.max_events = max_events
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str, params: dict | None = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            # Have Graph emit every dateTime in UTC; the normalizer slices them as-is.
            "Prefer": 'outlook.timezone="UTC"',
        }
        try:
            resp = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise ProviderError(f"Microsoft Graph request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Microsoft Graph returned invalid JSON: {e}") from e

    def list_events(self, start: str, end: str) -> list[dict]:
        """Return up to ``max_events`` events overlapping [start, end], oldest first."""
        params = {
            "startDateTime": start,
            "endDateTime": end,
            "$orderBy": "start/dateTime",
            "$top": self.max_events,
        }
        logger.info(f"Downloading Outlook events ({start} → {end})...")

        events: list[dict] = []
        url: str | None = CALENDAR_VIEW_URL
        while url and len(events) < self.max_events:
            data = self._get(url, params)
            events.extend(data.get("value", []))
            # nextLink already carries the query string
            url = data.get("@odata.nextLink")
            params = None

        logger.debug(f"Downloaded {len(events)} Outlook events")
        return events[: self.max_events]
