"""
CalDAV calendar connectivity wrapper.
"""

from typing import Optional

import caldav
from caldav.lib.error import DAVError

from .models import DEFAULT_CALDAV_URL, CalendarSyncError, RemoteObject, StoreError

# Transport failures from the HTTP layer (requests or niquests) are OSError
# subclasses; protocol failures are DAVError.
_STORE_ERRORS = (DAVError, OSError)


class CalDAVCalendarClient:
    """Wrapper for the CalDAV operations the reconciler needs."""

    def __init__(
        self,
        username: str,
        password: str,
        url: str = DEFAULT_CALDAV_URL,
        timeout: int = 30,
    ):
        self.url = url
        self.username = username
        self.password = password
        self.timeout = timeout
        self.client: Optional[caldav.DAVClient] = None
        self.principal = None

    def connect(self):
        """Open the DAV session and resolve the account principal."""
        try:
            self.client = caldav.DAVClient(
                url=self.url,
                username=self.username,
                password=self.password,
                timeout=self.timeout,
            )
            self.principal = self.client.principal()
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to connect to {self.url}: {e}")

    def list_calendars(self) -> list:
        """Return all calendars of the account."""
        if not self.principal:
            raise CalendarSyncError("Client not connected")

        try:
            return self.principal.calendars()
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to list calendars: {e}")

    def find_calendar(self, name: str):
        """Return the calendar whose display name is ``name``, or None."""
        for calendar in self.list_calendars():
            if calendar.name == name:
                return calendar
        return None

    def list_calendar_objects(self, calendar) -> list[RemoteObject]:
        """Retrieve every object of the calendar together with its iCal body."""
        try:
            objects = calendar.objects(load_objects=True)
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to fetch events: {e}")
        return [RemoteObject(url=str(obj.url), data=obj.data, native=obj) for obj in objects]

    def create(self, calendar, filename: str, body: str) -> RemoteObject:
        """Create a new object named ``filename`` in the calendar."""
        if not self.client:
            raise CalendarSyncError("Client not connected")

        obj = caldav.Event(
            client=self.client,
            url=calendar.url.join(filename),
            data=body,
            parent=calendar,
        )
        try:
            obj.save()
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to create {filename}: {e}")
        return RemoteObject(url=str(obj.url), data=body, native=obj)

    def update(self, remote: RemoteObject, body: str):
        """Overwrite an existing object with a new body."""
        obj = remote.native
        obj.data = body
        try:
            obj.save()
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to update {remote.url}: {e}")

    def delete(self, remote: RemoteObject):
        """Remove an object from the calendar."""
        try:
            remote.native.delete()
        except _STORE_ERRORS as e:
            raise StoreError(f"Failed to delete {remote.url}: {e}")
