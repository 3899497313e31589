"""
Stateless helpers for matching remote objects to canonical events.
"""

import re

from outlook_ical_sync.models import RemoteObject

# Uids produced by the normalizer are alphanumeric, so anything else after
# "UID:" marks an object this tool did not create.
_UID_RE = re.compile(r"UID:(?P<uid>[0-9a-zA-Z]+)")


def extract_remote_uid(data: str | None) -> str | None:
    """Return the first UID found in an iCal body, or None if unmanaged."""
    if not data:
        return None
    m = _UID_RE.search(data)
    return m.group("uid") if m else None


def find_remote_objects(uid: str, remote_objects: list[RemoteObject]) -> list[RemoteObject]:
    """Return every remote object whose body contains ``uid`` verbatim.

    This is a substring test, not a property lookup: a body that merely
    mentions the uid (in a description, say, or a longer UID) matches too.
    Stray copies left by an earlier duplicate create all match, so all of
    them get rewritten.
    """
    return [obj for obj in remote_objects if obj.data is not None and uid in obj.data]
