"""
One-way reconciliation of canonical events into a CalDAV calendar.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed
from dataclasses import dataclass
from typing import Any
from typing import Callable

from ..ics import serialize_event
from ..models import CalendarSyncError
from ..models import CanonicalEvent
from ..models import RemoteObject
from ..models import SerializationError
from ..models import SyncFailure
from ..models import SyncStats
from .utils import extract_remote_uid
from .utils import find_remote_objects

_STATS_FIELD = {"create": "added", "update": "modified", "delete": "deleted"}
_DONE_LABEL = {"create": "Created", "update": "Updated", "delete": "Deleted"}


@dataclass
class _Operation:
    kind: str  # 'create', 'update', 'delete'
    uid: str
    label: str
    call: Callable[..., Any]
    args: tuple


def _plan_upserts(
    events: list[CanonicalEvent],
    remote_objects: list[RemoteObject],
    store,
    calendar,
    serializer: Callable[[CanonicalEvent], str],
    stats: SyncStats,
    logger,
) -> tuple[list[_Operation], set[int]]:
    """Return create/update operations and the ids of the remote objects they claim."""
    operations: list[_Operation] = []
    claimed: set[int] = set()

    for event in events:
        try:
            body = serializer(event)
        except SerializationError as e:
            # Never fall back to a create: the event is simply left as it is remotely.
            logger.error(f"Error: {event.title}, {e}")
            stats.record_failure(event.uid, "serialize", e)
            continue
        except Exception as e:
            logger.error(f"Unexpected error serializing {event.uid}: {e}", exc_info=True)
            stats.record_failure(event.uid, "serialize", e)
            continue

        matches = find_remote_objects(event.uid, remote_objects)
        for remote in matches:
            claimed.add(id(remote))
            operations.append(_Operation("update", event.uid, event.title, store.update, (remote, body)))
        if not matches:
            filename = f"{event.uid}.ics"
            operations.append(
                _Operation("create", event.uid, event.title, store.create, (calendar, filename, body))
            )

    return operations, claimed


def _plan_deletions(
    events: list[CanonicalEvent],
    remote_objects: list[RemoteObject],
    claimed: set[int],
    store,
    stats: SyncStats,
    logger,
) -> list[_Operation]:
    """Return delete operations for managed remote objects absent from the event set."""
    wanted = {event.uid for event in events}
    operations: list[_Operation] = []

    for obj in remote_objects:
        if id(obj) in claimed:
            continue
        uid = extract_remote_uid(obj.data)
        if uid is None:
            logger.debug(f"Skipping unmanaged object: {obj.url}")
            stats.skipped += 1
            continue
        if uid not in wanted:
            operations.append(_Operation("delete", uid, uid, store.delete, (obj,)))

    return operations


def _record_error(op: _Operation, error: Exception, stats: SyncStats, logger):
    if op.kind == "delete":
        # A missed delete is retried by the next run; it does not count as an error.
        logger.warning(f"Failed to delete {op.uid}: {error}")
        stats.failures.append(SyncFailure(op.uid, op.kind, str(error)))
    else:
        logger.error(f"Error: {op.label}, {error}")
        stats.record_failure(op.uid, op.kind, error)


def execute_operations(
    operations: list[_Operation],
    stats: SyncStats,
    logger,
    max_workers: int = 8,
    dry_run: bool = False,
):
    """Run all operations concurrently and wait until every one has settled."""
    if dry_run:
        for op in operations:
            logger.info(f"[DRY RUN] Would {op.kind.upper()} event: {op.label} ({op.uid})")
            field_name = _STATS_FIELD[op.kind]
            setattr(stats, field_name, getattr(stats, field_name) + 1)
        return

    if not operations:
        return

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {pool.submit(op.call, *op.args): op for op in operations}
        # Results are consumed here, on the calling thread, so stats need no lock.
        for future in as_completed(futures):
            op = futures[future]
            try:
                future.result()
            except CalendarSyncError as e:
                _record_error(op, e, stats, logger)
                continue
            except Exception as e:
                logger.error(f"Unexpected error during {op.kind} of {op.uid}: {e}", exc_info=True)
                _record_error(op, e, stats, logger)
                continue

            logger.info(f"{_DONE_LABEL[op.kind]}: {op.label}")
            field_name = _STATS_FIELD[op.kind]
            setattr(stats, field_name, getattr(stats, field_name) + 1)


def reconcile(
    events: list[CanonicalEvent],
    remote_objects: list[RemoteObject],
    store,
    calendar,
    logger,
    stats: SyncStats | None = None,
    serializer: Callable[[CanonicalEvent], str] = serialize_event,
    max_workers: int = 8,
    dry_run: bool = False,
) -> SyncStats:
    """Make the calendar hold exactly ``events``.

    Each event updates every remote object whose body contains its uid,
    or is created as ``<uid>.ics``.  Remote objects carrying a UID that no
    event has are deleted; objects without a recognisable UID are left
    alone.  Individual failures are recorded in the returned stats and
    never abort the batch.
    """
    stats = stats if stats is not None else SyncStats()

    logger.info(f"Processing {len(events)} events...")
    operations, claimed = _plan_upserts(
        events, remote_objects, store, calendar, serializer, stats, logger
    )

    logger.info("Checking for obsolete events...")
    operations += _plan_deletions(events, remote_objects, claimed, store, stats, logger)

    execute_operations(operations, stats, logger, max_workers=max_workers, dry_run=dry_run)
    return stats
