"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from outlook_ical_sync.caldav_client import CalDAVCalendarClient
from outlook_ical_sync.models import CalendarSyncError
from outlook_ical_sync.models import SyncConfig

logger = logging.getLogger(__name__)

_AUTH_KEYWORDS = frozenset({"401", "unauthorized", "authorization", "forbidden", "403"})


def check_settings(cfg: SyncConfig) -> list[tuple[str, str, str]]:
    """Return (label, detail, hint) for every required setting that is missing."""
    issues: list[tuple[str, str, str]] = []
    if not cfg.access_token:
        issues.append(
            (
                "Outlook",
                "No access token",
                "Set access_token in [outlook] or the OUTLOOK_ACCESS_TOKEN variable",
            )
        )
    for value, name in (
        (cfg.username, "username"),
        (cfg.password, "password"),
        (cfg.calendar_name, "calendar_name"),
    ):
        if not value:
            issues.append(("iCloud", f"Missing {name}", f"Set {name} in the [icloud] section"))
    return issues


def run_preflight_checks(cfg: SyncConfig, console: Console, store_client=None) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    issues = check_settings(cfg)
    if issues:
        for label, detail, _ in issues:
            logger.error("%s: %s", label, detail)
        _print_issues(issues, console)
        return False

    client = store_client or CalDAVCalendarClient(
        cfg.username, cfg.password, url=cfg.caldav_url, timeout=cfg.timeout
    )

    # 1. CalDAV server reachable and credentials accepted
    try:
        client.connect()
    except CalendarSyncError as e:
        msg = str(e)
        logger.error("CalDAV server unreachable: %s", msg)
        if any(kw in msg.lower() for kw in _AUTH_KEYWORDS):
            hint = "Check the iCloud username and app-specific password"
        else:
            hint = f"Is {cfg.caldav_url} reachable?"
        _print_issues([("CalDAV server", msg, hint)], console)
        return False

    # 2. Destination calendar exists
    try:
        calendar = client.find_calendar(cfg.calendar_name)
    except CalendarSyncError as e:
        logger.error("Cannot list calendars: %s", e)
        issues.append(("Calendars", str(e), "Retry later"))
    else:
        if calendar is None:
            logger.error("Calendar not found: %s", cfg.calendar_name)
            issues.append(
                (
                    "Calendar",
                    f"Not found: {cfg.calendar_name}",
                    "Run: outlook-ical-sync calendars",
                )
            )

    if issues:
        _print_issues(issues, console)
        return False

    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
