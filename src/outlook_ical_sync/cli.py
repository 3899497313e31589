"""
Command-line interface for Outlook → iCloud calendar sync.
"""

import logging
import os
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from outlook_ical_sync.caldav_client import CalDAVCalendarClient
from outlook_ical_sync.models import DEFAULT_CALDAV_URL
from outlook_ical_sync.models import DEFAULT_CONFIG
from outlook_ical_sync.models import CalendarSyncError
from outlook_ical_sync.models import ProcessOptions
from outlook_ical_sync.models import SyncConfig
from outlook_ical_sync.models import SyncStats
from outlook_ical_sync.sync import CalendarSynchronizer

ACCESS_TOKEN_ENV = "OUTLOOK_ACCESS_TOKEN"

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="One-way sync of Outlook calendar events into an iCloud (CalDAV) calendar.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> ConfigParser:
    parser = ConfigParser()
    if config_path.exists():
        parser.read(config_path)
    return parser


def _parse_select(value: str) -> tuple[str, ...]:
    return tuple(s.strip() for s in value.split(",") if s.strip())


def build_config(
    parser: ConfigParser,
    calendar_name: str | None = None,
    dry_run: bool = False,
    yes: bool = False,
    verbose: bool = False,
) -> SyncConfig:
    """Merge config file values, environment and CLI overrides into a SyncConfig."""
    access_token = parser.get("outlook", "access_token", fallback="") or os.environ.get(
        ACCESS_TOKEN_ENV, ""
    )
    process = ProcessOptions(
        allday=parser.getboolean("process", "allday", fallback=False),
        alarm=parser.getint("process", "alarm", fallback=None),
        select=_parse_select(parser.get("process", "select", fallback="busy")),
    )
    return SyncConfig(
        calendar_name=calendar_name or parser.get("icloud", "calendar_name", fallback=""),
        username=parser.get("icloud", "username", fallback=""),
        password=parser.get("icloud", "password", fallback=""),
        access_token=access_token,
        caldav_url=parser.get("icloud", "url", fallback=DEFAULT_CALDAV_URL),
        timezone=parser.get("outlook", "timezone", fallback=None),
        days=parser.getint("outlook", "days", fallback=1),
        max_events=parser.getint("outlook", "max_events", fallback=100),
        process=process,
        workers=parser.getint("sync", "workers", fallback=8),
        timeout=parser.getint("sync", "timeout", fallback=30),
        dry_run=dry_run,
        verbose=verbose,
        yes=yes,
    )


def _build_config(calendar_name: str | None = None, dry_run: bool = False, yes: bool = False):
    try:
        return build_config(
            _load_config_file(state.config_path),
            calendar_name=calendar_name,
            dry_run=dry_run,
            yes=yes,
            verbose=state.verbose,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/] Invalid value in {state.config_path}: {e}")
        raise typer.Exit(1) from None


def _print_results(stats: SyncStats) -> None:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Added", str(stats.added))
    results.add_row("Updated", str(stats.modified))
    results.add_row("Deleted", str(stats.deleted))
    results.add_row("Unmanaged", str(stats.skipped))
    error_val = Text(str(stats.errors))
    if stats.errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))

    if stats.failures:
        failures = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
        failures.add_column("Operation")
        failures.add_column("UID", style="dim")
        failures.add_column("Reason", overflow="fold")
        for failure in stats.failures:
            failures.add_row(failure.operation, failure.uid, failure.reason)
        console.print(Panel(failures, title="[bold yellow]Failures[/bold yellow]", expand=False))


def _run_sync(cfg: SyncConfig) -> None:
    """Core sync runner: preflight, display panel, confirm, run, show results."""
    from outlook_ical_sync.preflight import run_preflight_checks

    store_client = CalDAVCalendarClient(
        cfg.username, cfg.password, url=cfg.caldav_url, timeout=cfg.timeout
    )
    if not run_preflight_checks(cfg, console, store_client=store_client):
        raise typer.Exit(1)

    # -- Info panel ----------------------------------------------------------
    selected = ", ".join(cfg.process.select) or "(none)"
    info = Text()
    info.append("  Source:    ", style="bold")
    info.append("Outlook (Microsoft Graph)\n")
    info.append(f"             next {cfg.days} day(s), at most {cfg.max_events} events\n", style="dim")
    info.append("  Target:    ", style="bold")
    info.append(f"{cfg.calendar_name}\n")
    info.append(f"             {cfg.username} @ {cfg.caldav_url}\n", style="dim")
    info.append("  Selecting: ", style="bold")
    info.append(selected)
    if cfg.process.allday:
        info.append(" + all-day", style="yellow")
    if cfg.process.alarm is not None:
        info.append("\n  Reminder:  ", style="bold")
        info.append(f"{cfg.process.alarm} min before")
    if cfg.dry_run:
        info.append("\n  Mode:      ")
        info.append("DRY RUN", style="bold magenta")

    console.print(Panel(info, title="[bold]Outlook → iCloud Sync[/bold]"))

    # -- Confirmation --------------------------------------------------------
    if not cfg.yes and not cfg.dry_run:
        typer.confirm("Proceed?", abort=True)

    # -- Run -----------------------------------------------------------------
    try:
        stats = CalendarSynchronizer(cfg, store_client=store_client).run()
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e

    _print_results(stats)

    if stats.errors:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

_CAL_OPT = Annotated[
    str | None,
    typer.Option("--calendar", "-n", help="Destination calendar display name (overrides config)"),
]
_DRY_RUN = Annotated[bool, typer.Option("--dry-run", help="Preview changes without applying")]
_YES = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")]


@app.command()
def sync(
    calendar: _CAL_OPT = None,
    dry_run: _DRY_RUN = False,
    yes: _YES = False,
) -> None:
    """Mirror Outlook events into the iCloud calendar."""
    _run_sync(_build_config(calendar, dry_run=dry_run, yes=yes))


@app.command()
def preview(
    raw: Annotated[bool, typer.Option("--raw", help="Also show each event as iCal")] = False,
) -> None:
    """Download and normalize Outlook events without touching iCloud."""
    from outlook_ical_sync.debug import dump_event
    from outlook_ical_sync.debug import render_events
    from outlook_ical_sync.normalizer import process_events
    from outlook_ical_sync.outlook import OutlookClient
    from outlook_ical_sync.outlook import compute_window

    cfg = _build_config()
    if not cfg.access_token:
        console.print(
            f"[bold red]Error:[/] No Outlook access token in the config file or "
            f"[cyan]{ACCESS_TOKEN_ENV}[/]."
        )
        raise typer.Exit(1)

    start, end = compute_window(cfg.timezone, cfg.days)
    client = OutlookClient(cfg.access_token, max_events=cfg.max_events, timeout=cfg.timeout)
    try:
        raw_events = client.list_events(start, end)
    except CalendarSyncError as e:
        console.print(f"[bold red]Download failed:[/] {e}")
        raise typer.Exit(1) from None

    events = process_events(raw_events, cfg.process, logging.getLogger("outlook_ical_sync"))
    console.print(f"[bold]Events:[/] {len(events)} of {len(raw_events)} selected")
    render_events(events, console)
    if raw:
        for event in events:
            dump_event(event, console)


@app.command()
def calendars() -> None:
    """List the calendars of the configured CalDAV account."""
    from outlook_ical_sync.debug import list_calendars

    cfg = _build_config()
    if not cfg.username or not cfg.password:
        console.print("[bold red]Error:[/] iCloud username and password required.")
        raise typer.Exit(1)

    client = CalDAVCalendarClient(cfg.username, cfg.password, url=cfg.caldav_url, timeout=cfg.timeout)
    try:
        client.connect()
        list_calendars(client.list_calendars(), console, selected=cfg.calendar_name)
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
