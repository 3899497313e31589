"""
Debug/inspect tools for calendars and canonical events.

Importable functions:
  list_calendars(calendars, console)  — render a Rich table of CalDAV calendars
  render_events(events, console)  — render canonical events as a Rich table
  dump_event(event, console, show_raw=True)  — render one event in a Rich Panel
"""

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from outlook_ical_sync.ics import serialize_event
from outlook_ical_sync.models import BUSY
from outlook_ical_sync.models import FREE
from outlook_ical_sync.models import CalendarSyncError
from outlook_ical_sync.models import CanonicalEvent

_STATUS_STYLE = {BUSY: "red", FREE: "green"}


def list_calendars(calendars, console: Console, selected: str | None = None) -> None:
    """Render all calendars of the CalDAV account as a Rich table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Display Name", style="bold")
    table.add_column("URL", style="dim", overflow="fold")

    for calendar in calendars:
        name = calendar.name or "(unnamed)"
        name_cell = Text(name)
        if selected and name == selected:
            name_cell.append("  (configured)", style="green")
        table.add_row(name_cell, str(calendar.url))

    console.print(table)


def fmt_date_time(parts: list[int]) -> str:
    if len(parts) == 3:
        return "{:04d}-{:02d}-{:02d}".format(*parts)
    return "{:04d}-{:02d}-{:02d} {:02d}:{:02d}".format(*parts)


def render_events(events: list[CanonicalEvent], console: Console) -> None:
    """Render the canonical event set as a Rich table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start (UTC)", no_wrap=True)
    table.add_column("End (UTC)", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("UID", style="dim")
    table.add_column("URL", overflow="fold")

    for event in events:
        table.add_row(
            fmt_date_time(event.start),
            fmt_date_time(event.end),
            event.title,
            Text(event.busy_status, style=_STATUS_STYLE.get(event.busy_status, "yellow")),
            event.uid,
            event.url or "",
        )

    console.print(table)


def dump_event(event: CanonicalEvent, console: Console, show_raw: bool = True) -> None:
    """Render a single canonical event as a Rich Panel."""
    lines = Text()

    def row(label: str, value) -> None:
        if value is None:
            return
        lines.append(f"  {label:<12}: ", style="bold cyan")
        lines.append(f"{value}\n")

    row("UID", event.uid)
    row("START", fmt_date_time(event.start))
    row("END", fmt_date_time(event.end))
    row("LOCATION", event.location)
    row("URL", event.url)
    if event.organizer:
        row("ORGANIZER", f"{event.organizer.name} <{event.organizer.email}>")
    row("BUSYSTATUS", event.busy_status)
    for alarm in event.alarms or []:
        row("ALARM", f"{alarm.action} {alarm.minutes} min {'before' if alarm.before else 'after'}")

    console.print(Panel(lines, title=f"[bold]{event.title or '(no title)'}[/bold]", expand=False))

    if show_raw:
        try:
            raw = serialize_event(event)
        except CalendarSyncError as e:
            console.print(f"[bold red]Cannot serialize:[/] {e}")
            return
        console.print(Panel(
            Syntax(raw, "ical", theme="monokai", word_wrap=True),
            title="Raw iCal",
            expand=False,
        ))
