"""Implementation of 'trickle events' commands.

Inspect the raw event log and erase entries from it.
"""

from pathlib import Path
from uuid import UUID

import typer
from rich.table import Table

from trickle.cli.utils import console, format_currency, load, parse_event_id, save
from trickle.core.models import (
    AddBucket,
    DeleteBucket,
    DumpBucket,
    Event,
    SetMonthlyRate,
    SetStartDate,
    Spend,
    UpdateBucket,
)
from trickle.engine.event_log import bucket_names, find_event
from trickle.engine.mutations import delete_event

events_app = typer.Typer(help="Inspect and edit the event log")


def describe_event(event: Event, names: dict[UUID, str], currency: str) -> str:
    """One-line human description of an event."""
    match event:
        case Spend():
            source = f" from {names.get(event.from_bucket, 'unknown bucket')}" if event.from_bucket else ""
            return f"Spent {format_currency(event.amount, currency)} on {event.name}{source}"
        case AddBucket():
            return f"Created bucket {event.bucket_to_add.name}"
        case UpdateBucket():
            return f"Updated bucket {names.get(event.bucket_id, event.bucket_id)}"
        case DumpBucket():
            return f"Dumped bucket {names.get(event.bucket_to_dump, event.bucket_to_dump)}"
        case DeleteBucket():
            return f"Deleted bucket {names.get(event.bucket_id, event.bucket_id)}"
        case SetMonthlyRate():
            return f"Monthly rate set to {format_currency(event.rate, currency)}"
        case SetStartDate():
            return f"Start date set to {event.start_date:%Y-%m-%d}"
    return event.kind


@events_app.command(name="list")
def events_list(
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """List every event in log order."""
    config, _, app_data = load(data)

    if not app_data.events:
        console.print("[yellow]Event log is empty[/yellow]")
        return

    names = bucket_names(app_data.events)
    table = Table(title=f"Events ({len(app_data.events)})")
    table.add_column("Date")
    table.add_column("Kind")
    table.add_column("Description")
    table.add_column("Id", style="dim")

    for event in app_data.events:
        table.add_row(
            f"{event.date_added:%Y-%m-%d %H:%M}",
            event.kind,
            describe_event(event, names, config.currency),
            str(event.id),
        )
    console.print(table)


@events_app.command(name="delete")
def events_delete(
    event_id: str = typer.Argument(..., help="Id of the event to erase"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Erase an event from the log.

    Erasing a bucket's creation event erases the bucket's whole history.
    """
    _, path, app_data = load(data)
    target_id = parse_event_id(event_id)

    if find_event(app_data.events, target_id) is None:
        console.print(f"[yellow]No event found with id {target_id}[/yellow]")
        console.print("Run 'trickle events list' to see recorded events")
        raise typer.Exit(1)

    before = len(app_data.events)
    app_data = delete_event(app_data, target_id)
    save(app_data, path)

    console.print(f"[green]Deleted:[/green] {before - len(app_data.events)} event(s)")
