"""Implementation of 'trickle spend' commands.

Record, edit and list spending.
"""

from datetime import datetime
from pathlib import Path

import typer
from rich.table import Table

from trickle.cli.utils import (
    console,
    format_currency,
    load,
    parse_event_id,
    resolve_bucket,
    save,
)
from trickle.core.exceptions import TrickleError
from trickle.core.models import Spend
from trickle.engine.event_log import bucket_names, find_event, spends
from trickle.engine.mutations import add_spend, update_spend
from trickle.engine.state import get_balance

spend_app = typer.Typer(help="Record and edit spending")


@spend_app.command(name="add")
def spend_add(
    name: str = typer.Argument(..., help="What the money was spent on"),
    amount: float = typer.Argument(..., help="Amount spent"),
    merchant: str = typer.Option(None, "--merchant", "-m", help="Merchant name"),
    payment_method: str = typer.Option(None, "--payment-method", help="Card or account used"),
    bucket: str = typer.Option(None, "--bucket", "-b", help="Pay out of this bucket (name or id)"),
    at: datetime = typer.Option(None, "--at", help="When it happened (default: now)"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Record a spend.

    Prints how much is left in the main balance afterwards.
    """
    config, path, app_data = load(data)
    when = at or datetime.now()

    from_bucket = resolve_bucket(app_data, bucket, when) if bucket else None
    spend = Spend(
        name=name,
        amount=amount,
        merchant=merchant,
        payment_method=payment_method,
        from_bucket=from_bucket,
        date_added=when,
    )
    app_data = add_spend(app_data, spend)
    save(app_data, path)

    remaining = get_balance(app_data, max(when, datetime.now()))
    console.print(
        f"[green]Added[/green] {format_currency(amount, config.currency)} transaction "
        f"from {merchant or name}, {format_currency(remaining, config.currency)} left"
    )


@spend_app.command(name="edit")
def spend_edit(
    spend_id: str = typer.Argument(..., help="Id of the spend to edit"),
    name: str = typer.Option(None, "--name", help="New name"),
    amount: float = typer.Option(None, "--amount", help="New amount"),
    merchant: str = typer.Option(None, "--merchant", "-m", help="New merchant"),
    at: datetime = typer.Option(None, "--at", help="New date"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Edit a recorded spend in place."""
    _, path, app_data = load(data)
    event_id = parse_event_id(spend_id)

    existing = find_event(app_data.events, event_id)
    if not isinstance(existing, Spend):
        console.print(f"[red]Error:[/red] No spend with id {event_id}")
        raise typer.Exit(1)

    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = name
    if amount is not None:
        changes["amount"] = amount
    if merchant is not None:
        changes["merchant"] = merchant
    if at is not None:
        changes["date_added"] = at

    if not changes:
        console.print("[yellow]Nothing to change[/yellow]")
        raise typer.Exit(0)

    try:
        app_data = update_spend(app_data, existing.model_copy(update=changes))
    except TrickleError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    save(app_data, path)
    console.print(f"[green]Updated:[/green] {event_id}")


@spend_app.command(name="list")
def spend_list(
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """List recorded spends, newest first."""
    config, _, app_data = load(data)
    recorded = sorted(spends(app_data.events), key=lambda s: s.date_added, reverse=True)

    if not recorded:
        console.print("[yellow]No spending recorded[/yellow]")
        return

    names = bucket_names(app_data.events)
    table = Table(title="Spending")
    table.add_column("Date")
    table.add_column("Name")
    table.add_column("Merchant")
    table.add_column("Bucket")
    table.add_column("Amount", justify="right")
    table.add_column("Id", style="dim")

    for spend in recorded:
        table.add_row(
            f"{spend.date_added:%Y-%m-%d %H:%M}",
            spend.name,
            spend.merchant or "",
            names.get(spend.from_bucket, "") if spend.from_bucket else "",
            format_currency(spend.amount, config.currency),
            str(spend.id),
        )
    console.print(table)
    console.print(f"[dim]Total: {format_currency(sum(s.amount for s in recorded), config.currency)}[/dim]")
