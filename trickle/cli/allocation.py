"""Implementation of 'trickle allocation' command.

Shows how monthly income is split between the main balance and buckets.
"""

from datetime import datetime
from pathlib import Path

import typer

from trickle.cli.utils import console, format_currency, format_percentage, load
from trickle.engine.allocation import calculate_budget_allocation
from trickle.engine.state import get_app_state


def allocation_command(
    at: datetime = typer.Option(None, "--at", help="Allocation at this time (default: now)"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Show the monthly income split between main balance and buckets."""
    config, _, app_data = load(data)
    currency = config.currency

    allocation = calculate_budget_allocation(get_app_state(app_data, at or datetime.now()))

    console.print()
    console.print(f"[bold]Total monthly income:[/bold] {format_currency(allocation.monthly_total_income, currency):>12}")
    console.print(f"  Main balance:       {format_currency(allocation.monthly_main_income, currency):>12}")
    console.print(f"  Buckets:            {format_currency(allocation.monthly_bucket_income, currency):>12}")
    for row in allocation.buckets:
        marker = "" if row.filling else " [dim](not filling)[/dim]"
        console.print(f"    {row.name}: {format_currency(row.monthly_income, currency)}{marker}")
    console.print()
    console.print(f"[dim]{format_percentage(allocation.allocation_percentage)} of income allocated to buckets[/dim]")

    if allocation.is_over_budget:
        console.print("[red]⚠ Buckets take more than your income; the main balance is shrinking[/red]")
