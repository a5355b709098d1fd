"""Implementation of 'trickle status' and 'trickle timeline' commands.

Shows the derived account state: main balance, buckets and income rates.
"""

from datetime import datetime
from pathlib import Path

import typer
from rich.panel import Panel
from rich.table import Table

from trickle.cli.utils import console, format_currency, load
from trickle.core.models import WhenFinished
from trickle.engine.state import balance_timeline, effective_start_date, get_app_state
from trickle.engine.temporal import SECONDS_PER_DAY, per_month

WHEN_FINISHED_LABELS = {
    WhenFinished.WAIT_TO_DUMP: "wait",
    WhenFinished.AUTO_DUMP: "auto-dump",
    WhenFinished.DESTROY: "destroy",
}


def status_command(
    at: datetime = typer.Option(
        None,
        "--at",
        help="Show state at this time (default: now)",
    ),
    data: Path = typer.Option(
        None,
        "--data",
        "-d",
        help="Path to app data file (default: from configuration)",
    ),
) -> None:
    """Show balance, buckets and income rates.

    The state is derived from the event log at the requested time, so
    pending recurrences and auto-dumps are already applied.
    """
    config, _, app_data = load(data)
    currency = config.currency
    when = at or datetime.now()

    state = get_app_state(app_data, when)
    start = effective_start_date(app_data, when)

    console.print()
    balance_style = "green" if state.balance >= 0 else "red"
    console.print(
        Panel(
            f"[bold {balance_style}]{format_currency(state.balance, currency)}[/bold {balance_style}]",
            title="Balance",
            style="cyan",
        )
    )
    console.print(f"  As of:          {when:%Y-%m-%d %H:%M:%S}")
    console.print(f"  Trickling since: {start:%Y-%m-%d}")

    monthly_total = per_month(state.total_income_per_second)
    monthly_buckets = per_month(state.bucket_income_per_second)
    console.print(f"  Monthly income: {format_currency(monthly_total, currency):>12}")
    console.print(f"  To buckets:     {format_currency(monthly_buckets, currency):>12}")
    console.print(f"  Per day:        {format_currency(state.total_income_per_second * SECONDS_PER_DAY, currency):>12}")
    console.print()

    if not state.buckets:
        console.print("[dim]No buckets[/dim]")
        return

    table = Table(title="Buckets")
    table.add_column("Name")
    table.add_column("Amount", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("When full")
    table.add_column("Recurs")

    for bucket in state.buckets.values():
        cfg = bucket.config
        progress = (bucket.amount / cfg.target_amount * 100) if cfg.target_amount > 0 else 0.0
        recur = f"{cfg.recur / SECONDS_PER_DAY:g}d" if cfg.recur else "-"
        table.add_row(
            cfg.name,
            format_currency(bucket.amount, currency),
            format_currency(cfg.target_amount, currency),
            f"{progress:.1f}%",
            WHEN_FINISHED_LABELS[cfg.when_finished],
            recur,
        )
    console.print(table)
    console.print(f"[dim]In buckets: {format_currency(state.bucket_total, currency)}[/dim]")


def timeline_command(
    hours: int = typer.Option(
        5,
        "--hours",
        "-n",
        min=1,
        help="Number of hourly points to show",
    ),
    data: Path = typer.Option(
        None,
        "--data",
        "-d",
        help="Path to app data file (default: from configuration)",
    ),
) -> None:
    """Show the projected balance hour by hour from now."""
    config, _, app_data = load(data)

    table = Table(title="Balance timeline")
    table.add_column("Time")
    table.add_column("Balance", justify="right")
    for when, balance in balance_timeline(app_data, datetime.now(), steps=hours):
        table.add_row(f"{when:%Y-%m-%d %H:%M}", format_currency(balance, config.currency))
    console.print(table)
