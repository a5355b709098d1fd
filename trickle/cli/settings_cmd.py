"""Implementation of 'trickle settings' commands.

Change the monthly spending rate and the date trickling started.
"""

from datetime import datetime
from pathlib import Path

import typer

from trickle.cli.utils import console, format_currency, load, save
from trickle.engine.mutations import set_monthly_rate, set_start_date
from trickle.engine.state import effective_monthly_rate, effective_start_date
from trickle.engine.temporal import SECONDS_PER_DAY, SECONDS_PER_WEEK, per_second

settings_app = typer.Typer(help="Monthly rate and start date")


@settings_app.command(name="show")
def settings_show(
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Show the rate and start date in force now."""
    config, path, app_data = load(data)
    now = datetime.now()
    rate = effective_monthly_rate(app_data, now)
    currency = config.currency

    console.print(f"Data file:    {path}")
    console.print(f"Monthly rate: {format_currency(rate, currency)}")
    console.print(f"  Per week:   {format_currency(per_second(rate) * SECONDS_PER_WEEK, currency)}")
    console.print(f"  Per day:    {format_currency(per_second(rate) * SECONDS_PER_DAY, currency)}")
    console.print(f"Start date:   {effective_start_date(app_data, now):%Y-%m-%d}")


@settings_app.command(name="rate")
def settings_rate(
    amount: float = typer.Argument(..., min=0, help="Monthly spending money, excluding bills"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Set the monthly spending rate."""
    config, path, app_data = load(data)
    app_data = set_monthly_rate(app_data, amount)
    save(app_data, path)
    console.print(f"[green]Monthly rate set:[/green] {format_currency(amount, config.currency)}")


@settings_app.command(name="start")
def settings_start(
    start: datetime = typer.Argument(..., help="Date trickling starts from"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Set the date income starts accruing from."""
    _, path, app_data = load(data)
    app_data = set_start_date(app_data, start)
    save(app_data, path)
    console.print(f"[green]Start date set:[/green] {start:%Y-%m-%d}")
