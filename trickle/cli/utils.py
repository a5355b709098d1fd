"""Shared helpers for CLI commands."""

from datetime import datetime
from pathlib import Path
from uuid import UUID

import typer
from rich.console import Console

from trickle.core.config import TrickleConfig, load_config
from trickle.core.models import AppData
from trickle.core.exceptions import StorageError
from trickle.core.storage import load_app_data, save_app_data
from trickle.engine.event_log import bucket_names
from trickle.engine.state import get_app_state

console = Console()

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount for display, e.g. `$1,234.50` or `-$3.00`."""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    if amount < 0:
        return f"-{symbol}{abs(amount):,.2f}"
    return f"{symbol}{amount:,.2f}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def resolve_data_path(data: Path | None, config: TrickleConfig | None = None) -> Path:
    """Data file from the `--data` option, else from configuration."""
    if data is not None:
        return data.expanduser()
    return (config or load_config()).data_path


def load(data: Path | None) -> tuple[TrickleConfig, Path, AppData]:
    """Load configuration, data file path and app data for a command."""
    config = load_config()
    path = resolve_data_path(data, config)
    return config, path, load_app_data(path, config.default_monthly_rate)


def save(app_data: AppData, path: Path) -> None:
    try:
        save_app_data(app_data, path)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def resolve_bucket(app_data: AppData, ref: str, when: datetime | None = None) -> UUID:
    """Find a bucket by id or (case-insensitive) name.

    Live buckets win over buckets that no longer exist when names clash.
    Exits with an error message if nothing matches.
    """
    try:
        return UUID(ref)
    except ValueError:
        pass

    live = get_app_state(app_data, when or datetime.now()).buckets
    for bucket_id, bucket in live.items():
        if bucket.config.name.lower() == ref.lower():
            return bucket_id
    for bucket_id, name in bucket_names(app_data.events).items():
        if name.lower() == ref.lower():
            return bucket_id

    console.print(f"[red]Error:[/red] No bucket named '{ref}'")
    raise typer.Exit(1)


def parse_event_id(ref: str) -> UUID:
    try:
        return UUID(ref)
    except ValueError:
        console.print(f"[red]Error:[/red] '{ref}' is not a valid event id")
        raise typer.Exit(1)
