"""Implementation of 'trickle bucket' commands.

Create, reconfigure, dump and delete savings buckets.
"""

from datetime import datetime
from pathlib import Path
from uuid import UUID, uuid4

import typer

from trickle.cli.utils import console, format_currency, load, resolve_bucket, save
from trickle.core.models import AppData, BucketConfig, WhenFinished
from trickle.engine.mutations import (
    add_bucket,
    delete_bucket,
    delete_event,
    dump_bucket,
    update_bucket,
)
from trickle.engine.state import get_app_state
from trickle.engine.temporal import SECONDS_PER_DAY, per_second

bucket_app = typer.Typer(help="Manage savings buckets")


def _build_config(
    name: str,
    target: float,
    monthly_income: float | None,
    complete_by: datetime | None,
    when_finished: WhenFinished,
    recur_days: float | None,
    start: datetime,
) -> BucketConfig:
    recur = recur_days * SECONDS_PER_DAY if recur_days else None
    if complete_by is not None:
        if complete_by <= start:
            console.print("[red]Error:[/red] --complete-by must be in the future")
            raise typer.Exit(1)
        return BucketConfig.from_completion_date(
            name, target, start, complete_by, when_finished=when_finished, recur=recur
        )
    if monthly_income is None:
        console.print("[red]Error:[/red] Give either --monthly-income or --complete-by")
        raise typer.Exit(1)
    return BucketConfig.from_monthly(
        name, target, monthly_income, when_finished=when_finished, recur=recur
    )


def _current_config(app_data: AppData, bucket_id: UUID, when: datetime) -> BucketConfig:
    bucket = get_app_state(app_data, when).buckets.get(bucket_id)
    if bucket is None:
        console.print(f"[red]Error:[/red] Bucket {bucket_id} does not exist at {when:%Y-%m-%d %H:%M}")
        raise typer.Exit(1)
    return bucket.config


@bucket_app.command(name="add")
def bucket_add(
    name: str = typer.Argument(..., help="Bucket name"),
    target: float = typer.Argument(..., help="Target amount"),
    monthly_income: float = typer.Option(None, "--monthly-income", "-i", help="Income per month"),
    complete_by: datetime = typer.Option(None, "--complete-by", help="Fill exactly by this date"),
    when_finished: WhenFinished = typer.Option(
        WhenFinished.WAIT_TO_DUMP,
        "--when-finished",
        "-f",
        help="What happens once the bucket is full",
    ),
    recur_days: float = typer.Option(None, "--recur-days", "-r", help="Refill every N days"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Create a bucket that redirects income toward a target."""
    config, path, app_data = load(data)
    now = datetime.now()

    bucket_config = _build_config(
        name, target, monthly_income, complete_by, when_finished, recur_days, now
    )
    bucket_id = uuid4()
    app_data = add_bucket(app_data, bucket_config, when=now, bucket_id=bucket_id)
    save(app_data, path)

    console.print(f"[green]Created bucket:[/green] {name} ({bucket_id})")
    console.print(f"  Monthly income: {format_currency(bucket_config.monthly_income, config.currency)}")
    full_at = bucket_config.completion_time(now)
    if full_at is not None:
        console.print(f"  Full by:        {full_at:%Y-%m-%d}")


@bucket_app.command(name="update")
def bucket_update(
    bucket: str = typer.Argument(..., help="Bucket name or id"),
    name: str = typer.Option(None, "--name", help="New name"),
    target: float = typer.Option(None, "--target", "-t", help="New target amount"),
    monthly_income: float = typer.Option(None, "--monthly-income", "-i", help="New income per month"),
    when_finished: WhenFinished = typer.Option(None, "--when-finished", "-f", help="New completion behaviour"),
    recur_days: float = typer.Option(None, "--recur-days", "-r", help="Refill every N days (0 = never)"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Change a bucket's configuration from now on. Its amount carries over."""
    _, path, app_data = load(data)
    now = datetime.now()
    bucket_id = resolve_bucket(app_data, bucket, now)
    current = _current_config(app_data, bucket_id, now)

    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = name
    if target is not None:
        changes["target_amount"] = target
    if monthly_income is not None:
        changes["income"] = per_second(monthly_income)
    if when_finished is not None:
        changes["when_finished"] = when_finished
    if recur_days is not None:
        changes["recur"] = recur_days * SECONDS_PER_DAY if recur_days > 0 else None

    if not changes:
        console.print("[yellow]Nothing to change[/yellow]")
        raise typer.Exit(0)

    app_data = update_bucket(app_data, bucket_id, current.model_copy(update=changes), when=now)
    save(app_data, path)
    console.print(f"[green]Updated bucket:[/green] {changes.get('name', current.name)}")


@bucket_app.command(name="dump")
def bucket_dump(
    bucket: str = typer.Argument(..., help="Bucket name or id"),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Move a bucket's current amount back into the main balance."""
    config, path, app_data = load(data)
    now = datetime.now()
    bucket_id = resolve_bucket(app_data, bucket, now)

    before = get_app_state(app_data, now).buckets.get(bucket_id)
    if before is None:
        console.print("[yellow]Bucket no longer exists, nothing to dump[/yellow]")
        raise typer.Exit(0)

    app_data = dump_bucket(app_data, bucket_id, when=now)
    save(app_data, path)
    console.print(
        f"[green]Dumped[/green] {format_currency(before.amount, config.currency)} "
        f"from {before.config.name}"
    )


@bucket_app.command(name="delete")
def bucket_delete(
    bucket: str = typer.Argument(..., help="Bucket name or id"),
    erase: bool = typer.Option(
        False,
        "--erase",
        help="Erase the bucket's whole history instead of closing it now",
    ),
    data: Path = typer.Option(None, "--data", "-d", help="Path to app data file"),
) -> None:
    """Delete a bucket.

    By default the bucket is closed now and whatever it holds returns to the
    main balance. With --erase it is removed from history as if it never
    existed.
    """
    _, path, app_data = load(data)
    now = datetime.now()
    bucket_id = resolve_bucket(app_data, bucket, now)

    if erase:
        app_data = delete_event(app_data, bucket_id)
    else:
        app_data = delete_bucket(app_data, bucket_id, when=now)
    save(app_data, path)
    console.print(f"[green]Deleted bucket:[/green] {bucket_id}")
