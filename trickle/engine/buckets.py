"""Bucket simulation.

Computes a bucket's fill level at a query time from its configuration, the
instant its level was last known (the anchor) and the amount it held then.
Recurring buckets are evaluated in closed form, so a bucket that has cycled
daily for years costs the same as one created a second ago.

Besides the amount, a simulation reports how money moved while it ran:

    diverted  - drawn from the main balance into the bucket
    returned  - credited back to the main balance (auto-dumps, recurrence
                resets, overflow above the target)
    lost      - filled amount of a destroyed bucket, gone for good

so that `amount == start_amount + diverted - returned - lost`.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from trickle.core.models import BucketConfig, WhenFinished
from trickle.engine.temporal import NEGLIGIBLE_INCOME, seconds_between, shift


@dataclass(frozen=True)
class BucketSimulation:
    """Outcome of simulating one bucket up to a query time."""

    amount: float
    anchor: datetime
    diverted: float = 0.0
    returned: float = 0.0
    lost: float = 0.0
    filling: bool = False
    destroyed: bool = False


def never_fills(config: BucketConfig) -> bool:
    return config.income <= NEGLIGIBLE_INCOME


def is_recurring(config: BucketConfig) -> bool:
    """Whether the bucket resets on a fixed cycle.

    Destroyed buckets have nothing left to recur, and a bucket that never
    fills never reaches a cycle worth resetting.
    """
    return (
        config.recur is not None
        and config.recur > 0
        and config.when_finished is not WhenFinished.DESTROY
        and not never_fills(config)
    )


def _fill_window(
    config: BucketConfig,
    start: datetime,
    amount: float,
    until: datetime,
) -> BucketSimulation:
    """Simulate a single fill from `start` without any recurrence."""
    elapsed = seconds_between(start, until)
    target = config.target_amount

    if never_fills(config):
        level = min(max(amount + config.income * elapsed, 0.0), target)
        return BucketSimulation(
            amount=level,
            anchor=start,
            diverted=level - amount,
            filling=level < target,
        )

    missing = max(target - amount, 0.0)
    # Fill instant as a datetime, rounded to whole microseconds.
    full_at = shift(start, missing / config.income)
    if until < full_at:
        gained = min(config.income * elapsed, missing)
        return BucketSimulation(
            amount=amount + gained,
            anchor=start,
            diverted=gained,
            filling=True,
        )

    held = amount + missing

    match config.when_finished:
        case WhenFinished.WAIT_TO_DUMP:
            return BucketSimulation(
                amount=target,
                anchor=full_at,
                diverted=missing,
                returned=held - target,
            )
        case WhenFinished.AUTO_DUMP:
            return BucketSimulation(
                amount=0.0,
                anchor=full_at,
                diverted=missing,
                returned=held,
            )
        case WhenFinished.DESTROY:
            return BucketSimulation(
                amount=0.0,
                anchor=full_at,
                diverted=missing,
                lost=held,
                destroyed=True,
            )


def simulate_bucket(
    config: BucketConfig,
    anchor: datetime,
    until: datetime,
    amount: float = 0.0,
    phase: datetime | None = None,
) -> BucketSimulation:
    """Simulate a bucket from `anchor` (holding `amount`) up to `until`.

    Args:
        config: Bucket configuration in force over the whole window.
        anchor: Instant the amount was last known exactly. Must not be after
            `until`.
        until: Query time.
        amount: Amount held at `anchor`.
        phase: Origin of the recurrence cycles (defaults to `anchor`). Lets a
            window start part-way through a cycle.

    Returns:
        BucketSimulation for `until`.

    Within each cycle a recurring bucket behaves like a one-off bucket that
    starts empty at the cycle start. At every boundary whatever it holds is
    returned to the main balance and it starts again from zero; the boundary
    instant itself already reads as reset.
    """
    if not is_recurring(config):
        return _fill_window(config, anchor, amount, until)

    period = config.recur
    origin = anchor if phase is None else phase
    first_cycle = math.floor(seconds_between(origin, anchor) / period)
    current_cycle = math.floor(seconds_between(origin, until) / period)

    if current_cycle <= first_cycle:
        return _fill_window(config, anchor, amount, until)

    # Partial cycle the anchor sits in, run to its boundary and reset.
    first_boundary = shift(origin, (first_cycle + 1) * period)
    head = _fill_window(config, anchor, amount, first_boundary)

    # Identical full cycles: each moves min(target, period * income) in and out.
    full_cycles = current_cycle - first_cycle - 1
    per_cycle = min(config.target_amount, config.income * period)

    cycle_start = shift(origin, current_cycle * period)
    tail = _fill_window(config, cycle_start, 0.0, until)

    return BucketSimulation(
        amount=tail.amount,
        anchor=tail.anchor,
        diverted=head.diverted + full_cycles * per_cycle + tail.diverted,
        returned=head.returned + head.amount + full_cycles * per_cycle + tail.returned,
        filling=tail.filling,
    )


def time_to_full(config: BucketConfig, amount: float = 0.0) -> float | None:
    """Seconds until a bucket holding `amount` is full (None if it never fills)."""
    if never_fills(config):
        return None
    return max(config.target_amount - amount, 0.0) / config.income
