"""State derivation.

Folds the event log as of a query time into an `AppState`. The fold is a pure
function of `(AppData, as_of)`: it walks the events dated at or before
`as_of` once, in chronological order, and lets each bucket's closed-form
simulation account for everything that happened between two events.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import assert_never
from uuid import UUID

import structlog

from trickle.core.models import (
    AddBucket,
    AppData,
    AppState,
    BucketConfig,
    BucketRuntimeState,
    DeleteBucket,
    DumpBucket,
    Event,
    SetMonthlyRate,
    SetStartDate,
    Spend,
    UpdateBucket,
)
from trickle.engine.buckets import BucketSimulation, is_recurring, simulate_bucket
from trickle.engine.event_log import events_until
from trickle.engine.temporal import accrued, per_second, shift

logger = structlog.get_logger(__name__)


@dataclass
class _BucketTrack:
    """Running ledger of one bucket while the fold walks the log."""

    bucket_id: UUID
    config: BucketConfig
    anchor: datetime
    phase: datetime
    amount: float = 0.0
    diverted: float = 0.0
    returned: float = 0.0
    lost: float = 0.0

    def at(self, when: datetime) -> BucketSimulation:
        return simulate_bucket(self.config, self.anchor, when, self.amount, self.phase)

    def settle(
        self,
        sim: BucketSimulation,
        when: datetime,
        amount: float,
        *,
        released: float = 0.0,
        config: BucketConfig | None = None,
        restart_phase: bool = False,
    ) -> None:
        """Book `sim` and re-anchor the bucket at `when` holding `amount`."""
        self.diverted += sim.diverted
        self.returned += sim.returned + released
        self.lost += sim.lost
        self.anchor = when
        self.amount = amount
        if config is not None:
            self.config = config
        if restart_phase:
            self.phase = when


class _Fold:
    """Mutable accumulator used by a single `get_app_state` call."""

    def __init__(self, data: AppData):
        self.monthly_rate = data.monthly_rate
        self.start_date = data.start_date
        self.main_spent = 0.0
        self.live: dict[UUID, _BucketTrack] = {}
        self.closed: list[_BucketTrack] = []
        self.seen: set[UUID] = set()

    def advance(self, bucket_id: UUID, when: datetime) -> tuple[_BucketTrack, BucketSimulation] | None:
        """Simulate a live bucket up to `when`; None if absent or destroyed by then."""
        track = self.live.get(bucket_id)
        if track is None:
            return None
        sim = track.at(when)
        if sim.destroyed:
            track.settle(sim, when, 0.0)
            self.close(bucket_id)
            logger.debug("bucket_destroyed", bucket_id=str(bucket_id), at=sim.anchor.isoformat())
            return None
        return track, sim

    def close(self, bucket_id: UUID) -> None:
        self.closed.append(self.live.pop(bucket_id))

    def apply(self, event: Event) -> None:
        match event:
            case SetMonthlyRate():
                self.monthly_rate = event.rate
            case SetStartDate():
                self.start_date = event.start_date
            case Spend():
                self.apply_spend(event)
            case AddBucket():
                if event.id in self.seen:
                    logger.debug("duplicate_bucket_ignored", bucket_id=str(event.id))
                    return
                self.seen.add(event.id)
                self.live[event.id] = _BucketTrack(
                    bucket_id=event.id,
                    config=event.bucket_to_add,
                    anchor=event.date_added,
                    phase=event.date_added,
                )
            case UpdateBucket():
                found = self.advance(event.bucket_id, event.date_added)
                if found is None:
                    logger.debug("update_for_missing_bucket", bucket_id=str(event.bucket_id))
                    return
                track, sim = found
                track.settle(
                    sim,
                    event.date_added,
                    sim.amount,
                    config=event.new_config,
                    restart_phase=True,
                )
            case DumpBucket():
                found = self.advance(event.bucket_id, event.date_added)
                if found is None:
                    logger.debug("dump_for_missing_bucket", bucket_id=str(event.bucket_id))
                    return
                track, sim = found
                track.settle(sim, event.date_added, 0.0, released=sim.amount, restart_phase=True)
                # A one-off bucket has served its purpose once dumped.
                if not is_recurring(track.config):
                    self.close(event.bucket_id)
            case DeleteBucket():
                found = self.advance(event.bucket_id, event.date_added)
                if found is None:
                    logger.debug("delete_for_missing_bucket", bucket_id=str(event.bucket_id))
                    return
                track, sim = found
                track.settle(sim, event.date_added, 0.0, released=sim.amount)
                self.close(event.bucket_id)
            case _:
                assert_never(event)

    def apply_spend(self, spend: Spend) -> None:
        """Charge a spend to its bucket, falling back to the main balance.

        The bucket covers what it holds at that instant; anything beyond that,
        or a spend naming a bucket that is gone, hits the main balance.
        """
        found = None
        if spend.from_bucket is not None:
            found = self.advance(spend.from_bucket, spend.date_added)
        if found is None:
            self.main_spent += spend.amount
            return

        track, sim = found
        covered = max(min(spend.amount, sim.amount), 0.0)
        self.main_spent += spend.amount - covered
        if covered:
            # Recurrence phase is kept: the next reset wipes the adjustment.
            track.settle(sim, spend.date_added, sim.amount - covered)

    def finish(self, as_of: datetime) -> AppState:
        buckets: dict[UUID, BucketRuntimeState] = {}
        bucket_income = 0.0
        diverted = sum(t.diverted for t in self.closed)
        returned = sum(t.returned for t in self.closed)

        for bucket_id in list(self.live):
            track = self.live[bucket_id]
            sim = track.at(as_of)
            diverted += track.diverted + sim.diverted
            returned += track.returned + sim.returned
            if sim.destroyed:
                continue
            if sim.filling:
                bucket_income += track.config.income
            buckets[bucket_id] = BucketRuntimeState(
                id=bucket_id,
                config=track.config,
                amount=sim.amount,
                anchor_time=sim.anchor,
                filling=sim.filling,
            )

        rate = per_second(self.monthly_rate)
        gross = accrued(rate, self.start_date, as_of)
        return AppState(
            balance=gross - self.main_spent - diverted + returned,
            buckets=buckets,
            total_income_per_second=rate,
            bucket_income_per_second=bucket_income,
        )


def get_app_state(data: AppData, as_of: datetime) -> AppState:
    """Derive the account state at `as_of`.

    Args:
        data: Root configuration and event log.
        as_of: Query time. Events dated after it are ignored.

    Returns:
        AppState with the main balance, every live bucket and income rates.
    """
    fold = _Fold(data)
    for event in events_until(data.events, as_of):
        fold.apply(event)
    return fold.finish(as_of)


def get_balance(data: AppData, as_of: datetime) -> float:
    """Main balance at `as_of`."""
    return get_app_state(data, as_of).balance


def effective_monthly_rate(data: AppData, as_of: datetime) -> float:
    """Monthly rate in force at `as_of`."""
    rate = data.monthly_rate
    for event in events_until(data.events, as_of):
        if isinstance(event, SetMonthlyRate):
            rate = event.rate
    return rate


def effective_start_date(data: AppData, as_of: datetime) -> datetime:
    """Start date in force at `as_of`."""
    start = data.start_date
    for event in events_until(data.events, as_of):
        if isinstance(event, SetStartDate):
            start = event.start_date
    return start


def balance_timeline(
    data: AppData,
    start: datetime,
    steps: int = 5,
    step_seconds: float = 60 * 60,
) -> list[tuple[datetime, float]]:
    """Main balance sampled at `start` and every `step_seconds` after it.

    Mirrors the hourly timeline a home-screen widget refreshes from.
    """
    points = []
    for step in range(steps):
        when = shift(start, step * step_seconds)
        points.append((when, get_balance(data, when)))
    return points
