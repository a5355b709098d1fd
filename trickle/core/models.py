"""Domain models for Trickle.

All budgeting data structures are defined here using Pydantic v2. Every model
is frozen: events, configurations and derived snapshots are values, and
"changing" one means building a new one.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from trickle.engine.temporal import (
    income_for_completion,
    per_month,
    per_second,
    shift,
)

DEFAULT_MONTHLY_RATE = 1000.0


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class WhenFinished(str, Enum):
    """What a bucket does once it reaches its target amount.

    WAIT_TO_DUMP: Stay full until dumped (or until the next recurrence).
    AUTO_DUMP: Credit the full amount back to the main balance immediately.
    DESTROY: Disappear; the filled amount is spent on the goal.
    """

    WAIT_TO_DUMP = "wait_to_dump"
    AUTO_DUMP = "auto_dump"
    DESTROY = "destroy"


# -----------------------------------------------------------------------------
# Bucket Configuration
# -----------------------------------------------------------------------------


class BucketConfig(BaseModel):
    """Configuration of a savings bucket.

    Attributes:
        name: Display name.
        target_amount: Amount at which the bucket counts as full.
        income: Currency per second redirected from the main balance.
        when_finished: Behaviour once full.
        recur: Length of the fill/empty cycle in seconds (None = one-off).

    Values are not range-checked here: the editing layer owns validation and
    nonsensical configs simply yield nonsensical (but finite) results.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    target_amount: float
    income: float
    when_finished: WhenFinished = WhenFinished.WAIT_TO_DUMP
    recur: float | None = None

    @classmethod
    def from_monthly(
        cls,
        name: str,
        target_amount: float,
        monthly_income: float,
        when_finished: WhenFinished = WhenFinished.WAIT_TO_DUMP,
        recur: float | None = None,
    ) -> "BucketConfig":
        """Build a config from an income expressed per month."""
        return cls(
            name=name,
            target_amount=target_amount,
            income=per_second(monthly_income),
            when_finished=when_finished,
            recur=recur,
        )

    @classmethod
    def from_completion_date(
        cls,
        name: str,
        target_amount: float,
        start: datetime,
        completion: datetime,
        when_finished: WhenFinished = WhenFinished.WAIT_TO_DUMP,
        recur: float | None = None,
    ) -> "BucketConfig":
        """Build a config whose income fills the bucket exactly by `completion`."""
        return cls(
            name=name,
            target_amount=target_amount,
            income=income_for_completion(target_amount, start, completion),
            when_finished=when_finished,
            recur=recur,
        )

    @property
    def monthly_income(self) -> float:
        return per_month(self.income)

    def completion_time(self, start: datetime) -> datetime | None:
        """When an empty bucket started at `start` becomes full (None if never)."""
        if self.income <= 0:
            return None
        return shift(start, self.target_amount / self.income)


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    date_added: datetime = Field(default_factory=datetime.now)


class Spend(_EventBase):
    """A deduction, optionally paid out of a bucket."""

    kind: Literal["spend"] = "spend"
    name: str
    amount: float
    merchant: str | None = None
    payment_method: str | None = None
    from_bucket: UUID | None = None


class AddBucket(_EventBase):
    """Creates a bucket. The event id doubles as the bucket id."""

    kind: Literal["add_bucket"] = "add_bucket"
    bucket_to_add: BucketConfig

    @property
    def bucket_id(self) -> UUID:
        return self.id


class UpdateBucket(_EventBase):
    kind: Literal["update_bucket"] = "update_bucket"
    bucket_id: UUID
    new_config: BucketConfig


class DumpBucket(_EventBase):
    kind: Literal["dump_bucket"] = "dump_bucket"
    bucket_to_dump: UUID

    @property
    def bucket_id(self) -> UUID:
        return self.bucket_to_dump


class DeleteBucket(_EventBase):
    kind: Literal["delete_bucket"] = "delete_bucket"
    bucket_id: UUID


class SetMonthlyRate(_EventBase):
    kind: Literal["set_monthly_rate"] = "set_monthly_rate"
    rate: float


class SetStartDate(_EventBase):
    kind: Literal["set_start_date"] = "set_start_date"
    start_date: datetime


Event = Annotated[
    Spend | AddBucket | UpdateBucket | DumpBucket | DeleteBucket | SetMonthlyRate | SetStartDate,
    Field(discriminator="kind"),
]


# -----------------------------------------------------------------------------
# Root Aggregate
# -----------------------------------------------------------------------------


class AppData(BaseModel):
    """Everything the user has entered.

    `monthly_rate` and `start_date` are the root defaults; `SetMonthlyRate`
    and `SetStartDate` events override them from their date onward.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthly_rate: float = DEFAULT_MONTHLY_RATE
    start_date: datetime = Field(default_factory=datetime.now)
    events: tuple[Event, ...] = ()


class AppDataEnvelope(BaseModel):
    """Versioned wrapper used at the persistence boundary."""

    version: Literal["v1"] = "v1"
    payload: AppData


# -----------------------------------------------------------------------------
# Derived State (output models)
# -----------------------------------------------------------------------------


class BucketRuntimeState(BaseModel):
    """A bucket as of a query time.

    `anchor_time` is the last instant the fill level was known exactly:
    creation, update, dump, a recurrence boundary or the moment it filled.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    config: BucketConfig
    amount: float
    anchor_time: datetime
    filling: bool = False


class AppState(BaseModel):
    """Snapshot of the account at one instant. Never stored."""

    model_config = ConfigDict(frozen=True)

    balance: float
    buckets: dict[UUID, BucketRuntimeState] = Field(default_factory=dict)
    total_income_per_second: float = 0.0
    bucket_income_per_second: float = 0.0

    @property
    def bucket_total(self) -> float:
        """Sum of all live bucket amounts."""
        return sum(b.amount for b in self.buckets.values())


class BucketAllocation(BaseModel):
    """Monthly income flowing into one bucket."""

    bucket_id: UUID
    name: str
    monthly_income: float
    filling: bool


class BudgetAllocation(BaseModel):
    """How monthly income is split between the main balance and buckets."""

    monthly_total_income: float
    monthly_bucket_income: float
    monthly_main_income: float
    allocation_percentage: float
    is_over_budget: bool
    buckets: list[BucketAllocation] = Field(default_factory=list)
