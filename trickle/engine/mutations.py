"""Mutation API.

Every operation takes an `AppData` and returns a new one with the change
recorded in its event log. Nothing is derived eagerly; call
`get_app_state` when a snapshot is needed.
"""

from datetime import datetime
from uuid import UUID, uuid4

import structlog

from trickle.core.exceptions import EventNotFoundError
from trickle.core.models import (
    AddBucket,
    AppData,
    BucketConfig,
    DeleteBucket,
    DumpBucket,
    Event,
    SetMonthlyRate,
    SetStartDate,
    Spend,
    UpdateBucket,
)
from trickle.engine import event_log

logger = structlog.get_logger(__name__)


def _with_events(data: AppData, events: tuple[Event, ...]) -> AppData:
    return data.model_copy(update={"events": events})


def _record(data: AppData, event: Event) -> AppData:
    logger.debug("event_appended", kind=event.kind, event_id=str(event.id))
    return _with_events(data, event_log.append(data.events, event))


def _now(when: datetime | None) -> datetime:
    return when if when is not None else datetime.now()


# -----------------------------------------------------------------------------
# Spends
# -----------------------------------------------------------------------------


def add_spend(data: AppData, spend: Spend) -> AppData:
    return _record(data, spend)


def update_spend(data: AppData, spend: Spend) -> AppData:
    """Replace the spend sharing `spend.id` in place.

    Raises:
        EventNotFoundError: If there is no spend with that id.
    """
    existing = event_log.find_event(data.events, spend.id)
    if not isinstance(existing, Spend):
        raise EventNotFoundError(spend.id, kind="spend")
    logger.debug("spend_replaced", event_id=str(spend.id))
    return _with_events(data, event_log.replace_by_id(data.events, spend))


def delete_event(data: AppData, event_id: UUID) -> AppData:
    """Erase an event from the log.

    Deleting a bucket's creation event erases the bucket's whole history.
    Unknown ids are ignored.
    """
    logger.debug("event_removed", event_id=str(event_id))
    return _with_events(data, event_log.remove_by_id(data.events, event_id))


# -----------------------------------------------------------------------------
# Buckets
# -----------------------------------------------------------------------------


def add_bucket(
    data: AppData,
    config: BucketConfig,
    when: datetime | None = None,
    bucket_id: UUID | None = None,
) -> AppData:
    """Create a bucket. `bucket_id` lets the caller pick the id up front."""
    event = AddBucket(
        id=bucket_id or uuid4(),
        date_added=_now(when),
        bucket_to_add=config,
    )
    return _record(data, event)


def update_bucket(
    data: AppData,
    bucket_id: UUID,
    new_config: BucketConfig,
    when: datetime | None = None,
) -> AppData:
    event = UpdateBucket(date_added=_now(when), bucket_id=bucket_id, new_config=new_config)
    return _record(data, event)


def dump_bucket(data: AppData, bucket_id: UUID, when: datetime | None = None) -> AppData:
    """Credit a bucket's current amount back to the main balance."""
    return _record(data, DumpBucket(date_added=_now(when), bucket_to_dump=bucket_id))


def delete_bucket(data: AppData, bucket_id: UUID, when: datetime | None = None) -> AppData:
    """Close a bucket from `when` on, returning what it holds to the main balance.

    Use `delete_event(data, bucket_id)` instead to erase it retroactively.
    """
    return _record(data, DeleteBucket(date_added=_now(when), bucket_id=bucket_id))


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------


def set_monthly_rate(data: AppData, rate: float, when: datetime | None = None) -> AppData:
    return _record(data, SetMonthlyRate(date_added=_now(when), rate=rate))


def set_start_date(data: AppData, start_date: datetime, when: datetime | None = None) -> AppData:
    return _record(data, SetStartDate(date_added=_now(when), start_date=start_date))
