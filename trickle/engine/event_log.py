"""Event log operations.

The log is a tuple of events in insertion order. Nothing here mutates it:
every operation returns a new tuple.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from trickle.core.exceptions import EventNotFoundError
from trickle.core.models import (
    AddBucket,
    DeleteBucket,
    DumpBucket,
    Event,
    Spend,
    UpdateBucket,
)

EventLog = tuple[Event, ...]


def append(events: Iterable[Event], event: Event) -> EventLog:
    """Return a new log with `event` at the end."""
    return (*events, event)


def referenced_bucket(event: Event) -> UUID | None:
    """Bucket id a bucket lifecycle event belongs to (None for anything else)."""
    if isinstance(event, (AddBucket, UpdateBucket, DumpBucket, DeleteBucket)):
        return event.bucket_id
    return None


def remove_by_id(events: Iterable[Event], event_id: UUID) -> EventLog:
    """Drop the event with `event_id`.

    Removing an `AddBucket` erases the whole bucket: its updates, dumps and
    deletion go too. Spends that named the bucket stay and fall back to the
    main balance. Unknown ids leave the log unchanged.
    """
    events = tuple(events)
    target = find_event(events, event_id)
    if target is None:
        return events

    erased_bucket = target.id if isinstance(target, AddBucket) else None
    return tuple(
        e
        for e in events
        if e.id != event_id and (erased_bucket is None or referenced_bucket(e) != erased_bucket)
    )


def replace_by_id(events: Iterable[Event], event: Event) -> EventLog:
    """Swap the event sharing `event.id` for `event`, keeping its position.

    Raises:
        EventNotFoundError: If no event has that id.
    """
    events = tuple(events)
    for index, existing in enumerate(events):
        if existing.id == event.id:
            return (*events[:index], event, *events[index + 1 :])
    raise EventNotFoundError(event.id)


def find_event(events: Iterable[Event], event_id: UUID) -> Event | None:
    for event in events:
        if event.id == event_id:
            return event
    return None


def events_until(events: Iterable[Event], when: datetime) -> list[Event]:
    """Events dated at or before `when`, oldest first.

    Events sharing a timestamp keep their log order (the sort is stable).
    """
    return sorted(
        (e for e in events if e.date_added <= when),
        key=lambda e: e.date_added,
    )


def spends(events: Iterable[Event]) -> list[Spend]:
    return [e for e in events if isinstance(e, Spend)]


def bucket_events(events: Iterable[Event], bucket_id: UUID) -> list[Event]:
    """Lifecycle events and spends that concern one bucket, in log order."""
    return [
        e
        for e in events
        if referenced_bucket(e) == bucket_id
        or (isinstance(e, Spend) and e.from_bucket == bucket_id)
    ]


def bucket_names(events: Iterable[Event]) -> dict[UUID, str]:
    """Latest known name of every bucket ever created in the log."""
    names: dict[UUID, str] = {}
    for event in events:
        if isinstance(event, AddBucket):
            names[event.id] = event.bucket_to_add.name
        elif isinstance(event, UpdateBucket) and event.bucket_id in names:
            names[event.bucket_id] = event.new_config.name
    return names
