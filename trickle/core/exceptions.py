"""Exceptions raised by Trickle.

The derivation engine itself never raises on well-typed input; these cover
mutations that name something that is not there and the persistence boundary.
"""

from uuid import UUID


class TrickleError(Exception):
    """Base class for all Trickle errors."""


class EventNotFoundError(TrickleError):
    """An operation referenced an event id that is not in the log."""

    def __init__(self, event_id: UUID, kind: str = "event"):
        self.event_id = event_id
        self.kind = kind
        super().__init__(f"No {kind} with id {event_id}")


class StorageError(TrickleError):
    """App data could not be written to disk."""
