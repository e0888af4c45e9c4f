"""Envelope for items travelling through a queue."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class QueueMessage[T]:
    """Queued payload with an id (for log correlation) and first enqueue time.

    Requeueing a message with a new payload keeps both, so the age covers
    every retry.
    """

    id: uuid.UUID
    payload: T
    enqueued_at: datetime

    @classmethod
    def create(cls, payload: T) -> QueueMessage[T]:
        return cls(id=uuid.uuid4(), payload=payload, enqueued_at=datetime.now(UTC))

    def with_payload(self, payload: T) -> QueueMessage[T]:
        """Return the same message (id, enqueued_at) carrying a new payload."""
        return replace(self, payload=payload)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds since the message was first enqueued."""
        return ((now or datetime.now(UTC)) - self.enqueued_at).total_seconds()
