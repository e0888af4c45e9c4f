"""In-memory repository implementations."""

from pool_activity_monitor.persistence.repositories.in_memory.alert_registry import (
    InMemoryAlertRegistry,
)
from pool_activity_monitor.persistence.repositories.in_memory.event_store import (
    InMemoryEventStore,
)

__all__ = [
    "InMemoryAlertRegistry",
    "InMemoryEventStore",
]
