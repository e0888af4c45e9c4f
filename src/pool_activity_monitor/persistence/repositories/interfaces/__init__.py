# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/ and sql/."""

from pool_activity_monitor.persistence.repositories.interfaces.alert_registry import (
    IAlertRegistry,
)
from pool_activity_monitor.persistence.repositories.interfaces.event_store import (
    IEventStore,
)

__all__ = [
    "IAlertRegistry",
    "IEventStore",
]
