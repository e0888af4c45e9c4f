# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, sql)."""

from pool_activity_monitor.persistence.repositories.interfaces import (
    IAlertRegistry,
    IEventStore,
)
from pool_activity_monitor.persistence.repositories.in_memory import (
    InMemoryAlertRegistry,
    InMemoryEventStore,
)
from pool_activity_monitor.persistence.repositories.sql import (
    SqlAlertRegistry,
    SqlEventStore,
)

__all__ = [
    "IAlertRegistry",
    "IEventStore",
    "InMemoryAlertRegistry",
    "InMemoryEventStore",
    "SqlAlertRegistry",
    "SqlEventStore",
]
