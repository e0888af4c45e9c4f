"""Persistence layer (database, tables, repositories)."""

from pool_activity_monitor.persistence.database import Database
from pool_activity_monitor.persistence.repositories import (
    IAlertRegistry,
    IEventStore,
    InMemoryAlertRegistry,
    InMemoryEventStore,
    SqlAlertRegistry,
    SqlEventStore,
)

__all__ = [
    "Database",
    "IAlertRegistry",
    "IEventStore",
    "InMemoryAlertRegistry",
    "InMemoryEventStore",
    "SqlAlertRegistry",
    "SqlEventStore",
]
