"""SQL (SQLAlchemy asyncio) repository implementations."""

from pool_activity_monitor.persistence.repositories.sql.alert_registry import SqlAlertRegistry
from pool_activity_monitor.persistence.repositories.sql.event_store import SqlEventStore

__all__ = [
    "SqlAlertRegistry",
    "SqlEventStore",
]
