"""Exceptions subpackage."""

from pool_activity_monitor.exceptions.exceptions import (
    AggregationError,
    ApiError,
    CompositionError,
    DeliveryError,
    MissingRequiredConfigError,
    MonitorError,
    PersistenceError,
    RateLimitError,
    ValidationError,
)
from pool_activity_monitor.exceptions.queue_exceptions import (
    QueueEmpty,
    QueueError,
    QueueFull,
    QueueShutdown,
)

__all__ = [
    "AggregationError",
    "ApiError",
    "CompositionError",
    "DeliveryError",
    "MissingRequiredConfigError",
    "MonitorError",
    "PersistenceError",
    "RateLimitError",
    "ValidationError",
    "QueueEmpty",
    "QueueError",
    "QueueFull",
    "QueueShutdown",
]
