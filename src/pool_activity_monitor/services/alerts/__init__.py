"""Alert services: composition and paced delivery."""

from pool_activity_monitor.services.alerts.composer import (
    MAX_ALERT_LENGTH,
    AlertComposer,
    fallback_message,
    truncate,
)
from pool_activity_monitor.services.alerts.delivery_queue import (
    AlertDeliveryQueue,
    DeliveryState,
)

__all__ = [
    "MAX_ALERT_LENGTH",
    "AlertComposer",
    "AlertDeliveryQueue",
    "DeliveryState",
    "fallback_message",
    "truncate",
]
