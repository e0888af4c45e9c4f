"""Pool activity monitor: DEX swap ingestion, activity aggregation and paced alerting."""

from pool_activity_monitor.config import get_settings
from pool_activity_monitor.DI import Container
from pool_activity_monitor.services.activity import ActivityAggregator
from pool_activity_monitor.services.alerts import AlertComposer, AlertDeliveryQueue
from pool_activity_monitor.services.ingestion import IngestionGateway
from pool_activity_monitor.services.scheduler import ActivityScanScheduler

__version__ = "0.1.0"
__all__ = [
    "ActivityAggregator",
    "ActivityScanScheduler",
    "AlertComposer",
    "AlertDeliveryQueue",
    "Container",
    "IngestionGateway",
    "get_settings",
]
