# -*- coding: utf-8 -*-
"""Application services."""

from pool_activity_monitor.services.activity import ActivityAggregator
from pool_activity_monitor.services.alerts import AlertComposer, AlertDeliveryQueue, DeliveryState
from pool_activity_monitor.services.ingestion import (
    IngestionGateway,
    IngestionResult,
    PoolTrackingCache,
)
from pool_activity_monitor.services.scheduler import ActivityScanScheduler, ChainScanResult

__all__ = [
    "ActivityAggregator",
    "ActivityScanScheduler",
    "AlertComposer",
    "AlertDeliveryQueue",
    "ChainScanResult",
    "DeliveryState",
    "IngestionGateway",
    "IngestionResult",
    "PoolTrackingCache",
]
