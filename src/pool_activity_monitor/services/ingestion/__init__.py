"""Ingestion services: gateway and known-pool cache."""

from pool_activity_monitor.services.ingestion.ingestion_gateway import (
    IngestionGateway,
    IngestionResult,
)
from pool_activity_monitor.services.ingestion.pool_cache import PoolTrackingCache

__all__ = ["IngestionGateway", "IngestionResult", "PoolTrackingCache"]
