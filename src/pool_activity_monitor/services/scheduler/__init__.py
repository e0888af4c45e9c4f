"""Scheduler services."""

from pool_activity_monitor.services.scheduler.activity_scheduler import (
    ActivityScanScheduler,
    ChainScanResult,
)

__all__ = ["ActivityScanScheduler", "ChainScanResult"]
