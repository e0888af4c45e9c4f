"""Logging setup (structlog over stdlib, optional Logfire)."""

from pool_activity_monitor.logging.config import configure_logging

__all__ = ["configure_logging"]
