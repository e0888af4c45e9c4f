"""Dependency injection."""

from pool_activity_monitor.DI.container import Container

__all__ = ["Container"]
