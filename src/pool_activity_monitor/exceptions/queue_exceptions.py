"""Exceptions raised by the queue package (mapped from asyncio's queue errors)."""

from __future__ import annotations


class QueueError(Exception):
    """Base exception for queue operations."""


class QueueFull(QueueError):
    """put_nowait on a bounded queue at maxsize."""


class QueueEmpty(QueueError):
    """get_nowait with nothing waiting."""


class QueueShutdown(QueueError):
    """Put after shutdown(), or get once a shut-down queue is drained."""
