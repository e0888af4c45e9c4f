# -*- coding: utf-8 -*-
"""Async FIFO queue interface used by the alert delivery queue."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IAsyncQueue[T](ABC):
    """FIFO queue of pending work: non-blocking put/get, discard and shutdown.

    Items put back after a failed attempt go to the tail, behind everything
    already waiting. Use the exceptions from exceptions.queue_exceptions
    (QueueFull, QueueEmpty, QueueShutdown) where specified.
    """

    @abstractmethod
    def put_nowait(self, item: T) -> None:
        """Append item at the tail.

        Raises:
            QueueFull: If the queue has reached its maximum size.
            QueueShutdown: If the queue has been shut down.
        """
        ...

    @abstractmethod
    def get_nowait(self) -> T:
        """Remove and return the head item.

        Raises:
            QueueEmpty: If the queue has no items (and is not shut down).
            QueueShutdown: If the queue has been shut down and is empty.
        """
        ...

    @abstractmethod
    async def get(self) -> T:
        """Remove and return the head item, waiting until one is available.

        Raises:
            QueueShutdown: If the queue has been shut down and is empty.
        """
        ...

    @abstractmethod
    def clear(self) -> int:
        """Drop every waiting item. Returns how many were dropped."""
        ...

    @abstractmethod
    def shutdown(self, immediate: bool = False) -> None:
        """Refuse new items. With immediate=True, waiting items are dropped too."""
        ...

    @abstractmethod
    def qsize(self) -> int:
        """Return the number of waiting items."""
        ...

    @abstractmethod
    def empty(self) -> bool:
        """Return True if no item is waiting."""
        ...
