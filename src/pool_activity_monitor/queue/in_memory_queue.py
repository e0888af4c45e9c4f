# -*- coding: utf-8 -*-
"""In-memory async queue implementation."""

from __future__ import annotations

import asyncio

from pool_activity_monitor.exceptions import (
    QueueEmpty,
    QueueFull,
    QueueShutdown,
)
from pool_activity_monitor.queue.base import IAsyncQueue


class InMemoryQueue[T](IAsyncQueue[T]):
    """IAsyncQueue backed by asyncio.Queue. Contents are lost on restart."""

    def __init__(self, maxsize: int = 0) -> None:
        """Initialize the queue.

        Args:
            maxsize: Maximum number of items. 0 means unbounded.
        """
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)

    def __len__(self) -> int:
        return self._queue.qsize()

    def put_nowait(self, item: T) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e
        except asyncio.QueueFull as e:
            raise QueueFull from e

    def get_nowait(self) -> T:
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e
        except asyncio.QueueEmpty as e:
            raise QueueEmpty from e
        # Nothing joins on this queue; keep the unfinished-task counter balanced.
        self._queue.task_done()
        return item

    async def get(self) -> T:
        try:
            item = await self._queue.get()
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e
        self._queue.task_done()
        return item

    def clear(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except (asyncio.QueueEmpty, asyncio.QueueShutDown):
                return dropped
            self._queue.task_done()
            dropped += 1

    def shutdown(self, immediate: bool = False) -> None:
        self._queue.shutdown(immediate)

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()
