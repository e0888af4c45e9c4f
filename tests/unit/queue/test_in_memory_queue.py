# -*- coding: utf-8 -*-
"""Unit tests for InMemoryQueue and QueueMessage."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from pool_activity_monitor.exceptions import QueueEmpty, QueueFull, QueueShutdown
from pool_activity_monitor.queue import InMemoryQueue, QueueMessage


async def test_fifo_order_and_size() -> None:
    queue: InMemoryQueue[str] = InMemoryQueue()
    for item in ("a", "b", "c"):
        queue.put_nowait(item)

    assert queue.qsize() == len(queue) == 3
    assert [queue.get_nowait(), await queue.get()] == ["a", "b"]
    assert not queue.empty()


async def test_empty_and_full_are_mapped() -> None:
    queue: InMemoryQueue[int] = InMemoryQueue(maxsize=1)
    with pytest.raises(QueueEmpty):
        queue.get_nowait()

    queue.put_nowait(1)
    with pytest.raises(QueueFull):
        queue.put_nowait(2)


async def test_clear_returns_dropped_count() -> None:
    queue: InMemoryQueue[int] = InMemoryQueue()
    for i in range(4):
        queue.put_nowait(i)

    assert queue.clear() == 4
    assert queue.empty()
    assert queue.clear() == 0


async def test_shutdown_rejects_puts_and_wakes_getters() -> None:
    queue: InMemoryQueue[int] = InMemoryQueue()
    waiter = asyncio.create_task(queue.get())
    await asyncio.sleep(0)

    queue.shutdown(immediate=True)

    with pytest.raises(QueueShutdown):
        await waiter
    with pytest.raises(QueueShutdown):
        queue.put_nowait(1)


def test_requeued_message_keeps_identity_and_age() -> None:
    message = QueueMessage.create("first")

    updated = message.with_payload("second")

    assert updated.payload == "second"
    assert (updated.id, updated.enqueued_at) == (message.id, message.enqueued_at)
    later = message.enqueued_at + timedelta(seconds=90)
    assert updated.age_seconds(later) == 90.0
