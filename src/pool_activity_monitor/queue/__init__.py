# -*- coding: utf-8 -*-
"""FIFO queue abstraction backing the alert delivery queue."""

from pool_activity_monitor.queue.base import IAsyncQueue
from pool_activity_monitor.queue.in_memory_queue import InMemoryQueue
from pool_activity_monitor.queue.messages import QueueMessage

__all__ = ["IAsyncQueue", "InMemoryQueue", "QueueMessage"]
