# -*- coding: utf-8 -*-
"""Alert delivery queue: single consumer, paced, retrying.

IDLE -> DRAINING when triggered with pending alerts; DRAINING -> IDLE when the
queue is empty or the per-activation cap is reached. A failed delivery puts the
alert back at the tail and pauses the whole queue for a penalty delay.
Consecutive sends stay at least min_delay_seconds apart, also across activations.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import structlog

from pool_activity_monitor.exceptions import DeliveryError, QueueEmpty, QueueShutdown
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.queue import IAsyncQueue, InMemoryQueue, QueueMessage

if TYPE_CHECKING:
    from pool_activity_monitor.config import Settings
    from pool_activity_monitor.notifications.channels import AlertChannel


class DeliveryState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"


class AlertDeliveryQueue:
    """Delivers PendingAlerts to one channel, at most batch_size attempts per activation.

    Undelivered alerts live in memory only and are discarded by stop().
    """

    def __init__(
        self,
        channel: AlertChannel,
        settings: Settings,
        *,
        queue: Optional[IAsyncQueue[QueueMessage[PendingAlert]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the delivery queue.

        Args:
            channel: Destination of every alert (injected).
            settings: Application settings (uses settings.delivery).
            queue: Backing FIFO; defaults to an unbounded InMemoryQueue.
            sleep: Awaitable sleep used for pacing and penalties (tests pass a fake).
            rng: Random source for the pacing delay.
            clock: Monotonic clock in seconds, used to keep the minimum gap
                between sends across activations.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._channel = channel
        self._settings = settings
        self._queue: IAsyncQueue[QueueMessage[PendingAlert]] = queue or InMemoryQueue()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_sent_at: Optional[float] = None
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._state = DeliveryState.IDLE
        self._drain_task: Optional[asyncio.Task[int]] = None
        self._stopped = False

    @property
    def state(self) -> DeliveryState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of alerts waiting for delivery."""
        return self._queue.qsize()

    @property
    def drain_task(self) -> Optional[asyncio.Task[int]]:
        """The drain started by the last successful trigger(), if any."""
        return self._drain_task

    def enqueue(self, alert: PendingAlert) -> bool:
        """Append alert at the tail. Returns False if the queue is stopped or full."""
        try:
            self._queue.put_nowait(QueueMessage.create(alert))
        except QueueShutdown:
            self._logger.warning(
                "alert_enqueue_rejected_stopped",
                chain=alert.chain.value,
                pool_address=alert.pool_address,
            )
            return False
        self._logger.info(
            "alert_enqueued",
            chain=alert.chain.value,
            protocol=alert.variant.value,
            pool_address=alert.pool_address,
            pending_count=self._queue.qsize(),
        )
        return True

    def trigger(self) -> bool:
        """Start a drain in the background if IDLE with pending alerts. Returns True if started."""
        if self._stopped or self._state is DeliveryState.DRAINING or self._queue.empty():
            return False
        if self._drain_task is not None and not self._drain_task.done():
            return False
        self._drain_task = asyncio.create_task(self.drain(), name="alert-delivery-drain")
        self._drain_task.add_done_callback(self._on_drain_done)
        return True

    async def drain(self) -> int:
        """Run one activation. Returns the number of alerts delivered.

        A concurrent call while DRAINING returns 0 without touching the queue.
        """
        if self._state is DeliveryState.DRAINING or self._stopped:
            return 0
        self._state = DeliveryState.DRAINING
        cfg = self._settings.delivery
        delivered = 0
        attempts = 0
        self._logger.debug("alert_drain_started", pending_count=self._queue.qsize())
        try:
            await self._wait_since_last_send()
            while attempts < cfg.batch_size:
                try:
                    message = self._queue.get_nowait()
                except (QueueEmpty, QueueShutdown):
                    break
                attempts += 1
                alert = message.payload
                try:
                    await self._channel.send(alert)
                except DeliveryError as e:
                    await self._handle_failure(message, e)
                    continue
                except Exception as e:
                    self._logger.exception(
                        "alert_send_unexpected_error",
                        channel=self._channel.name,
                        chain=alert.chain.value,
                        pool_address=alert.pool_address,
                    )
                    await self._handle_failure(
                        message, DeliveryError(str(e), channel=self._channel.name, cause=e)
                    )
                    continue

                self._last_sent_at = self._clock()
                delivered += 1
                self._logger.info(
                    "alert_delivered",
                    channel=self._channel.name,
                    chain=alert.chain.value,
                    protocol=alert.variant.value,
                    pool_address=alert.pool_address,
                    attempts=alert.attempts + 1,
                    queued_seconds=round(message.age_seconds(), 3),
                )
                if attempts < cfg.batch_size and not self._queue.empty():
                    await self._sleep(self._rng.uniform(cfg.min_delay_seconds, cfg.max_delay_seconds))
        finally:
            self._state = DeliveryState.IDLE
        self._logger.debug(
            "alert_drain_finished",
            delivered_count=delivered,
            attempts_count=attempts,
            pending_count=self._queue.qsize(),
        )
        return delivered

    async def stop(self) -> int:
        """Cancel any drain and discard undelivered alerts. Returns how many were discarded."""
        self._stopped = True
        task = self._drain_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._drain_task = None
        discarded = self._queue.clear()
        self._queue.shutdown(immediate=True)
        self._state = DeliveryState.IDLE
        self._logger.info("alert_queue_stopped", discarded_count=discarded)
        return discarded

    async def _wait_since_last_send(self) -> None:
        """Keep min_delay_seconds between the previous activation's last send and the next one."""
        if self._last_sent_at is None or self._queue.empty():
            return
        remaining = self._settings.delivery.min_delay_seconds - (self._clock() - self._last_sent_at)
        if remaining > 0:
            self._logger.debug("alert_drain_paced", wait_seconds=round(remaining, 3))
            await self._sleep(remaining)

    async def _handle_failure(self, message: QueueMessage[PendingAlert], error: DeliveryError) -> None:
        cfg = self._settings.delivery
        alert = message.payload.with_failed_attempt()
        if cfg.max_attempts and alert.attempts >= cfg.max_attempts:
            self._logger.error(
                "alert_delivery_dropped",
                channel=self._channel.name,
                chain=alert.chain.value,
                pool_address=alert.pool_address,
                attempts=alert.attempts,
                error_message=str(error),
            )
        else:
            self._queue.put_nowait(message.with_payload(alert))
            self._logger.warning(
                "alert_delivery_requeued",
                channel=self._channel.name,
                chain=alert.chain.value,
                pool_address=alert.pool_address,
                attempts=alert.attempts,
                pending_count=self._queue.qsize(),
                error_message=str(error),
            )
        penalty = cfg.failure_penalty_multiplier * cfg.max_delay_seconds
        if error.retry_after is not None:
            penalty = max(penalty, error.retry_after)
        await self._sleep(penalty)

    def _on_drain_done(self, task: asyncio.Task[int]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                "alert_drain_crashed",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
