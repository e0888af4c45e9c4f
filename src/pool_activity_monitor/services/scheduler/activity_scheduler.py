# -*- coding: utf-8 -*-
"""Periodic activity scan: aggregator -> threshold/dedup filter -> composer -> delivery queue."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

import structlog

from pool_activity_monitor.exceptions import AggregationError, PersistenceError
from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.models.chain import Chain, ProtocolVariant

if TYPE_CHECKING:
    from pool_activity_monitor.config import Settings
    from pool_activity_monitor.persistence.repositories.interfaces import IAlertRegistry
    from pool_activity_monitor.services.activity import ActivityAggregator
    from pool_activity_monitor.services.alerts import AlertComposer, AlertDeliveryQueue


@dataclass(frozen=True, slots=True)
class ChainScanResult:
    """Outcome of one chain scan."""

    chain: Chain
    candidates: int
    """Pools at or above the trade-count threshold."""
    enqueued: int
    refreshed: int
    """Already-alerted pools whose registry snapshot was updated."""


class ActivityScanScheduler:
    """Runs a scan cycle at start and then every settings.monitor.interval_seconds.

    Chains are scanned concurrently; a chain whose previous scan is still
    running is skipped, so two scans never race on "not yet alerted".
    """

    def __init__(
        self,
        aggregator: ActivityAggregator,
        alert_registry: IAlertRegistry,
        composer: AlertComposer,
        delivery_queue: AlertDeliveryQueue,
        settings: Settings,
        *,
        chains: Optional[Sequence[Chain]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            aggregator: Activity aggregator (injected).
            alert_registry: Dedup registry (injected).
            composer: Alert composer (injected).
            delivery_queue: Delivery queue receiving composed alerts (injected).
            settings: Application settings (uses settings.monitor).
            chains: Chains to scan; defaults to settings.monitor.chains.
            sleep: Awaitable sleep between cycles (tests pass a fake).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._aggregator = aggregator
        self._registry = alert_registry
        self._composer = composer
        self._queue = delivery_queue
        self._settings = settings
        self._chains = (
            list(chains)
            if chains is not None
            else [Chain.parse(c) for c in settings.monitor.chains]
        )
        self._sleep = sleep
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._running: set[Chain] = set()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def chains(self) -> list[Chain]:
        return list(self._chains)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the periodic task. The first cycle runs immediately."""
        if self.is_running:
            self._logger.warning("activity_scheduler_already_running")
            return
        self._task = asyncio.create_task(self._run_forever(), name="activity-scan-scheduler")
        self._logger.info(
            "activity_scheduler_started",
            chains=[c.value for c in self._chains],
            interval_seconds=self._settings.monitor.interval_seconds,
            min_trade_count=self._settings.monitor.min_trade_count,
        )

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._logger.info("activity_scheduler_stopped")

    async def _run_forever(self) -> None:
        interval = self._settings.monitor.interval_seconds
        while True:
            try:
                await self.run_cycle()
            except Exception:
                self._logger.exception("activity_scan_cycle_failed")
            await self._sleep(interval)

    async def run_cycle(self, *, now: Optional[datetime] = None) -> dict[Chain, Optional[ChainScanResult]]:
        """Scan every configured chain concurrently. Failures stay within their chain."""
        results = await asyncio.gather(*(self.scan_chain(chain, now=now) for chain in self._chains))
        return dict(zip(self._chains, results))

    async def scan_chain(self, chain: Chain, *, now: Optional[datetime] = None) -> Optional[ChainScanResult]:
        """Scan both protocol variants of one chain and trigger delivery.

        Returns None when the chain was skipped (scan already running, or the
        scan failed).
        """
        if chain in self._running:
            self._logger.info("activity_scan_skipped_running", chain=chain.value)
            return None
        self._running.add(chain)
        try:
            candidates = enqueued = refreshed = 0
            for variant in ProtocolVariant:
                c, e, r = await self._scan_variant(chain, variant, now)
                candidates += c
                enqueued += e
                refreshed += r
        except AggregationError as e:
            self._logger.warning(
                "activity_scan_chain_skipped",
                chain=chain.value,
                protocol=e.variant,
                error_message=str(e),
            )
            return None
        except PersistenceError as e:
            self._logger.error(
                "activity_scan_registry_failed",
                chain=chain.value,
                table=e.table,
                error_message=str(e),
            )
            return None
        except Exception:
            self._logger.exception("activity_scan_failed", chain=chain.value)
            return None
        finally:
            self._running.discard(chain)
            self._queue.trigger()

        result = ChainScanResult(chain=chain, candidates=candidates, enqueued=enqueued, refreshed=refreshed)
        self._logger.info(
            "activity_scan_completed",
            chain=chain.value,
            candidates_count=result.candidates,
            enqueued_count=result.enqueued,
            refreshed_count=result.refreshed,
        )
        return result

    async def _scan_variant(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        now: Optional[datetime],
    ) -> tuple[int, int, int]:
        threshold = self._settings.monitor.min_trade_count
        top = await self._aggregator.top_active_pools(chain, variant, now=now)
        candidates = [a for a in top if a.total_swaps >= threshold]
        enqueued = refreshed = 0
        for activity in candidates:
            if await self._registry.is_alerted(chain, activity.address):
                await self._record(chain, activity)
                refreshed += 1
                continue
            text = await self._composer.compose_message(activity, variant, chain)
            alert = PendingAlert.create(text, chain=chain, variant=variant, pool_address=activity.address)
            if not self._queue.enqueue(alert):
                # Left unrecorded so a later scan can alert it.
                continue
            # Recorded when enqueued, not when delivered.
            await self._record(chain, activity)
            enqueued += 1
            self._logger.info(
                "activity_alert_scheduled",
                chain=chain.value,
                protocol=variant.value,
                pool_address=activity.address,
                total_swaps=activity.total_swaps,
                buy_count=activity.buy_count,
                sell_count=activity.sell_count,
            )
        return len(candidates), enqueued, refreshed

    async def _record(self, chain: Chain, activity: PoolActivity) -> None:
        await self._registry.record_alert(
            chain,
            activity.address,
            activity.variant,
            activity.token0,
            activity.token1,
            activity.total_swaps,
            fee=activity.fee,
        )
