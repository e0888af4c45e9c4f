# -*- coding: utf-8 -*-
"""Unit tests for ActivityScanScheduler (threshold, dedup, failure isolation)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from pool_activity_monitor.config import Settings
from pool_activity_monitor.exceptions import AggregationError
from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import ConstantProductSwap
from pool_activity_monitor.persistence import InMemoryAlertRegistry, InMemoryEventStore
from pool_activity_monitor.services.activity import ActivityAggregator
from pool_activity_monitor.services.alerts import AlertComposer, AlertDeliveryQueue, fallback_message
from pool_activity_monitor.services.scheduler import ActivityScanScheduler

V2 = ProtocolVariant.CONSTANT_PRODUCT
V3 = ProtocolVariant.CONCENTRATED_LIQUIDITY

POOL_A = "0x" + "a1" * 20
POOL_B = "0x" + "b2" * 20


class _StubAggregator:
    """Serves fixed activities per (chain, variant); optionally fails, breaks or blocks."""

    def __init__(
        self,
        activities: dict[tuple[Chain, ProtocolVariant], list[PoolActivity]] | None = None,
        *,
        failing: set[Chain] | None = None,
        broken: set[Chain] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.activities = activities or {}
        self.failing = failing or set()
        self.broken = broken or set()
        self.gate = gate
        self.calls = 0

    async def top_active_pools(self, chain: Chain, variant: ProtocolVariant, **kwargs: Any) -> list[PoolActivity]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if chain in self.failing:
            raise AggregationError("store down", chain=chain.value, variant=variant.value)
        if chain in self.broken:
            raise RuntimeError("unexpected row shape")
        return self.activities.get((chain, variant), [])


@pytest.fixture
def build_scheduler(
    settings_factory: Callable[..., Settings],
    alert_registry: InMemoryAlertRegistry,
    recording_channel: Any,
    fake_sleep: Callable[[float], Any],
) -> Callable[..., tuple[ActivityScanScheduler, AlertDeliveryQueue]]:
    def _build(
        aggregator: Any, *, min_trade_count: int = 500, **kwargs: Any
    ) -> tuple[ActivityScanScheduler, AlertDeliveryQueue]:
        settings = settings_factory(monitor={"min_trade_count": min_trade_count, "chains": "ethereum,base"})
        queue = AlertDeliveryQueue(recording_channel, settings, sleep=fake_sleep)
        scheduler = ActivityScanScheduler(aggregator, alert_registry, AlertComposer(), queue, settings, **kwargs)
        return scheduler, queue

    return _build


async def _settle(queue: AlertDeliveryQueue) -> None:
    if queue.drain_task is not None:
        await queue.drain_task


async def test_threshold_is_inclusive(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
    alert_registry: InMemoryAlertRegistry,
) -> None:
    at_threshold = activity_factory(address=POOL_A, total_swaps=500)
    below = activity_factory(address=POOL_B, total_swaps=499)
    scheduler, queue = build_scheduler(_StubAggregator({(Chain.ETHEREUM, V2): [at_threshold, below]}))

    result = await scheduler.scan_chain(Chain.ETHEREUM)
    await _settle(queue)

    assert result is not None
    assert (result.candidates, result.enqueued, result.refreshed) == (1, 1, 0)
    assert await alert_registry.is_alerted(Chain.ETHEREUM, POOL_A)
    assert not await alert_registry.is_alerted(Chain.ETHEREUM, POOL_B)


async def test_already_alerted_pool_is_refreshed_not_requeued(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
    alert_registry: InMemoryAlertRegistry,
    recording_channel: Any,
) -> None:
    await alert_registry.record_alert(Chain.ETHEREUM, POOL_A, V2, "0xt0", "0xt1", 600)
    activity = activity_factory(address=POOL_A, total_swaps=900)
    scheduler, queue = build_scheduler(_StubAggregator({(Chain.ETHEREUM, V2): [activity]}))

    result = await scheduler.scan_chain(Chain.ETHEREUM)

    assert result is not None and (result.enqueued, result.refreshed) == (0, 1)
    assert queue.pending == 0 and recording_channel.sent == []
    record = await alert_registry.get(Chain.ETHEREUM, POOL_A)
    assert record is not None and record.trade_count == 900


async def test_same_address_on_another_chain_is_alerted(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
    alert_registry: InMemoryAlertRegistry,
) -> None:
    await alert_registry.record_alert(Chain.ETHEREUM, POOL_A, V2, "0xt0", "0xt1", 600)
    activity = activity_factory(chain=Chain.BASE, address=POOL_A)
    scheduler, queue = build_scheduler(_StubAggregator({(Chain.BASE, V2): [activity]}))

    result = await scheduler.scan_chain(Chain.BASE)
    await _settle(queue)

    assert result is not None and result.enqueued == 1


async def test_failing_chain_does_not_stop_the_other(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
) -> None:
    activity = activity_factory(chain=Chain.BASE, address=POOL_B, variant=V3, fee=500)
    aggregator = _StubAggregator({(Chain.BASE, V3): [activity]}, failing={Chain.ETHEREUM})
    scheduler, queue = build_scheduler(aggregator)

    results = await scheduler.run_cycle()
    await _settle(queue)

    assert results[Chain.ETHEREUM] is None
    base = results[Chain.BASE]
    assert base is not None and base.enqueued == 1


async def test_unexpected_error_stays_within_its_chain(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
) -> None:
    activity = activity_factory(chain=Chain.BASE, address=POOL_B)
    aggregator = _StubAggregator({(Chain.BASE, V2): [activity]}, broken={Chain.ETHEREUM})
    scheduler, queue = build_scheduler(aggregator)

    results = await scheduler.run_cycle()
    await _settle(queue)

    assert results[Chain.ETHEREUM] is None
    base = results[Chain.BASE]
    assert base is not None and base.enqueued == 1

    # The running flag is cleared, so the next scan is not skipped.
    aggregator.broken.clear()
    again = await scheduler.scan_chain(Chain.ETHEREUM)
    assert again is not None and again.candidates == 0


async def test_failed_cycle_does_not_end_the_loop(
    build_scheduler: Callable[..., Any],
) -> None:
    cycles: list[int] = []

    async def yield_only(delay: float) -> None:
        await asyncio.sleep(0)

    async def flaky_cycle(**kwargs: Any) -> dict[Chain, Any]:
        cycles.append(len(cycles) + 1)
        if len(cycles) == 1:
            raise RuntimeError("boom")
        return {}

    scheduler, _ = build_scheduler(_StubAggregator(), sleep=yield_only)
    scheduler.run_cycle = flaky_cycle  # type: ignore[method-assign]

    await scheduler.start()
    while len(cycles) < 3:
        await asyncio.sleep(0)
    assert scheduler.is_running

    await scheduler.stop()


async def test_alert_rejected_by_a_stopped_queue_is_not_recorded(
    build_scheduler: Callable[..., Any],
    activity_factory: Callable[..., PoolActivity],
    alert_registry: InMemoryAlertRegistry,
) -> None:
    activity = activity_factory(address=POOL_A)
    scheduler, queue = build_scheduler(_StubAggregator({(Chain.ETHEREUM, V2): [activity]}))
    await queue.stop()

    result = await scheduler.scan_chain(Chain.ETHEREUM)

    assert result is not None
    assert (result.candidates, result.enqueued, result.refreshed) == (1, 0, 0)
    assert not await alert_registry.is_alerted(Chain.ETHEREUM, POOL_A)


async def test_chain_scan_already_running_is_skipped(
    build_scheduler: Callable[..., Any],
) -> None:
    gate = asyncio.Event()
    aggregator = _StubAggregator(gate=gate)
    scheduler, _ = build_scheduler(aggregator)

    first = asyncio.create_task(scheduler.scan_chain(Chain.ETHEREUM))
    while aggregator.calls == 0:
        await asyncio.sleep(0)

    assert await scheduler.scan_chain(Chain.ETHEREUM) is None

    gate.set()
    result = await first
    assert result is not None and result.candidates == 0


async def test_start_runs_first_cycle_and_stop_cancels(
    build_scheduler: Callable[..., Any],
) -> None:
    aggregator = _StubAggregator()
    scheduler, _ = build_scheduler(aggregator)

    await scheduler.start()
    while aggregator.calls < 4:
        await asyncio.sleep(0)
    assert scheduler.is_running

    await scheduler.stop()
    assert not scheduler.is_running


async def test_busy_pool_is_alerted_once_end_to_end(
    settings_factory: Callable[..., Settings],
    event_store: InMemoryEventStore,
    alert_registry: InMemoryAlertRegistry,
    recording_channel: Any,
    fake_sleep: Callable[[float], Any],
    pool_factory: Callable[..., PoolRecord],
    v2_swap_factory: Callable[..., ConstantProductSwap],
    now_utc: datetime,
) -> None:
    settings = settings_factory(monitor={"min_trade_count": 1000, "chains": "ethereum"})
    await event_store.upsert_pools(Chain.ETHEREUM, V2, [pool_factory(address=POOL_A)])
    swaps = [v2_swap_factory(buy=True) for _ in range(1200)] + [
        v2_swap_factory(buy=False) for _ in range(801)
    ]
    await event_store.upsert_swaps(Chain.ETHEREUM, V2, swaps)
    queue = AlertDeliveryQueue(recording_channel, settings, sleep=fake_sleep)
    scheduler = ActivityScanScheduler(
        ActivityAggregator(event_store, settings, clock=lambda: now_utc),
        alert_registry,
        AlertComposer(),
        queue,
        settings,
    )

    first = await scheduler.run_cycle()
    await _settle(queue)
    second = await scheduler.run_cycle()

    assert first[Chain.ETHEREUM] is not None and first[Chain.ETHEREUM].enqueued == 1
    assert second[Chain.ETHEREUM] is not None
    assert (second[Chain.ETHEREUM].enqueued, second[Chain.ETHEREUM].refreshed) == (0, 1)
    [alert] = recording_channel.sent
    assert alert.text == fallback_message(POOL_A, V2)
    record = await alert_registry.get(Chain.ETHEREUM, POOL_A)
    assert record is not None and record.trade_count == 2001
