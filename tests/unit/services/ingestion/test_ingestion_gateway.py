# -*- coding: utf-8 -*-
"""Unit tests for IngestionGateway and PoolTrackingCache."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from pool_activity_monitor.config import Settings
from pool_activity_monitor.exceptions import PersistenceError
from pool_activity_monitor.models.block import BlockEvents
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import ConcentratedLiquiditySwap, ConstantProductSwap
from pool_activity_monitor.persistence import InMemoryEventStore
from pool_activity_monitor.services.ingestion import IngestionGateway, PoolTrackingCache

V2 = ProtocolVariant.CONSTANT_PRODUCT
V3 = ProtocolVariant.CONCENTRATED_LIQUIDITY

POOL_A = "0x" + "a1" * 20
POOL_B = "0x" + "b2" * 20


class _RecordingStore(InMemoryEventStore):
    """Records write order; optionally fails swap writes."""

    def __init__(self, *, fail_swaps: bool = False) -> None:
        super().__init__()
        self.calls: list[tuple[str, Chain, ProtocolVariant]] = []
        self.fail_swaps = fail_swaps

    async def upsert_pools(self, chain, variant, pools):  # type: ignore[override]
        self.calls.append(("pools", chain, variant))
        await super().upsert_pools(chain, variant, pools)

    async def upsert_swaps(self, chain, variant, swaps):  # type: ignore[override]
        self.calls.append(("swaps", chain, variant))
        if self.fail_swaps:
            raise PersistenceError("disk full", table=f"{chain.value}_{variant.value}_swaps")
        await super().upsert_swaps(chain, variant, swaps)


def _gateway(store: InMemoryEventStore, settings: Settings) -> IngestionGateway:
    return IngestionGateway(store, PoolTrackingCache(), settings)


def test_pool_cache_counts_new_addresses_only() -> None:
    cache = PoolTrackingCache()

    assert cache.add(Chain.ETHEREUM, V2, [POOL_A, POOL_A.upper(), POOL_B]) == 2
    assert cache.add(Chain.ETHEREUM, V2, [POOL_A]) == 0
    assert cache.contains(Chain.ETHEREUM, V2, POOL_A.upper())
    assert not cache.contains(Chain.BASE, V2, POOL_A)
    assert cache.size() == 2 and cache.size(Chain.BASE) == 0


async def test_creations_are_written_before_swaps(
    settings: Settings,
    pool_factory: Callable[..., PoolRecord],
    v2_swap_factory: Callable[..., ConstantProductSwap],
    v3_swap_factory: Callable[..., ConcentratedLiquiditySwap],
) -> None:
    store = _RecordingStore()
    gateway = _gateway(store, settings)
    # Swap in block 1, its pool's creation only in block 2 of the same batch.
    blocks = [
        BlockEvents(Chain.ETHEREUM, 1, "0x01", swaps=(v2_swap_factory(), v3_swap_factory())),
        BlockEvents(Chain.ETHEREUM, 2, "0x02", pools=(pool_factory(), pool_factory(V3, address=POOL_B))),
    ]

    result = await gateway.accept_batch(blocks)

    kinds = [kind for kind, _, _ in store.calls]
    assert kinds == ["pools", "pools", "swaps", "swaps"]
    assert (result.blocks, result.pools, result.swaps) == (2, 2, 2)
    assert gateway.pool_cache.contains(Chain.ETHEREUM, V3, POOL_B)


async def test_unknown_pool_swaps_kept_by_default(
    settings: Settings,
    event_store: InMemoryEventStore,
    v2_swap_factory: Callable[..., ConstantProductSwap],
    now_utc: datetime,
) -> None:
    gateway = _gateway(event_store, settings)

    result = await gateway.accept_batch([BlockEvents(Chain.BASE, 7, "0x07", swaps=(v2_swap_factory(),))])

    assert result.swaps == 1 and result.skipped_swaps == 0
    assert len(await event_store.list_swaps_since(Chain.BASE, V2, now_utc - timedelta(days=1))) == 1


async def test_unknown_pool_swaps_dropped_when_filtering(
    settings_factory: Callable[..., Settings],
    event_store: InMemoryEventStore,
    pool_factory: Callable[..., PoolRecord],
    v2_swap_factory: Callable[..., ConstantProductSwap],
) -> None:
    gateway = _gateway(event_store, settings_factory(ingestion={"filter_unknown_pools": True}))
    block = BlockEvents(
        Chain.ETHEREUM,
        3,
        "0x03",
        pools=(pool_factory(address=POOL_A),),
        swaps=(v2_swap_factory(pool=POOL_A), v2_swap_factory(pool=POOL_B)),
    )

    result = await gateway.accept_batch([block])

    assert (result.swaps, result.skipped_swaps) == (1, 1)


async def test_warm_up_loads_known_pools(
    settings: Settings,
    event_store: InMemoryEventStore,
    pool_factory: Callable[..., PoolRecord],
) -> None:
    await event_store.upsert_pools(Chain.ETHEREUM, V2, [pool_factory(address=POOL_A)])
    await event_store.upsert_pools(Chain.BASE, V3, [pool_factory(V3, address=POOL_B)])
    gateway = _gateway(event_store, settings)

    loaded = await gateway.warm_up()

    assert loaded == 2
    assert gateway.pool_cache.contains(Chain.BASE, V3, POOL_B)


async def test_replaying_a_batch_is_harmless(
    settings: Settings,
    event_store: InMemoryEventStore,
    pool_factory: Callable[..., PoolRecord],
    v2_swap_factory: Callable[..., ConstantProductSwap],
    now_utc: datetime,
) -> None:
    gateway = _gateway(event_store, settings)
    block = BlockEvents(Chain.ETHEREUM, 5, "0x05", pools=(pool_factory(),), swaps=(v2_swap_factory(),))

    await gateway.accept_batch([block])
    await gateway.accept_batch([block])

    assert await event_store.list_pool_addresses(Chain.ETHEREUM, V2) == [POOL_A]
    assert len(await event_store.list_swaps_since(Chain.ETHEREUM, V2, now_utc - timedelta(days=1))) == 1


async def test_store_failure_propagates(
    settings: Settings,
    v2_swap_factory: Callable[..., ConstantProductSwap],
) -> None:
    gateway = _gateway(_RecordingStore(fail_swaps=True), settings)

    with pytest.raises(PersistenceError):
        await gateway.accept_batch([BlockEvents(Chain.ETHEREUM, 1, "0x01", swaps=(v2_swap_factory(),))])
