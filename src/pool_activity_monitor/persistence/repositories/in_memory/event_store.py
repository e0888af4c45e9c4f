# -*- coding: utf-8 -*-
"""In-memory event store (keyed by (chain, variant) partition)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord, normalize_address
from pool_activity_monitor.models.swap import SwapEvent
from pool_activity_monitor.persistence.repositories.interfaces.event_store import (
    IEventStore,
)

_Partition = tuple[Chain, ProtocolVariant]


def _check_variant(variant: ProtocolVariant, items: Sequence[PoolRecord] | Sequence[SwapEvent]) -> None:
    for item in items:
        if item.variant is not variant:
            raise ValueError(f"{type(item).__name__} does not belong to variant {variant.value}")


class InMemoryEventStore(IEventStore):
    """In-memory implementation of IEventStore. Nothing survives a restart."""

    def __init__(self) -> None:
        """Initialize empty partitions."""
        self._pools: dict[_Partition, dict[str, PoolRecord]] = {}
        self._swaps: dict[_Partition, dict[tuple[str, int], SwapEvent]] = {}

    async def upsert_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        pools: Sequence[PoolRecord],
    ) -> None:
        """Insert pools. Idempotent."""
        _check_variant(variant, pools)
        store = self._pools.setdefault((chain, variant), {})
        for pool in pools:
            store.setdefault(pool.address, pool)

    async def upsert_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        swaps: Sequence[SwapEvent],
    ) -> None:
        """Insert swaps. Idempotent on (transaction_hash, log_index)."""
        _check_variant(variant, swaps)
        store = self._swaps.setdefault((chain, variant), {})
        for swap in swaps:
            store.setdefault(swap.key, swap)

    async def get_pool(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
    ) -> PoolRecord | None:
        return self._pools.get((chain, variant), {}).get(normalize_address(address))

    async def get_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        addresses: Iterable[str],
    ) -> dict[str, PoolRecord]:
        store = self._pools.get((chain, variant), {})
        found: dict[str, PoolRecord] = {}
        for address in addresses:
            pool = store.get(normalize_address(address))
            if pool is not None:
                found[pool.address] = pool
        return found

    async def list_pool_addresses(self, chain: Chain, variant: ProtocolVariant) -> list[str]:
        return list(self._pools.get((chain, variant), {}))

    async def list_pool_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
        since: datetime,
    ) -> list[SwapEvent]:
        pool = normalize_address(address)
        swaps = await self.list_swaps_since(chain, variant, since)
        return [s for s in swaps if s.pool == pool]

    async def list_swaps_since(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        since: datetime,
    ) -> list[SwapEvent]:
        swaps = [
            s
            for s in self._swaps.get((chain, variant), {}).values()
            if s.block_timestamp >= since
        ]
        return sorted(swaps, key=lambda s: (s.block_number, s.log_index))
