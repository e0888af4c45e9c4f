# -*- coding: utf-8 -*-
"""Ingestion gateway: writes pushed block events through the event store."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import structlog

from pool_activity_monitor.models.block import BlockEvents
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import SwapEvent
from pool_activity_monitor.services.ingestion.pool_cache import PoolTrackingCache

if TYPE_CHECKING:
    from pool_activity_monitor.config import Settings
    from pool_activity_monitor.persistence.repositories.interfaces import IEventStore

type _Partition = tuple[Chain, ProtocolVariant]


@dataclass(frozen=True, slots=True)
class IngestionResult:
    """Counts of what one accepted call handed to the store."""

    blocks: int
    pools: int
    swaps: int
    skipped_swaps: int = 0


class IngestionGateway:
    """Persists pushed batches: every creation event first, then every swap.

    Writes are sequential and grouped per (chain, variant). Any persistence
    failure propagates and fails the whole call; replaying the batch is safe
    because the store ignores rows it already holds.
    """

    def __init__(
        self,
        event_store: IEventStore,
        pool_cache: PoolTrackingCache,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            event_store: Destination store (injected).
            pool_cache: Known-pool cache owned by this gateway (injected).
            settings: Application settings (uses settings.ingestion and settings.monitor).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._store = event_store
        self._cache = pool_cache
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def pool_cache(self) -> PoolTrackingCache:
        return self._cache

    async def warm_up(self, chains: Iterable[Chain] | None = None) -> int:
        """Load known pool addresses from the store into the cache.

        Args:
            chains: Chains to load; defaults to settings.monitor.chains.

        Returns:
            Number of pools loaded.

        Raises:
            PersistenceError: If the store cannot be read.
        """
        if chains is None:
            chains = [Chain.parse(c) for c in self._settings.monitor.chains]
        loaded = 0
        for chain in chains:
            for variant in ProtocolVariant:
                addresses = await self._store.list_pool_addresses(chain, variant)
                self._cache.add(chain, variant, addresses)
                loaded += len(addresses)
                self._logger.debug(
                    "pool_cache_loaded",
                    chain=chain.value,
                    protocol=variant.value,
                    pools_count=len(addresses),
                )
        self._logger.info("pool_cache_warmed_up", pools_count=loaded)
        return loaded

    async def accept_batch(self, items: Sequence[BlockEvents]) -> IngestionResult:
        """Persist the creation and swap events of every block in items.

        Raises:
            PersistenceError: If any write fails. Rows written before the
                failure stay; the caller may replay the whole batch.
        """
        pools: dict[_Partition, list[PoolRecord]] = defaultdict(list)
        swaps: dict[_Partition, list[SwapEvent]] = defaultdict(list)
        for block in items:
            for pool in block.pools:
                pools[(block.chain, pool.variant)].append(pool)
            for swap in block.swaps:
                swaps[(block.chain, swap.variant)].append(swap)

        pools_count = 0
        for (chain, variant), records in pools.items():
            await self._store.upsert_pools(chain, variant, records)
            self._cache.add(chain, variant, (p.address for p in records))
            pools_count += len(records)

        swaps_count = 0
        skipped = 0
        for (chain, variant), events in swaps.items():
            if self._settings.ingestion.filter_unknown_pools:
                kept = [s for s in events if self._cache.contains(chain, variant, s.pool)]
                if len(kept) < len(events):
                    self._logger.info(
                        "ingestion_unknown_pool_swaps_dropped",
                        chain=chain.value,
                        protocol=variant.value,
                        dropped_count=len(events) - len(kept),
                    )
                skipped += len(events) - len(kept)
                events = kept
            await self._store.upsert_swaps(chain, variant, events)
            swaps_count += len(events)

        result = IngestionResult(
            blocks=len(items),
            pools=pools_count,
            swaps=swaps_count,
            skipped_swaps=skipped,
        )
        self._logger.info(
            "ingestion_batch_accepted",
            blocks_count=result.blocks,
            pools_count=result.pools,
            swaps_count=result.swaps,
            skipped_swaps_count=result.skipped_swaps,
        )
        return result
