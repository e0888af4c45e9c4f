"""Abstract interface for pool and swap event storage (in-memory, SQL)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime

from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import SwapEvent


class IEventStore(ABC):
    """Interface for persisting pools and swaps, partitioned per (chain, variant).

    Writes are idempotent: a row whose identity already exists is skipped, not
    reported as an error. Any other failure raises PersistenceError.
    """

    @abstractmethod
    async def upsert_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        pools: Sequence[PoolRecord],
    ) -> None:
        """Insert pools; existing addresses are left untouched."""
        ...

    @abstractmethod
    async def upsert_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        swaps: Sequence[SwapEvent],
    ) -> None:
        """Insert swaps; existing (transaction_hash, log_index) keys are left untouched."""
        ...

    @abstractmethod
    async def get_pool(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
    ) -> PoolRecord | None:
        """Return the pool with that address, or None."""
        ...

    @abstractmethod
    async def get_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        addresses: Iterable[str],
    ) -> dict[str, PoolRecord]:
        """Return known pools among addresses, keyed by lowercased address."""
        ...

    @abstractmethod
    async def list_pool_addresses(self, chain: Chain, variant: ProtocolVariant) -> list[str]:
        """Return every recorded pool address for (chain, variant)."""
        ...

    @abstractmethod
    async def list_pool_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
        since: datetime,
    ) -> list[SwapEvent]:
        """Return swaps of one pool with block_timestamp >= since, oldest first."""
        ...

    @abstractmethod
    async def list_swaps_since(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        since: datetime,
    ) -> list[SwapEvent]:
        """Return all swaps with block_timestamp >= since, oldest first."""
        ...
