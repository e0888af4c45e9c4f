"""Abstract interface for the registry of already-alerted pools (dedup)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pool_activity_monitor.models.alert import AlertRecord
from pool_activity_monitor.models.chain import Chain, ProtocolVariant


class IAlertRegistry(ABC):
    """Interface for persisting AlertRecord, partitioned per chain.

    Identity is (chain, address). record_alert() updates on conflict: the
    snapshot fields follow the latest call, first_posted_at never changes.
    """

    @abstractmethod
    async def is_alerted(self, chain: Chain, address: str) -> bool:
        """Return True if the pool already triggered an alert on that chain."""
        ...

    @abstractmethod
    async def record_alert(
        self,
        chain: Chain,
        address: str,
        variant: ProtocolVariant,
        token0: str,
        token1: str,
        trade_count: int,
        fee: int | None = None,
    ) -> None:
        """Create or refresh the record for (chain, address)."""
        ...

    @abstractmethod
    async def get(self, chain: Chain, address: str) -> AlertRecord | None:
        """Return the record for (chain, address), or None."""
        ...
