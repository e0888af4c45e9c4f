"""PoolTrackingCache: addresses of pools with a recorded creation event."""

from __future__ import annotations

from collections.abc import Iterable

from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import normalize_address


class PoolTrackingCache:
    """In-process set of known pools per (chain, variant).

    Filled from the event store at startup and extended after every successful
    creation-event write. Only ever grows: pools are never deleted.
    """

    def __init__(self) -> None:
        self._known: dict[tuple[Chain, ProtocolVariant], set[str]] = {}

    def add(self, chain: Chain, variant: ProtocolVariant, addresses: Iterable[str]) -> int:
        """Record addresses as known. Returns how many were new."""
        known = self._known.setdefault((chain, variant), set())
        before = len(known)
        known.update(normalize_address(a) for a in addresses)
        return len(known) - before

    def contains(self, chain: Chain, variant: ProtocolVariant, address: str) -> bool:
        return normalize_address(address) in self._known.get((chain, variant), ())

    def size(self, chain: Chain | None = None, variant: ProtocolVariant | None = None) -> int:
        """Number of known pools, optionally restricted to a chain and/or variant."""
        return sum(
            len(addresses)
            for (c, v), addresses in self._known.items()
            if (chain is None or c is chain) and (variant is None or v is variant)
        )
