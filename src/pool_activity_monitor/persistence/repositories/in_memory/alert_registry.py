# -*- coding: utf-8 -*-
"""In-memory alert registry (keyed by (chain, address))."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

from pool_activity_monitor.models.alert import AlertRecord
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import normalize_address
from pool_activity_monitor.persistence.repositories.interfaces.alert_registry import (
    IAlertRegistry,
)


class InMemoryAlertRegistry(IAlertRegistry):
    """In-memory implementation of IAlertRegistry."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._store: dict[tuple[Chain, str], AlertRecord] = {}

    async def is_alerted(self, chain: Chain, address: str) -> bool:
        return (chain, normalize_address(address)) in self._store

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
        """Create the record, or refresh its snapshot keeping first_posted_at."""
        now = datetime.now(UTC)
        k = (chain, normalize_address(address))
        existing = self._store.get(k)
        if existing is None:
            self._store[k] = AlertRecord(
                chain=chain,
                address=k[1],
                variant=variant,
                token0=normalize_address(token0),
                token1=normalize_address(token1),
                trade_count=trade_count,
                first_posted_at=now,
                last_updated_at=now,
                fee=fee,
            )
            return
        self._store[k] = replace(
            existing,
            variant=variant,
            token0=normalize_address(token0),
            token1=normalize_address(token1),
            trade_count=trade_count,
            fee=fee,
            last_updated_at=now,
        )

    async def get(self, chain: Chain, address: str) -> AlertRecord | None:
        return self._store.get((chain, normalize_address(address)))
