"""PoolActivity: trailing-window trading metrics for one pool (derived, never stored)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pool_activity_monitor.models.chain import Chain, ProtocolVariant


@dataclass(frozen=True, slots=True)
class PoolActivity:
    """Snapshot of a pool's swaps inside the activity window.

    Computed fresh for every query. `variant` tags which classification rules
    produced buy_count/sell_count.
    """

    chain: Chain
    variant: ProtocolVariant
    address: str
    token0: str
    token1: str
    total_swaps: int
    buy_count: int
    sell_count: int
    token0_volume: Decimal
    token1_volume: Decimal
    fee: int | None = None
    """Fee tier (v3 only)."""

    @property
    def fee_percent(self) -> Decimal | None:
        """Fee tier as a percentage (3000 -> 0.3)."""
        if self.fee is None:
            return None
        return Decimal(self.fee) / Decimal(10000)
