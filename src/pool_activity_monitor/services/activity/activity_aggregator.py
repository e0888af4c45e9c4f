# -*- coding: utf-8 -*-
"""Activity aggregator: trailing-window swap metrics per pool.

Metrics are recomputed from stored swaps on every call. Buy/sell classification
and per-token volume depend on the protocol variant:

- v2 (constant product): buy iff amount1In > 0 (trader pays token1, receives
  token0). Volume per token is amountIn when positive, else amountOut.
- v3 (concentrated liquidity): buy iff amount1 < 0 (pool pays out token1).
  Volume per token is |amount|.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Context, Decimal, localcontext
from typing import TYPE_CHECKING, Any, assert_never

import structlog

from pool_activity_monitor.exceptions import AggregationError, PersistenceError
from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import (
    ConcentratedLiquiditySwap,
    ConstantProductSwap,
    SwapEvent,
)

if TYPE_CHECKING:
    from pool_activity_monitor.config import Settings
    from pool_activity_monitor.persistence.repositories.interfaces import IEventStore

# uint256 has 78 digits; sums of many of them need headroom beyond the default 28.
_SUM_CONTEXT = Context(prec=200)
_ZERO = Decimal(0)


def is_buy(swap: SwapEvent) -> bool:
    """Return True if the swap buys token0 with token1."""
    match swap:
        case ConstantProductSwap():
            return swap.amount1_in > _ZERO
        case ConcentratedLiquiditySwap():
            return swap.amount1 < _ZERO
        case _:
            assert_never(swap)


def swap_volumes(swap: SwapEvent) -> tuple[Decimal, Decimal]:
    """Return (token0_volume, token1_volume) contributed by one swap."""
    match swap:
        case ConstantProductSwap():
            v0 = swap.amount0_in if swap.amount0_in > _ZERO else swap.amount0_out
            v1 = swap.amount1_in if swap.amount1_in > _ZERO else swap.amount1_out
            return v0, v1
        case ConcentratedLiquiditySwap():
            return abs(swap.amount0), abs(swap.amount1)
        case _:
            assert_never(swap)


@dataclass
class _PoolTotals:
    total_swaps: int = 0
    buy_count: int = 0
    sell_count: int = 0
    token0_volume: Decimal = field(default_factory=Decimal)
    token1_volume: Decimal = field(default_factory=Decimal)

    def add(self, swap: SwapEvent) -> None:
        self.total_swaps += 1
        if is_buy(swap):
            self.buy_count += 1
        else:
            self.sell_count += 1
        v0, v1 = swap_volumes(swap)
        self.token0_volume += v0
        self.token1_volume += v1


def summarize_swaps(swaps: Iterable[SwapEvent]) -> dict[str, _PoolTotals]:
    """Group swaps by pool and accumulate counts and volumes with exact decimals."""
    totals: dict[str, _PoolTotals] = {}
    with localcontext(_SUM_CONTEXT):
        for swap in swaps:
            acc = totals.get(swap.pool)
            if acc is None:
                acc = totals[swap.pool] = _PoolTotals()
            acc.add(swap)
    return totals


def _to_activity(chain: Chain, pool: PoolRecord, totals: _PoolTotals) -> PoolActivity:
    return PoolActivity(
        chain=chain,
        variant=pool.variant,
        address=pool.address,
        token0=pool.token0,
        token1=pool.token1,
        total_swaps=totals.total_swaps,
        buy_count=totals.buy_count,
        sell_count=totals.sell_count,
        token0_volume=totals.token0_volume,
        token1_volume=totals.token1_volume,
        fee=pool.fee,
    )


class ActivityAggregator:
    """Computes the most active pools of a (chain, variant) over the trailing window."""

    def __init__(
        self,
        event_store: IEventStore,
        settings: Settings,
        *,
        clock: Callable[[], datetime] | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            event_store: Store the swaps and pools are read from (injected).
            settings: Application settings (uses settings.monitor).
            clock: Returns "now" (UTC); defaults to datetime.now(UTC).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._store = event_store
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def window_start(self, now: datetime | None = None) -> datetime:
        """Inclusive lower bound of the activity window ending at now."""
        now = now or self._clock()
        return now - timedelta(hours=self._settings.monitor.window_hours)

    async def top_active_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        *,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[PoolActivity]:
        """Return pools with at least one swap in the window, most swaps first.

        Only pools with a recorded creation event are reported.

        Args:
            chain: Chain to scan.
            variant: Protocol variant to scan.
            limit: Maximum number of pools; defaults to settings.monitor.top_n.
            now: Evaluation time; defaults to the clock.

        Raises:
            AggregationError: If swaps or pools cannot be read.
        """
        limit = limit if limit is not None else self._settings.monitor.top_n
        since = self.window_start(now)
        try:
            swaps = await self._store.list_swaps_since(chain, variant, since)
            totals = summarize_swaps(swaps)
            pools = await self._store.get_pools(chain, variant, totals.keys())
        except PersistenceError as e:
            self._logger.warning(
                "activity_aggregation_failed",
                chain=chain.value,
                protocol=variant.value,
                error_message=str(e),
            )
            raise AggregationError(
                f"Cannot aggregate {chain.value} {variant.value} activity",
                chain=chain.value,
                variant=variant.value,
                cause=e,
            ) from e

        activities = [
            _to_activity(chain, pools[address], acc)
            for address, acc in totals.items()
            if address in pools and acc.total_swaps > 0
        ]
        activities.sort(key=lambda a: (-a.total_swaps, a.address))
        self._logger.debug(
            "activity_aggregated",
            chain=chain.value,
            protocol=variant.value,
            window_start=since.isoformat(),
            swaps_count=len(swaps),
            active_pools_count=len(activities),
            unknown_pools_count=len(totals) - len(pools),
        )
        return activities[:limit]

    async def pool_activity(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
        *,
        now: datetime | None = None,
    ) -> PoolActivity | None:
        """Return the window metrics of a single pool, or None if unknown or idle.

        Raises:
            AggregationError: If the pool or its swaps cannot be read.
        """
        since = self.window_start(now)
        try:
            pool = await self._store.get_pool(chain, variant, address)
            if pool is None:
                return None
            swaps = await self._store.list_pool_swaps(chain, variant, pool.address, since)
        except PersistenceError as e:
            raise AggregationError(
                f"Cannot aggregate activity of {address}",
                chain=chain.value,
                variant=variant.value,
                cause=e,
            ) from e
        totals = summarize_swaps(swaps).get(pool.address)
        if totals is None:
            return None
        return _to_activity(chain, pool, totals)
