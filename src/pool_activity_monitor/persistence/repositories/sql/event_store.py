# -*- coding: utf-8 -*-
"""SQL event store: INSERT ... ON CONFLICT DO NOTHING per (chain, variant) table."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import Table, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError

from pool_activity_monitor.exceptions import PersistenceError
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import (
    PoolRecord,
    from_unix_seconds,
    normalize_address,
    to_unix_seconds,
)
from pool_activity_monitor.models.swap import (
    ConcentratedLiquiditySwap,
    ConstantProductSwap,
    SwapEvent,
)
from pool_activity_monitor.persistence.database import Database
from pool_activity_monitor.persistence.repositories.interfaces.event_store import (
    IEventStore,
)
from pool_activity_monitor.persistence.tables import pools_table, swaps_table

# Keeps IN (...) lists under SQLite's bound-parameter limit.
_IN_CHUNK = 500


def _since_seconds(since: datetime) -> int:
    """Smallest whole block timestamp at or after since (timestamps are whole seconds)."""
    return math.ceil(since.timestamp())


def _pool_row(pool: PoolRecord) -> dict[str, Any]:
    row: dict[str, Any] = {
        "address": pool.address,
        "token0": pool.token0,
        "token1": pool.token1,
        "block_number": pool.block_number,
        "block_timestamp": to_unix_seconds(pool.block_timestamp),
        "transaction_hash": pool.transaction_hash,
    }
    if pool.variant is ProtocolVariant.CONCENTRATED_LIQUIDITY:
        row["fee"] = pool.fee if pool.fee is not None else 0
        row["tick_spacing"] = pool.tick_spacing if pool.tick_spacing is not None else 0
    return row


def _swap_row(swap: SwapEvent) -> dict[str, Any]:
    row: dict[str, Any] = {
        "pool": swap.pool,
        "sender": swap.sender,
        "recipient": swap.recipient,
        "block_number": swap.block_number,
        "block_timestamp": to_unix_seconds(swap.block_timestamp),
        "transaction_hash": swap.transaction_hash,
        "log_index": swap.log_index,
    }
    match swap:
        case ConstantProductSwap():
            row.update(
                amount0_in=swap.amount0_in,
                amount1_in=swap.amount1_in,
                amount0_out=swap.amount0_out,
                amount1_out=swap.amount1_out,
            )
        case ConcentratedLiquiditySwap():
            row.update(
                amount0=swap.amount0,
                amount1=swap.amount1,
                sqrt_price_x96=swap.sqrt_price_x96,
                liquidity=swap.liquidity,
                tick=swap.tick,
            )
    return row


def _pool_from_row(variant: ProtocolVariant, row: RowMapping) -> PoolRecord:
    return PoolRecord(
        variant=variant,
        address=row["address"],
        token0=row["token0"],
        token1=row["token1"],
        block_number=row["block_number"],
        block_timestamp=from_unix_seconds(row["block_timestamp"]),
        transaction_hash=row["transaction_hash"],
        fee=row.get("fee"),
        tick_spacing=row.get("tick_spacing"),
    )


def _swap_from_row(variant: ProtocolVariant, row: RowMapping) -> SwapEvent:
    common: dict[str, Any] = {
        "pool": row["pool"],
        "sender": row["sender"],
        "recipient": row["recipient"],
        "block_number": row["block_number"],
        "block_timestamp": from_unix_seconds(row["block_timestamp"]),
        "transaction_hash": row["transaction_hash"],
        "log_index": row["log_index"],
    }
    if variant is ProtocolVariant.CONSTANT_PRODUCT:
        return ConstantProductSwap(
            amount0_in=row["amount0_in"],
            amount1_in=row["amount1_in"],
            amount0_out=row["amount0_out"],
            amount1_out=row["amount1_out"],
            **common,
        )
    return ConcentratedLiquiditySwap(
        amount0=row["amount0"],
        amount1=row["amount1"],
        sqrt_price_x96=row["sqrt_price_x96"],
        liquidity=row["liquidity"],
        tick=row["tick"],
        **common,
    )


class SqlEventStore(IEventStore):
    """SQLAlchemy (asyncio) implementation of IEventStore."""

    def __init__(
        self,
        database: Database,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the store.

        Args:
            database: Database wrapper owning the engine (injected).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._db = database
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def upsert_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        pools: Sequence[PoolRecord],
    ) -> None:
        if not pools:
            return
        rows: dict[str, dict[str, Any]] = {}
        for pool in pools:
            if pool.variant is not variant:
                raise ValueError(f"pool {pool.address} does not belong to variant {variant.value}")
            rows.setdefault(pool.address, _pool_row(pool))
        table = pools_table(chain, variant)
        stmt = self._db.insert(table).on_conflict_do_nothing(index_elements=["address"])
        await self._write(table, stmt, list(rows.values()))

    async def upsert_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        swaps: Sequence[SwapEvent],
    ) -> None:
        if not swaps:
            return
        rows: dict[tuple[str, int], dict[str, Any]] = {}
        for swap in swaps:
            if swap.variant is not variant:
                raise ValueError(
                    f"swap {swap.transaction_hash}:{swap.log_index} does not belong to variant {variant.value}"
                )
            rows.setdefault(swap.key, _swap_row(swap))
        table = swaps_table(chain, variant)
        stmt = self._db.insert(table).on_conflict_do_nothing(
            index_elements=["transaction_hash", "log_index"]
        )
        await self._write(table, stmt, list(rows.values()))

    async def get_pool(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
    ) -> PoolRecord | None:
        table = pools_table(chain, variant)
        rows = await self._read(
            table, select(table).where(table.c.address == normalize_address(address))
        )
        return _pool_from_row(variant, rows[0]) if rows else None

    async def get_pools(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        addresses: Iterable[str],
    ) -> dict[str, PoolRecord]:
        table = pools_table(chain, variant)
        wanted = sorted({normalize_address(a) for a in addresses})
        found: dict[str, PoolRecord] = {}
        for i in range(0, len(wanted), _IN_CHUNK):
            chunk = wanted[i : i + _IN_CHUNK]
            rows = await self._read(table, select(table).where(table.c.address.in_(chunk)))
            for row in rows:
                pool = _pool_from_row(variant, row)
                found[pool.address] = pool
        return found

    async def list_pool_addresses(self, chain: Chain, variant: ProtocolVariant) -> list[str]:
        table = pools_table(chain, variant)
        rows = await self._read(table, select(table.c.address))
        return [row["address"] for row in rows]

    async def list_pool_swaps(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        address: str,
        since: datetime,
    ) -> list[SwapEvent]:
        table = swaps_table(chain, variant)
        stmt = (
            select(table)
            .where(table.c.pool == normalize_address(address))
            .where(table.c.block_timestamp >= _since_seconds(since))
            .order_by(table.c.block_number, table.c.log_index)
        )
        return [_swap_from_row(variant, row) for row in await self._read(table, stmt)]

    async def list_swaps_since(
        self,
        chain: Chain,
        variant: ProtocolVariant,
        since: datetime,
    ) -> list[SwapEvent]:
        table = swaps_table(chain, variant)
        stmt = (
            select(table)
            .where(table.c.block_timestamp >= _since_seconds(since))
            .order_by(table.c.block_number, table.c.log_index)
        )
        return [_swap_from_row(variant, row) for row in await self._read(table, stmt)]

    async def _write(self, table: Table, stmt: Any, rows: list[dict[str, Any]]) -> None:
        try:
            async with self._db.engine.begin() as conn:
                await conn.execute(stmt, rows)
        except SQLAlchemyError as e:
            self._logger.error(
                "event_store_write_failed",
                table=table.name,
                rows_count=len(rows),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceError(f"Write to {table.name} failed", table=table.name, cause=e) from e
        self._logger.debug("event_store_write", table=table.name, rows_count=len(rows))

    async def _read(self, table: Table, stmt: Any) -> list[RowMapping]:
        try:
            async with self._db.engine.connect() as conn:
                result = await conn.execute(stmt)
                return list(result.mappings().all())
        except SQLAlchemyError as e:
            self._logger.error(
                "event_store_read_failed",
                table=table.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceError(f"Read from {table.name} failed", table=table.name, cause=e) from e
