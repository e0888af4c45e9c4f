"""SQLAlchemy Core tables, one set per chain x protocol variant.

Naming: {chain}_{variant}_pools, {chain}_{variant}_swaps and {chain}_posted_activity,
e.g. ethereum_v3_swaps. Amounts are stored as exact decimal text (uint256 values
do not fit in SQLite numerics); block timestamps as unix seconds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    func,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator

from pool_activity_monitor.models.chain import Chain, ProtocolVariant

metadata = MetaData()

SCHEMA_VERSION = 1
SCHEMA_NAME = "per_chain_pools_swaps_posted_activity"


class DecimalText(TypeDecorator[Decimal]):
    """Decimal persisted as plain text ("-1234"), loaded back as Decimal."""

    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return format(Decimal(value), "f")

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


def _address() -> String:
    return String(42)


def _tx_hash() -> String:
    return String(66)


def _build_pools_table(chain: Chain, variant: ProtocolVariant) -> Table:
    columns: list[Any] = [
        Column("address", _address(), primary_key=True),
        Column("token0", _address(), nullable=False),
        Column("token1", _address(), nullable=False),
    ]
    if variant is ProtocolVariant.CONCENTRATED_LIQUIDITY:
        columns += [
            Column("fee", Integer, nullable=False),
            Column("tick_spacing", Integer, nullable=False),
        ]
    columns += [
        Column("block_number", BigInteger, nullable=False),
        Column("block_timestamp", BigInteger, nullable=False),
        Column("transaction_hash", _tx_hash(), nullable=False),
        Column("created_at", DateTime(timezone=True), server_default=func.now()),
    ]
    return Table(f"{chain.value}_{variant.value}_pools", metadata, *columns)


def _build_swaps_table(chain: Chain, variant: ProtocolVariant) -> Table:
    name = f"{chain.value}_{variant.value}_swaps"
    columns: list[Any] = [
        Column("pool", _address(), nullable=False),
        Column("sender", _address(), nullable=False),
        Column("recipient", _address(), nullable=False),
    ]
    if variant is ProtocolVariant.CONSTANT_PRODUCT:
        columns += [
            Column("amount0_in", DecimalText(), nullable=False),
            Column("amount1_in", DecimalText(), nullable=False),
            Column("amount0_out", DecimalText(), nullable=False),
            Column("amount1_out", DecimalText(), nullable=False),
        ]
    else:
        columns += [
            Column("amount0", DecimalText(), nullable=False),
            Column("amount1", DecimalText(), nullable=False),
            Column("sqrt_price_x96", DecimalText(), nullable=False),
            Column("liquidity", DecimalText(), nullable=False),
            Column("tick", Integer, nullable=False),
        ]
    columns += [
        Column("block_number", BigInteger, nullable=False),
        Column("block_timestamp", BigInteger, nullable=False),
        Column("transaction_hash", _tx_hash(), nullable=False),
        Column("log_index", Integer, nullable=False),
        Column("created_at", DateTime(timezone=True), server_default=func.now()),
    ]
    table = Table(
        name,
        metadata,
        *columns,
        PrimaryKeyConstraint("transaction_hash", "log_index", name=f"pk_{name}"),
    )
    Index(f"idx_{name}_pool", table.c.pool)
    Index(f"idx_{name}_block_timestamp", table.c.block_timestamp)
    return table


def _build_posted_activity_table(chain: Chain) -> Table:
    name = f"{chain.value}_posted_activity"
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("address", _address(), nullable=False, unique=True),
        Column("protocol", String(2), nullable=False),
        Column("token0", _address(), nullable=False),
        Column("token1", _address(), nullable=False),
        Column("trade_count", Integer, nullable=False),
        Column("fee", Integer, nullable=True),
        Column("first_posted_at", DateTime(timezone=True), nullable=False),
        Column("last_updated_at", DateTime(timezone=True), nullable=False),
        CheckConstraint("protocol IN ('v2', 'v3')", name=f"ck_{name}_protocol"),
    )


schema_migrations = Table(
    "schema_migrations",
    metadata,
    Column("version", Integer, primary_key=True),
    Column("name", String(128), nullable=False),
    Column("applied_at", DateTime(timezone=True), nullable=False),
)

_POOLS: dict[tuple[Chain, ProtocolVariant], Table] = {}
_SWAPS: dict[tuple[Chain, ProtocolVariant], Table] = {}
_POSTED: dict[Chain, Table] = {}

for _chain in Chain:
    _POSTED[_chain] = _build_posted_activity_table(_chain)
    for _variant in ProtocolVariant:
        _POOLS[(_chain, _variant)] = _build_pools_table(_chain, _variant)
        _SWAPS[(_chain, _variant)] = _build_swaps_table(_chain, _variant)


def pools_table(chain: Chain, variant: ProtocolVariant) -> Table:
    """Return the pools table for (chain, variant)."""
    return _POOLS[(chain, variant)]


def swaps_table(chain: Chain, variant: ProtocolVariant) -> Table:
    """Return the swaps table for (chain, variant)."""
    return _SWAPS[(chain, variant)]


def posted_activity_table(chain: Chain) -> Table:
    """Return the alert registry table for a chain."""
    return _POSTED[chain]
