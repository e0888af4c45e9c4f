"""Swap events for both protocol variants.

Identity of a swap is (chain, variant, transaction_hash, log_index). Amounts are
kept as Decimal (raw token units, no decimals applied) and never go through float.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from pool_activity_monitor.models.chain import ProtocolVariant
from pool_activity_monitor.models.pool import from_unix_seconds, normalize_address


def to_decimal(value: str | int | Decimal) -> Decimal:
    """Parse an integer-valued amount (string, int or Decimal) into Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return Decimal(value.strip())


def _timestamp(value: datetime | int) -> datetime:
    return value if isinstance(value, datetime) else from_unix_seconds(value)


@dataclass(frozen=True, slots=True)
class ConstantProductSwap:
    """v2 Swap(sender, amount0In, amount1In, amount0Out, amount1Out, to)."""

    variant: ClassVar[ProtocolVariant] = ProtocolVariant.CONSTANT_PRODUCT

    pool: str
    sender: str
    recipient: str
    """The `to` field of the v2 Swap log."""
    amount0_in: Decimal
    amount1_in: Decimal
    amount0_out: Decimal
    amount1_out: Decimal
    block_number: int
    block_timestamp: datetime
    transaction_hash: str
    log_index: int

    @classmethod
    def create(
        cls,
        *,
        pool: str,
        sender: str,
        recipient: str,
        amount0_in: str | int | Decimal,
        amount1_in: str | int | Decimal,
        amount0_out: str | int | Decimal,
        amount1_out: str | int | Decimal,
        block_number: int,
        block_timestamp: datetime | int,
        transaction_hash: str,
        log_index: int,
    ) -> ConstantProductSwap:
        """Create a swap with normalized addresses and Decimal amounts."""
        return cls(
            pool=normalize_address(pool),
            sender=normalize_address(sender),
            recipient=normalize_address(recipient),
            amount0_in=to_decimal(amount0_in),
            amount1_in=to_decimal(amount1_in),
            amount0_out=to_decimal(amount0_out),
            amount1_out=to_decimal(amount1_out),
            block_number=int(block_number),
            block_timestamp=_timestamp(block_timestamp),
            transaction_hash=transaction_hash.strip().lower(),
            log_index=int(log_index),
        )

    @property
    def key(self) -> tuple[str, int]:
        """Unique key within one (chain, variant) partition."""
        return (self.transaction_hash, self.log_index)


@dataclass(frozen=True, slots=True)
class ConcentratedLiquiditySwap:
    """v3 Swap(sender, recipient, amount0, amount1, sqrtPriceX96, liquidity, tick).

    amount0/amount1 are signed from the pool's perspective: positive flows into
    the pool, negative flows out.
    """

    variant: ClassVar[ProtocolVariant] = ProtocolVariant.CONCENTRATED_LIQUIDITY

    pool: str
    sender: str
    recipient: str
    amount0: Decimal
    amount1: Decimal
    sqrt_price_x96: Decimal
    liquidity: Decimal
    tick: int
    block_number: int
    block_timestamp: datetime
    transaction_hash: str
    log_index: int

    @classmethod
    def create(
        cls,
        *,
        pool: str,
        sender: str,
        recipient: str,
        amount0: str | int | Decimal,
        amount1: str | int | Decimal,
        sqrt_price_x96: str | int | Decimal,
        liquidity: str | int | Decimal,
        tick: int,
        block_number: int,
        block_timestamp: datetime | int,
        transaction_hash: str,
        log_index: int,
    ) -> ConcentratedLiquiditySwap:
        """Create a swap with normalized addresses and Decimal amounts."""
        return cls(
            pool=normalize_address(pool),
            sender=normalize_address(sender),
            recipient=normalize_address(recipient),
            amount0=to_decimal(amount0),
            amount1=to_decimal(amount1),
            sqrt_price_x96=to_decimal(sqrt_price_x96),
            liquidity=to_decimal(liquidity),
            tick=int(tick),
            block_number=int(block_number),
            block_timestamp=_timestamp(block_timestamp),
            transaction_hash=transaction_hash.strip().lower(),
            log_index=int(log_index),
        )

    @property
    def key(self) -> tuple[str, int]:
        """Unique key within one (chain, variant) partition."""
        return (self.transaction_hash, self.log_index)


SwapEvent = ConstantProductSwap | ConcentratedLiquiditySwap
