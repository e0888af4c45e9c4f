"""PoolRecord: a pool (or pair) recorded from its creation event."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pool_activity_monitor.models.chain import ProtocolVariant


def normalize_address(address: str) -> str:
    """Return the canonical (stripped, lowercased) form of a 0x address."""
    return address.strip().lower()


def from_unix_seconds(ts: int) -> datetime:
    """Convert a block timestamp (unix seconds) to an aware UTC datetime."""
    return datetime.fromtimestamp(int(ts), tz=UTC)


def to_unix_seconds(dt: datetime) -> int:
    """Convert an aware datetime to unix seconds (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


@dataclass(frozen=True, slots=True)
class PoolRecord:
    """A pool created on-chain.

    Identity: (chain, variant, address). Immutable once stored; a later creation
    event for the same address is ignored by the store.
    """

    variant: ProtocolVariant
    address: str
    """Pool (v3) or pair (v2) contract address, lowercased."""
    token0: str
    token1: str
    block_number: int
    block_timestamp: datetime
    transaction_hash: str
    fee: int | None = None
    """Fee tier in hundredths of a bip (3000 = 0.30%). v3 only."""
    tick_spacing: int | None = None
    """v3 only."""

    @classmethod
    def create(
        cls,
        variant: ProtocolVariant,
        *,
        address: str,
        token0: str,
        token1: str,
        block_number: int,
        block_timestamp: datetime | int,
        transaction_hash: str,
        fee: int | None = None,
        tick_spacing: int | None = None,
    ) -> PoolRecord:
        """Create a record with normalized addresses.

        block_timestamp may be a datetime or unix seconds.
        """
        if not address or not address.strip():
            raise ValueError("pool address must be non-empty")
        if variant is ProtocolVariant.CONSTANT_PRODUCT:
            fee = None
            tick_spacing = None
        ts = (
            block_timestamp
            if isinstance(block_timestamp, datetime)
            else from_unix_seconds(block_timestamp)
        )
        return cls(
            variant=variant,
            address=normalize_address(address),
            token0=normalize_address(token0),
            token1=normalize_address(token1),
            block_number=int(block_number),
            block_timestamp=ts,
            transaction_hash=transaction_hash.strip().lower(),
            fee=fee,
            tick_spacing=tick_spacing,
        )
