"""Alert models: the durable AlertRecord and the in-memory PendingAlert."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime

from pool_activity_monitor.models.chain import Chain, ProtocolVariant


@dataclass(frozen=True, slots=True)
class AlertRecord:
    """A pool that has already triggered an alert.

    Identity: (chain, address). first_posted_at is set once; a later record for
    the same pool refreshes the snapshot fields and last_updated_at only.
    """

    chain: Chain
    address: str
    variant: ProtocolVariant
    token0: str
    token1: str
    trade_count: int
    first_posted_at: datetime
    last_updated_at: datetime
    fee: int | None = None


@dataclass(frozen=True, slots=True)
class PendingAlert:
    """Composed alert waiting in the delivery queue. Lost on restart."""

    text: str
    chain: Chain
    variant: ProtocolVariant
    pool_address: str
    attempts: int = 0
    """Failed delivery attempts so far."""
    created_at: datetime | None = None

    @classmethod
    def create(
        cls,
        text: str,
        *,
        chain: Chain,
        variant: ProtocolVariant,
        pool_address: str,
    ) -> PendingAlert:
        return cls(
            text=text,
            chain=chain,
            variant=variant,
            pool_address=pool_address,
            created_at=datetime.now(UTC),
        )

    def with_failed_attempt(self) -> PendingAlert:
        """Return a copy with attempts incremented."""
        return replace(self, attempts=self.attempts + 1)
