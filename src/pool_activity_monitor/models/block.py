"""BlockEvents: the creation and swap events pushed for one block."""

from __future__ import annotations

from dataclasses import dataclass, field

from pool_activity_monitor.models.chain import Chain
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import SwapEvent


@dataclass(frozen=True, slots=True)
class BlockEvents:
    """Validated content of one pushed block, both protocol variants mixed.

    Each PoolRecord and SwapEvent carries its own variant tag.
    """

    chain: Chain
    number: int
    hash: str
    pools: tuple[PoolRecord, ...] = field(default_factory=tuple)
    swaps: tuple[SwapEvent, ...] = field(default_factory=tuple)
