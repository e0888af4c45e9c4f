"""Chain and protocol variant tags.

Every pool, swap, activity snapshot and alert carries both tags; storage is
partitioned by (chain, variant) and the alert registry by chain.
"""

from __future__ import annotations

from enum import Enum


class Chain(str, Enum):
    """Supported EVM chains."""

    ETHEREUM = "ethereum"
    BASE = "base"

    @classmethod
    def parse(cls, value: str | Chain) -> Chain:
        """Return the Chain for a name (case-insensitive). Raises ValueError if unknown."""
        if isinstance(value, Chain):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            supported = ", ".join(c.value for c in cls)
            raise ValueError(f"unsupported chain {value!r} (supported: {supported})") from None


class ProtocolVariant(str, Enum):
    """DEX protocol variant."""

    CONSTANT_PRODUCT = "v2"
    """Unsigned in/out amounts per token (Uniswap V2 style pairs)."""
    CONCENTRATED_LIQUIDITY = "v3"
    """Signed per-token amounts, fee tier and tick spacing (Uniswap V3 style pools)."""

    @property
    def label(self) -> str:
        """Short upper-case protocol tag used in alert text (V2 / V3)."""
        return self.value.upper()
