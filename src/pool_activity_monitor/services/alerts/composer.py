# -*- coding: utf-8 -*-
"""Alert composer: activity snapshot -> bounded-length alert text."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional, assert_never

import structlog

from pool_activity_monitor.exceptions import ApiError, CompositionError
from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.chain import Chain, ProtocolVariant

if TYPE_CHECKING:
    from pool_activity_monitor.clients.text_generation import TextGenerator

MAX_ALERT_LENGTH = 280
ELLIPSIS = "…"

_HEX_LITERAL = re.compile(r"0x[0-9a-fA-F]+")

_SYSTEM_PROMPT = (
    "You write one short post announcing unusual trading activity in a DEX pool. "
    "Use only the facts you are given. Do not invent prices, token names, numbers or "
    "addresses, and do not add hashtags or links. Plain text, at most "
    f"{MAX_ALERT_LENGTH} characters. Always include the pool address exactly as given."
)


def protocol_emoji(variant: ProtocolVariant) -> str:
    match variant:
        case ProtocolVariant.CONSTANT_PRODUCT:
            return "🔄"
        case ProtocolVariant.CONCENTRATED_LIQUIDITY:
            return "⚡"
        case _:
            assert_never(variant)


def fallback_message(address: str, variant: ProtocolVariant) -> str:
    """Deterministic alert text: protocol tag and pool address only."""
    return f"{protocol_emoji(variant)} High Activity Alert! {variant.label}\n\n{address}"


def truncate(text: str, limit: int = MAX_ALERT_LENGTH) -> str:
    """Cut text to limit characters, marking the cut with a trailing ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def _facts(activity: PoolActivity, variant: ProtocolVariant, chain: Chain) -> str:
    lines = [
        f"chain: {chain.value}",
        f"protocol: Uniswap {variant.label}",
        f"pool address: {activity.address}",
        f"token0 address: {activity.token0}",
        f"token1 address: {activity.token1}",
        f"swaps in the last 24h: {activity.total_swaps}",
        f"buys of token0: {activity.buy_count}",
        f"sells of token0: {activity.sell_count}",
        f"token0 volume (raw units): {activity.token0_volume:f}",
        f"token1 volume (raw units): {activity.token1_volume:f}",
    ]
    if activity.fee_percent is not None:
        lines.append(f"fee tier: {activity.fee_percent.normalize():f}%")
    return "\n".join(lines)


def check_generated_text(text: str, activity: PoolActivity) -> str:
    """Return text if it is usable for this snapshot.

    Raises:
        CompositionError: If text is empty or mentions an address the snapshot does not hold.
    """
    text = text.strip()
    if not text:
        raise CompositionError("Generated alert text is empty")
    known = {activity.address.lower(), activity.token0.lower(), activity.token1.lower()}
    unknown = {m.lower() for m in _HEX_LITERAL.findall(text)} - known
    if unknown:
        raise CompositionError(f"Generated alert text mentions unknown addresses: {sorted(unknown)}")
    return text


class AlertComposer:
    """Builds alert text, optionally worded by a text generator.

    Generation is best-effort: any failure, or output that fails
    check_generated_text, falls back to the deterministic template.
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        *,
        max_length: int = MAX_ALERT_LENGTH,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._generator = text_generator
        self._max_length = max_length
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def compose_message(
        self,
        activity: PoolActivity,
        variant: ProtocolVariant,
        chain: Chain,
    ) -> str:
        """Return alert text of at most max_length characters. Never raises on generation failure."""
        if activity.variant is not variant:
            raise ValueError(
                f"activity for {activity.address} is {activity.variant.value}, not {variant.value}"
            )
        if self._generator is None:
            return truncate(fallback_message(activity.address, variant), self._max_length)

        try:
            generated = await self._generator.generate(_SYSTEM_PROMPT, _facts(activity, variant, chain))
            text = check_generated_text(generated, activity)
        except (CompositionError, ApiError) as e:
            self._logger.warning(
                "alert_generation_fallback",
                chain=chain.value,
                protocol=variant.value,
                pool_address=activity.address,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            text = fallback_message(activity.address, variant)
        except Exception:
            self._logger.exception(
                "alert_generation_unexpected_error",
                chain=chain.value,
                protocol=variant.value,
                pool_address=activity.address,
            )
            text = fallback_message(activity.address, variant)
        return truncate(text, self._max_length)
