# -*- coding: utf-8 -*-
"""Unit tests for InMemoryAlertRegistry."""

from __future__ import annotations

from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.persistence.repositories.in_memory import InMemoryAlertRegistry


async def test_record_alert_marks_pool_per_chain(alert_registry: InMemoryAlertRegistry) -> None:
    await alert_registry.record_alert(
        Chain.ETHEREUM, "0xPOOL", ProtocolVariant.CONSTANT_PRODUCT, "0xt0", "0xt1", 500
    )

    assert await alert_registry.is_alerted(Chain.ETHEREUM, "0xpool")
    assert not await alert_registry.is_alerted(Chain.BASE, "0xpool")


async def test_record_alert_updates_snapshot_and_keeps_first_posted_at(
    alert_registry: InMemoryAlertRegistry,
) -> None:
    await alert_registry.record_alert(
        Chain.BASE, "0xpool", ProtocolVariant.CONCENTRATED_LIQUIDITY, "0xt0", "0xt1", 500, fee=500
    )
    first = await alert_registry.get(Chain.BASE, "0xpool")

    await alert_registry.record_alert(
        Chain.BASE, "0xpool", ProtocolVariant.CONCENTRATED_LIQUIDITY, "0xt0", "0xt1", 900, fee=500
    )
    second = await alert_registry.get(Chain.BASE, "0xpool")

    assert first is not None and second is not None
    assert second.trade_count == 900
    assert second.first_posted_at == first.first_posted_at
    assert second.last_updated_at >= first.last_updated_at
    assert second.fee == 500
