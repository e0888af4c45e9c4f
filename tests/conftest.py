# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit and integration tests."""

from __future__ import annotations

import itertools
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from pool_activity_monitor.config import Settings
from pool_activity_monitor.exceptions import DeliveryError
from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import ConcentratedLiquiditySwap, ConstantProductSwap
from pool_activity_monitor.notifications.channels.base import AlertChannel
from pool_activity_monitor.persistence import Database
from pool_activity_monitor.persistence.repositories.in_memory import (
    InMemoryAlertRegistry,
    InMemoryEventStore,
)

POOL_A = "0x" + "a1" * 20
POOL_B = "0x" + "b2" * 20
TOKEN0 = "0x" + "c3" * 20
TOKEN1 = "0x" + "d4" * 20
TRADER = "0x" + "e5" * 20


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def D() -> Callable[[Any], Decimal]:
    """Decimal helper: D('1.23') -> Decimal('1.23')."""
    return lambda value: Decimal(str(value))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build Settings with nested overrides, e.g. settings_factory(monitor={"min_trade_count": 3})."""

    def _build(**overrides: Any) -> Settings:
        overrides.setdefault("logging", {"logfire_enabled": False})
        return Settings.from_env(**overrides)

    return _build


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture
def pool_factory(now_utc: datetime) -> Callable[..., PoolRecord]:
    """Build a PoolRecord (v2 by default) with easy overrides."""

    counter = itertools.count(1)

    def _build(
        variant: ProtocolVariant = ProtocolVariant.CONSTANT_PRODUCT,
        **overrides: Any,
    ) -> PoolRecord:
        n = next(counter)
        return PoolRecord.create(
            variant,
            address=overrides.pop("address", POOL_A),
            token0=overrides.pop("token0", TOKEN0),
            token1=overrides.pop("token1", TOKEN1),
            block_number=overrides.pop("block_number", 100 + n),
            block_timestamp=overrides.pop("block_timestamp", now_utc - timedelta(days=2)),
            transaction_hash=overrides.pop("transaction_hash", f"0x{n:064x}"),
            fee=overrides.pop("fee", 3000 if variant is ProtocolVariant.CONCENTRATED_LIQUIDITY else None),
            tick_spacing=overrides.pop(
                "tick_spacing", 60 if variant is ProtocolVariant.CONCENTRATED_LIQUIDITY else None
            ),
        )

    return _build


@pytest.fixture
def v2_swap_factory(now_utc: datetime) -> Callable[..., ConstantProductSwap]:
    """Build a v2 swap. buy=True pays token1 for token0, buy=False the reverse."""

    counter = itertools.count(1)

    def _build(*, buy: bool = True, **overrides: Any) -> ConstantProductSwap:
        n = next(counter)
        amounts = (
            {"amount0_in": "0", "amount1_in": "1000", "amount0_out": "500", "amount1_out": "0"}
            if buy
            else {"amount0_in": "500", "amount1_in": "0", "amount0_out": "0", "amount1_out": "1000"}
        )
        for key in list(amounts):
            if key in overrides:
                amounts[key] = overrides.pop(key)
        return ConstantProductSwap.create(
            pool=overrides.pop("pool", POOL_A),
            sender=overrides.pop("sender", TRADER),
            recipient=overrides.pop("recipient", TRADER),
            block_number=overrides.pop("block_number", 1000 + n),
            block_timestamp=overrides.pop("block_timestamp", now_utc - timedelta(hours=1)),
            transaction_hash=overrides.pop("transaction_hash", f"0x{n:064x}"),
            log_index=overrides.pop("log_index", 0),
            **amounts,
        )

    return _build


@pytest.fixture
def v3_swap_factory(now_utc: datetime) -> Callable[..., ConcentratedLiquiditySwap]:
    """Build a v3 swap. buy=True: pool pays out token1 (amount1 < 0)."""

    counter = itertools.count(1)

    def _build(*, buy: bool = True, **overrides: Any) -> ConcentratedLiquiditySwap:
        n = next(counter)
        return ConcentratedLiquiditySwap.create(
            pool=overrides.pop("pool", POOL_B),
            sender=overrides.pop("sender", TRADER),
            recipient=overrides.pop("recipient", TRADER),
            amount0=overrides.pop("amount0", "2000" if buy else "-2000"),
            amount1=overrides.pop("amount1", "-3000" if buy else "3000"),
            sqrt_price_x96=overrides.pop("sqrt_price_x96", "79228162514264337593543950336"),
            liquidity=overrides.pop("liquidity", "1000000000000000000"),
            tick=overrides.pop("tick", -12),
            block_number=overrides.pop("block_number", 2000 + n),
            block_timestamp=overrides.pop("block_timestamp", now_utc - timedelta(hours=1)),
            transaction_hash=overrides.pop("transaction_hash", f"0x{n:064x}"),
            log_index=overrides.pop("log_index", 0),
        )

    return _build


@pytest.fixture
def activity_factory() -> Callable[..., PoolActivity]:
    """Build a PoolActivity snapshot."""

    def _build(**overrides: Any) -> PoolActivity:
        variant = overrides.pop("variant", ProtocolVariant.CONSTANT_PRODUCT)
        return PoolActivity(
            chain=overrides.pop("chain", Chain.ETHEREUM),
            variant=variant,
            address=overrides.pop("address", POOL_A),
            token0=overrides.pop("token0", TOKEN0),
            token1=overrides.pop("token1", TOKEN1),
            total_swaps=overrides.pop("total_swaps", 600),
            buy_count=overrides.pop("buy_count", 400),
            sell_count=overrides.pop("sell_count", 200),
            token0_volume=overrides.pop("token0_volume", Decimal("123456789")),
            token1_volume=overrides.pop("token1_volume", Decimal("987654321")),
            fee=overrides.pop("fee", None),
        )

    return _build


@pytest.fixture
def event_store() -> InMemoryEventStore:
    """Fresh in-memory event store per test."""
    return InMemoryEventStore()


@pytest.fixture
def alert_registry() -> InMemoryAlertRegistry:
    """Fresh in-memory alert registry per test."""
    return InMemoryAlertRegistry()


@pytest.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    """Schema-ready Database on a private in-memory SQLite (aiosqlite) engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db = Database(settings, engine=engine)
    await db.run_migrations()
    yield db
    await db.dispose()


class RecordingChannel(AlertChannel):
    """Test channel: records sent alerts, fails the configured number of times per pool."""

    name = "recording"

    def __init__(self, settings: Settings, *, failures: dict[str, int] | None = None) -> None:
        super().__init__(settings)
        self.sent: list[PendingAlert] = []
        self.failures = dict(failures or {})
        self.failed: list[PendingAlert] = []
        self._running = True

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send(self, alert: PendingAlert) -> None:
        remaining = self.failures.get(alert.pool_address, 0)
        if remaining:
            self.failures[alert.pool_address] = remaining - 1
            self.failed.append(alert)
            raise DeliveryError("simulated failure", channel=self.name)
        self.sent.append(alert)


@pytest.fixture
def recording_channel(settings: Settings) -> RecordingChannel:
    return RecordingChannel(settings)


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested from the fake sleep fixture."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable[[float], Any]:
    """Awaitable sleep that records the delay and returns immediately."""

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def channel_factory(settings: Settings) -> Callable[..., RecordingChannel]:
    """Build a RecordingChannel, e.g. channel_factory(failures={pool: 1})."""

    def _build(**kwargs: Any) -> RecordingChannel:
        return RecordingChannel(settings, **kwargs)

    return _build
