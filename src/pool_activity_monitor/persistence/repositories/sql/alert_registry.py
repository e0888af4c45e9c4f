# -*- coding: utf-8 -*-
"""SQL alert registry: one {chain}_posted_activity table per chain, unique on address."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from pool_activity_monitor.exceptions import PersistenceError
from pool_activity_monitor.models.alert import AlertRecord
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import normalize_address
from pool_activity_monitor.persistence.database import Database
from pool_activity_monitor.persistence.repositories.interfaces.alert_registry import (
    IAlertRegistry,
)
from pool_activity_monitor.persistence.tables import posted_activity_table


def _aware(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; they were written as UTC."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


class SqlAlertRegistry(IAlertRegistry):
    """SQLAlchemy (asyncio) implementation of IAlertRegistry."""

    def __init__(
        self,
        database: Database,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._db = database
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def is_alerted(self, chain: Chain, address: str) -> bool:
        table = posted_activity_table(chain)
        stmt = select(table.c.id).where(table.c.address == normalize_address(address)).limit(1)
        try:
            async with self._db.engine.connect() as conn:
                result = await conn.execute(stmt)
                return result.first() is not None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Read from {table.name} failed", table=table.name, cause=e) from e

    async def record_alert(
        self,
        chain: Chain,
        address: str,
        variant: ProtocolVariant,
        token0: str,
        token1: str,
        trade_count: int,
        fee: int | None = None,
    ) -> None:
        """Insert, or on an existing address refresh the snapshot (first_posted_at kept)."""
        table = posted_activity_table(chain)
        now = datetime.now(UTC)
        stmt = self._db.insert(table).values(
            address=normalize_address(address),
            protocol=variant.value,
            token0=normalize_address(token0),
            token1=normalize_address(token1),
            trade_count=trade_count,
            fee=fee,
            first_posted_at=now,
            last_updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["address"],
            set_={
                "protocol": stmt.excluded.protocol,
                "token0": stmt.excluded.token0,
                "token1": stmt.excluded.token1,
                "trade_count": stmt.excluded.trade_count,
                "fee": stmt.excluded.fee,
                "last_updated_at": stmt.excluded.last_updated_at,
            },
        )
        try:
            async with self._db.engine.begin() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as e:
            self._logger.error(
                "alert_registry_write_failed",
                table=table.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceError(f"Write to {table.name} failed", table=table.name, cause=e) from e

    async def get(self, chain: Chain, address: str) -> AlertRecord | None:
        table = posted_activity_table(chain)
        stmt = select(table).where(table.c.address == normalize_address(address))
        try:
            async with self._db.engine.connect() as conn:
                row = (await conn.execute(stmt)).mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Read from {table.name} failed", table=table.name, cause=e) from e
        if row is None:
            return None
        return AlertRecord(
            chain=chain,
            address=row["address"],
            variant=ProtocolVariant(row["protocol"]),
            token0=row["token0"],
            token1=row["token1"],
            trade_count=row["trade_count"],
            first_posted_at=_aware(row["first_posted_at"]),
            last_updated_at=_aware(row["last_updated_at"]),
            fee=row["fee"],
        )
