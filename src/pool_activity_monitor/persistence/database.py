# -*- coding: utf-8 -*-
"""Async database access: engine lifecycle, schema creation and dialect-aware inserts.

Networked PostgreSQL (asyncpg) when DATABASE__URL is set, otherwise an embedded
SQLite file (aiosqlite). The embedded store always creates its schema on startup.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Optional

import structlog
from sqlalchemy import Table, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pool_activity_monitor.config import Settings
from pool_activity_monitor.exceptions import PersistenceError
from pool_activity_monitor.persistence.tables import (
    SCHEMA_NAME,
    SCHEMA_VERSION,
    metadata,
    schema_migrations,
)


def _build_engine(settings: Settings) -> AsyncEngine:
    db = settings.database
    url = make_url(db.resolved_url)
    kwargs: dict[str, Any] = {"echo": db.echo, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        database = url.database or ""
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        # Concurrent webhook batches wait for the file lock instead of failing fast.
        kwargs["connect_args"] = {"timeout": 30}
    else:
        kwargs["pool_size"] = db.pool_size
    return create_async_engine(url, **kwargs)


class Database:
    """Owns the AsyncEngine and the schema bookkeeping."""

    def __init__(
        self,
        settings: Settings,
        *,
        engine: Optional[AsyncEngine] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the database wrapper.

        Args:
            settings: Application settings (uses settings.database).
            engine: Optional pre-built engine (tests pass an in-memory SQLite engine).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._engine = engine or _build_engine(settings)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def insert(self, table: Table) -> Any:
        """Return an INSERT supporting ON CONFLICT for the engine's dialect."""
        if self.dialect_name == "postgresql":
            return pg_insert(table)
        if self.dialect_name == "sqlite":
            return sqlite_insert(table)
        raise PersistenceError(
            f"Unsupported database dialect: {self.dialect_name}",
            table=table.name,
        )

    def should_run_migrations(self) -> bool:
        """Schema is created when asked to, and always for the embedded store."""
        db = self._settings.database
        return db.run_migrations or db.is_embedded

    async def run_migrations(self) -> None:
        """Create missing tables and record the schema version.

        Raises:
            PersistenceError: If the DDL or the bookkeeping insert fails.
        """
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
                result = await conn.execute(select(func.max(schema_migrations.c.version)))
                current = result.scalar() or 0
                if current < SCHEMA_VERSION:
                    self._logger.info(
                        "database_migration_applying",
                        migration_version=SCHEMA_VERSION,
                        migration_name=SCHEMA_NAME,
                        current_version=current,
                    )
                    await conn.execute(
                        insert(schema_migrations).values(
                            version=SCHEMA_VERSION,
                            name=SCHEMA_NAME,
                            applied_at=datetime.now(UTC),
                        )
                    )
        except SQLAlchemyError as e:
            self._logger.exception(
                "database_migration_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceError("Schema migration failed", cause=e) from e
        self._logger.info(
            "database_schema_ready",
            database_dialect=self.dialect_name,
            schema_version=SCHEMA_VERSION,
        )

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self._engine.dispose()
