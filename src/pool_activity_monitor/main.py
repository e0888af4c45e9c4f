# -*- coding: utf-8 -*-
"""
Entry point for the pool activity monitor.

Orchestrates: logging, settings, container, schema, pool cache warm-up, webhook
server, alert channel, activity scheduler, shutdown (SIGINT/SIGTERM or CancelledError).
Data flows: webhook -> ingestion gateway -> event store <- aggregator <- scheduler
-> composer -> delivery queue -> alert channel.

Run with: python -m pool_activity_monitor.main
"""
from __future__ import annotations

import asyncio
import signal
import structlog
from typing import Any

from pool_activity_monitor.DI import Container
from pool_activity_monitor.config import get_settings
from pool_activity_monitor.exceptions import MissingRequiredConfigError
from pool_activity_monitor.logging.config import configure_logging


def _setup_signals(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            pass  # Windows has no add_signal_handler


async def _do_shutdown(container: Container, logger: Any) -> None:
    """Stop everything in reverse start order. Undelivered alerts are discarded."""
    scheduler = container.activity_scheduler()
    await scheduler.stop()
    await container.ingestion_server().stop()
    discarded = await container.delivery_queue().stop()
    await container.alert_channel().shutdown()
    await container.http_client().aclose()
    if container.config().database.backend == "sql":
        await container.database().dispose()
    logger.info("main_shutdown_complete", discarded_alerts_count=discarded)


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()
    if not settings.monitor.chains:
        logger.error("main_missing_chains", message="MONITOR__CHAINS is empty")
        raise MissingRequiredConfigError("MONITOR__CHAINS")

    container = Container()
    if settings.database.backend == "sql":
        database = container.database()
        if database.should_run_migrations():
            await database.run_migrations()

    gateway = container.ingestion_gateway()
    await gateway.warm_up()

    channel = container.alert_channel()
    await channel.initialize()

    shutdown_event = asyncio.Event()
    _setup_signals(shutdown_event)

    await container.ingestion_server().start()
    await container.activity_scheduler().start()
    logger.info(
        "main_started",
        chains=settings.monitor.chains,
        storage_backend=settings.database.backend,
        alert_channel=channel.name,
        port=settings.server.port,
    )

    try:
        await shutdown_event.wait()
    finally:
        await _do_shutdown(container, logger)


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
