# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from typing import Optional

from dependency_injector import containers, providers

from pool_activity_monitor.api.server import IngestionServer
from pool_activity_monitor.clients.http import AsyncHttpClient
from pool_activity_monitor.clients.text_generation import TextGenerator
from pool_activity_monitor.config import Settings, get_settings
from pool_activity_monitor.notifications.channels import (
    AlertChannel,
    ConsoleChannel,
    TelegramChannel,
    XChannel,
)
from pool_activity_monitor.persistence import (
    Database,
    InMemoryAlertRegistry,
    InMemoryEventStore,
    SqlAlertRegistry,
    SqlEventStore,
)
from pool_activity_monitor.services.activity import ActivityAggregator
from pool_activity_monitor.services.alerts import AlertComposer, AlertDeliveryQueue
from pool_activity_monitor.services.ingestion import IngestionGateway, PoolTrackingCache
from pool_activity_monitor.services.scheduler import ActivityScanScheduler


def _storage_backend(settings: Settings) -> str:
    return settings.database.backend


def _build_alert_channel(settings: Settings, http_client: AsyncHttpClient) -> AlertChannel:
    """Build the single configured alert channel."""
    match settings.delivery.channel:
        case "telegram":
            return TelegramChannel(settings=settings)
        case "x":
            return XChannel(settings=settings, http_client=http_client)
        case _:
            return ConsoleChannel(settings=settings)


def _build_text_generator(
    settings: Settings,
    http_client: AsyncHttpClient,
) -> Optional[TextGenerator]:
    if not settings.text_generation.enabled:
        return None
    return TextGenerator(settings=settings, http_client=http_client)


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, storage, services, alert channel and HTTP server."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    database = providers.Singleton(
        Database,
        settings=config,
    )

    event_store = providers.Selector(
        providers.Callable(_storage_backend, config),
        sql=providers.Singleton(SqlEventStore, database=database),
        memory=providers.Singleton(InMemoryEventStore),
    )

    alert_registry = providers.Selector(
        providers.Callable(_storage_backend, config),
        sql=providers.Singleton(SqlAlertRegistry, database=database),
        memory=providers.Singleton(InMemoryAlertRegistry),
    )

    pool_cache = providers.Singleton(PoolTrackingCache)

    ingestion_gateway = providers.Singleton(
        IngestionGateway,
        event_store=event_store,
        pool_cache=pool_cache,
        settings=config,
    )

    ingestion_server = providers.Singleton(
        IngestionServer,
        gateway=ingestion_gateway,
        settings=config,
    )

    activity_aggregator = providers.Singleton(
        ActivityAggregator,
        event_store=event_store,
        settings=config,
    )

    text_generator = providers.Singleton(
        _build_text_generator,
        settings=config,
        http_client=http_client,
    )

    alert_composer = providers.Singleton(
        AlertComposer,
        text_generator=text_generator,
    )

    alert_channel = providers.Singleton(
        _build_alert_channel,
        settings=config,
        http_client=http_client,
    )

    delivery_queue = providers.Singleton(
        AlertDeliveryQueue,
        channel=alert_channel,
        settings=config,
    )

    activity_scheduler = providers.Singleton(
        ActivityScanScheduler,
        aggregator=activity_aggregator,
        alert_registry=alert_registry,
        composer=alert_composer,
        delivery_queue=delivery_queue,
        settings=config,
    )
