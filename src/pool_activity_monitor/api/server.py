# -*- coding: utf-8 -*-
"""aiohttp web server exposing the ingestion webhook and liveness endpoints."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional

import structlog
from aiohttp import web

from pool_activity_monitor.api.schemas import parse_webhook_payload
from pool_activity_monitor.exceptions import PersistenceError, ValidationError
from pool_activity_monitor.models.chain import Chain

if TYPE_CHECKING:
    from pool_activity_monitor.config import Settings
    from pool_activity_monitor.services.ingestion import IngestionGateway

SERVICE_NAME = "Pool Activity Webhook Service"
ENDPOINTS = ["/webhook", "/webhook/{chain}", "/health"]


class IngestionServer:
    """HTTP front of the ingestion gateway.

    Routes:
        POST /webhook           batch for the default chain (items may set "chain")
        POST /webhook/{chain}   batch for the given chain
        GET  /health            liveness
        POST /                  service status
    """

    def __init__(
        self,
        gateway: IngestionGateway,
        settings: Settings,
        *,
        default_chain: Chain = Chain.ETHEREUM,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the server.

        Args:
            gateway: Ingestion gateway receiving validated batches (injected).
            settings: Application settings (uses settings.server).
            default_chain: Chain of items posted to /webhook without a "chain" field.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._gateway = gateway
        self._settings = settings
        self._default_chain = default_chain
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application (also used directly by tests)."""
        app = web.Application(client_max_size=self._settings.server.max_body_bytes)
        app.router.add_post("/webhook", self.webhook_handler)
        app.router.add_post("/webhook/{chain}", self.webhook_handler)
        app.router.add_get("/health", self.health_handler)
        app.router.add_post("/", self.status_handler)
        return app

    async def start(self) -> None:
        """Bind and start serving. No-op if already running."""
        if self._runner is not None:
            self._logger.info("ingestion_server_already_running", port=self._settings.server.port)
            return
        runner = web.AppRunner(self.create_app())
        await runner.setup()
        site = web.TCPSite(runner, host=self._settings.server.host, port=self._settings.server.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            self._logger.error(
                "ingestion_server_start_failed",
                host=self._settings.server.host,
                port=self._settings.server.port,
                error_message=str(e),
            )
            raise
        self._runner = runner
        self._logger.info(
            "ingestion_server_started",
            host=self._settings.server.host,
            port=self._settings.server.port,
        )

    async def stop(self) -> None:
        """Stop serving and release the socket."""
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        self._logger.info("ingestion_server_stopped", port=self._settings.server.port)

    async def webhook_handler(self, request: web.Request) -> web.Response:
        chain_name = request.match_info.get("chain")
        if chain_name is None:
            default_chain = self._default_chain
        else:
            try:
                default_chain = Chain.parse(chain_name)
            except ValueError as e:
                return web.json_response({"status": "error", "message": str(e)}, status=400)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return web.json_response(
                {"status": "error", "message": "Request body is not valid JSON"}, status=400
            )

        try:
            items = parse_webhook_payload(body, default_chain)
            await self._gateway.accept_batch(items)
        except ValidationError as e:
            self._logger.warning(
                "webhook_payload_rejected",
                chain=default_chain.value,
                error_message=str(e),
                errors_count=len(e.errors),
            )
            return web.json_response(
                {"status": "error", "message": str(e), "errors": e.errors[:20]}, status=400
            )
        except PersistenceError as e:
            self._logger.error(
                "webhook_processing_failed",
                chain=default_chain.value,
                table=e.table,
                error_message=str(e),
            )
            return web.json_response(
                {"status": "error", "message": "Failed to process webhook"}, status=500
            )
        return web.Response(text="ok")

    async def health_handler(self, request: web.Request) -> web.Response:
        return web.json_response(
            {"status": "healthy", "service": SERVICE_NAME, "port": self._settings.server.port}
        )

    async def status_handler(self, request: web.Request) -> web.Response:
        return web.json_response(
            {"status": "running", "service": SERVICE_NAME, "endpoints": ENDPOINTS}
        )
