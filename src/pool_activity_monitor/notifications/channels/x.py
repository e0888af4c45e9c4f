# -*- coding: utf-8 -*-
"""X (Twitter) alert channel: POST /2/tweets with an OAuth 2.0 user token."""

from __future__ import annotations

import structlog
from typing import Any, Callable, Optional, TYPE_CHECKING

from pool_activity_monitor.exceptions import (
    ApiError,
    DeliveryError,
    MissingRequiredConfigError,
    RateLimitError,
)
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.notifications.channels.base import AlertChannel

if TYPE_CHECKING:
    from pool_activity_monitor.clients.http import AsyncHttpClient
    from pool_activity_monitor.config.config import Settings


class XChannel(AlertChannel):
    """Post alerts as tweets."""

    name = "x"

    def __init__(
        self,
        settings: "Settings",
        http_client: "AsyncHttpClient",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(settings)
        self._http = http_client
        self._logger = get_logger(logger_name or self.__class__.__name__)
        cfg = self.settings.x
        if not cfg.access_token:
            raise MissingRequiredConfigError("X channel requires X__ACCESS_TOKEN.")
        self._url = f"{cfg.api_host.rstrip('/')}/2/tweets"
        self._headers = {"Authorization": f"Bearer {cfg.access_token}"}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send(self, alert: PendingAlert) -> None:
        if not self._running:
            raise DeliveryError("x channel is not running", channel=self.name)
        try:
            # One attempt: the delivery queue owns retry and pacing.
            response = await self._http.post(
                self._url, json={"text": alert.text}, headers=self._headers, max_retries=1
            )
        except RateLimitError as exc:
            raise DeliveryError(
                "X rate limit", channel=self.name, retry_after=exc.retry_after, cause=exc
            ) from exc
        except ApiError as exc:
            raise DeliveryError(
                f"X post failed ({exc.status_code})", channel=self.name, cause=exc
            ) from exc

        tweet_id = (response or {}).get("data", {}).get("id") if isinstance(response, dict) else None
        username = self.settings.x.username
        self._logger.info(
            "x_post_created",
            tweet_id=tweet_id,
            tweet_url=f"https://x.com/{username}/status/{tweet_id}" if username and tweet_id else None,
            pool_address=alert.pool_address,
        )
