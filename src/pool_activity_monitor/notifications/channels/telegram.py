# -*- coding: utf-8 -*-
"""Telegram alert channel (async)."""

from __future__ import annotations

import asyncio
import time
import structlog
from typing import Any, Callable, Optional, TYPE_CHECKING

from telegram import Bot
from telegram.error import RetryAfter, TelegramError
from telegram.request import HTTPXRequest

from pool_activity_monitor.exceptions import DeliveryError, MissingRequiredConfigError
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.notifications.channels.base import AlertChannel

if TYPE_CHECKING:
    from pool_activity_monitor.config.config import Settings


class TelegramChannel(AlertChannel):
    """Send alerts to a Telegram chat using python-telegram-bot."""

    name = "telegram"

    def __init__(
        self,
        settings: "Settings",
        *,
        bot: Optional[Bot] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(settings)
        self._logger = get_logger(logger_name or self.__class__.__name__)

        cfg = self.settings.telegram
        if not cfg.api_key or not cfg.chat_id:
            raise MissingRequiredConfigError(
                "Telegram channel requires TELEGRAM__API_KEY and TELEGRAM__CHAT_ID."
            )

        self.token: str = str(cfg.api_key)
        self.chat_id: str = str(cfg.chat_id)
        self.messages_per_minute = cfg.messages_per_minute

        self._bot: Optional[Bot] = bot
        self._running = False
        self._message_timestamps: list[float] = []

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        if self._running:
            self._logger.warning("telegram_already_running")
            return
        if self._bot is None:
            cfg = self.settings.telegram
            request = HTTPXRequest(
                connect_timeout=cfg.connect_timeout,
                read_timeout=cfg.read_timeout,
                write_timeout=cfg.write_timeout,
                pool_timeout=cfg.pool_timeout,
            )
            self._bot = Bot(token=self.token, request=request)
        self._running = True

    async def shutdown(self) -> None:
        if not self._running:
            return
        self._bot = None
        self._running = False

    async def send(self, alert: PendingAlert) -> None:
        if not self._running or self._bot is None:
            raise DeliveryError("telegram channel is not running", channel=self.name)

        await self._apply_rate_limit()
        try:
            await self._bot.send_message(chat_id=self.chat_id, text=alert.text)
        except RetryAfter as exc:
            retry_after = exc.retry_after
            retry_seconds = (
                retry_after.total_seconds()
                if hasattr(retry_after, "total_seconds")
                else float(retry_after)
            )
            self._logger.warning(
                "telegram_rate_limit_retry_after",
                retry_seconds=retry_seconds,
            )
            raise DeliveryError(
                "Telegram rate limit", channel=self.name, retry_after=retry_seconds, cause=exc
            ) from exc
        except TelegramError as exc:
            self._logger.warning(
                "telegram_send_failed",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            raise DeliveryError(
                f"Telegram send failed: {exc}", channel=self.name, cause=exc
            ) from exc
        self._message_timestamps.append(time.time())
        self._logger.debug("telegram_message_sent", pool_address=alert.pool_address)

    async def _apply_rate_limit(self) -> None:
        if self.messages_per_minute <= 0:
            return

        now = time.time()
        window_start = now - 60
        self._message_timestamps = [t for t in self._message_timestamps if t >= window_start]
        if len(self._message_timestamps) >= self.messages_per_minute:
            sleep_time = 60 - (now - self._message_timestamps[0])
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
