# -*- coding: utf-8 -*-
"""Console alert channel (print-based)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pool_activity_monitor.exceptions import DeliveryError
from pool_activity_monitor.models.alert import PendingAlert
from pool_activity_monitor.notifications.channels.base import AlertChannel

if TYPE_CHECKING:  # pragma: no cover
    from pool_activity_monitor.config.config import Settings


class ConsoleChannel(AlertChannel):
    """Print alerts to stdout."""

    name = "console"

    def __init__(self, settings: "Settings") -> None:
        super().__init__(settings)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send(self, alert: PendingAlert) -> None:
        """Print the alert text, followed by a separator line."""
        if not self.is_running:
            raise DeliveryError("console channel is not running", channel=self.name)
        if not self.settings.console.enabled:
            return
        print(alert.text)
        print("-" * 40)
