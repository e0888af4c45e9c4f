# -*- coding: utf-8 -*-
"""Base alert channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pool_activity_monitor.models.alert import PendingAlert

if TYPE_CHECKING:  # pragma: no cover
    from pool_activity_monitor.config.config import Settings


class AlertChannel(ABC):
    """Abstract external destination for composed alerts.

    A channel makes a single attempt per send() and raises DeliveryError on
    failure; retry and pacing belong to the delivery queue.
    """

    name: str = "channel"

    def __init__(self, settings: "Settings"):
        """
        Initialize the channel.

        Args:
            settings: Global configuration (Settings).
        """
        self.settings = settings

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """True between initialize() and shutdown()."""
        pass

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass

    @abstractmethod
    async def send(self, alert: PendingAlert) -> None:
        """
        Post one alert.

        Args:
            alert: Alert to post (alert.text is already length-bounded).

        Raises:
            DeliveryError: If the alert was not posted.
        """
        pass
