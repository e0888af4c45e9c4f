"""Alert channels."""

from pool_activity_monitor.notifications.channels.base import AlertChannel
from pool_activity_monitor.notifications.channels.console import ConsoleChannel
from pool_activity_monitor.notifications.channels.telegram import TelegramChannel
from pool_activity_monitor.notifications.channels.x import XChannel

__all__ = [
    "AlertChannel",
    "ConsoleChannel",
    "TelegramChannel",
    "XChannel",
]
