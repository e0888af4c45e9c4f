"""Notification subsystem: outbound alert channels."""

from pool_activity_monitor.notifications.channels import (
    AlertChannel,
    ConsoleChannel,
    TelegramChannel,
    XChannel,
)

__all__ = [
    "AlertChannel",
    "ConsoleChannel",
    "TelegramChannel",
    "XChannel",
]
