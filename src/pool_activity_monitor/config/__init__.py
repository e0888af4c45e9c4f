"""Configuration subpackage."""

from pool_activity_monitor.config.config import (
    ApiSettings,
    AppSettings,
    ConsoleNotificationSettings,
    DatabaseSettings,
    DeliverySettings,
    IngestionSettings,
    LoggingSettings,
    MonitorSettings,
    ServerSettings,
    Settings,
    TelegramNotificationSettings,
    TextGenerationSettings,
    XNotificationSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "ConsoleNotificationSettings",
    "DatabaseSettings",
    "DeliverySettings",
    "IngestionSettings",
    "LoggingSettings",
    "MonitorSettings",
    "ServerSettings",
    "Settings",
    "TelegramNotificationSettings",
    "TextGenerationSettings",
    "XNotificationSettings",
    "get_settings",
]
