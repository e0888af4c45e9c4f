# -*- coding: utf-8 -*-
"""Logging configuration: stdlib handlers, structlog processor chain, optional Logfire."""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

import logfire
import structlog
from structlog.types import EventDict, Processor

from pool_activity_monitor.config import AppSettings, LoggingSettings, Settings, get_settings

# Standard level name -> Logfire min_level
LOG_LEVEL_TO_LOGFIRE: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}

# Third-party loggers that are chatty at INFO (access log per webhook call, SQL echo).
_NOISY_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
}


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _service_context(app_settings: AppSettings) -> Processor:
    """Build a processor stamping logger name and service identity on every event."""
    static: dict[str, Any] = {
        "app_name": app_settings.app_name,
        "environment": app_settings.environment,
    }
    if app_settings.service_name:
        static["service_name"] = app_settings.service_name
    if app_settings.service_version:
        static["service_version"] = app_settings.service_version

    def _add(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        stdlib_logger = getattr(logger, "_logger", None)
        event_dict["logger"] = (
            getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
        )
        event_dict.update(static)
        return event_dict

    return _add


def _file_handler(logging_settings: LoggingSettings) -> logging.Handler:
    path = Path(logging_settings.log_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return TimedRotatingFileHandler(
        path,
        when=logging_settings.log_file_when,
        interval=logging_settings.log_file_interval,
        backupCount=logging_settings.log_file_backup_count,
        encoding="utf-8",
        utc=logging_settings.log_file_utc,
    )


def _install_handlers(logging_settings: LoggingSettings) -> None:
    """Attach console/file handlers to the root logger, replacing earlier ones."""
    targets: list[tuple[logging.Handler, int]] = []
    if logging_settings.log_to_console:
        targets.append((logging.StreamHandler(), _level(logging_settings.console_level)))
    if logging_settings.log_to_file:
        targets.append((_file_handler(logging_settings), _level(logging_settings.file_level)))
    if not targets:
        return

    for handler, level in targets:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    logging.basicConfig(
        level=min(level for _, level in targets),
        handlers=[handler for handler, _ in targets],
        force=True,
    )


def _renderer(logging_settings: LoggingSettings) -> Processor | None:
    """File output is always JSON; console-only output follows json_format."""
    if not (logging_settings.log_to_console or logging_settings.log_to_file):
        return None
    if logging_settings.log_to_file or logging_settings.json_format:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure stdlib handlers, structlog and (if enabled) Logfire.

    Args:
        settings: Application settings; defaults to get_settings().
    """
    settings = settings or get_settings()
    app_settings = settings.app
    logging_settings = settings.logging

    _install_handlers(logging_settings)
    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    if logging_settings.logfire_enabled:
        logfire.configure(
            token=logging_settings.logfire_token,
            service_name=app_settings.service_name or app_settings.app_name,
            service_version=app_settings.service_version,
            min_level=LOG_LEVEL_TO_LOGFIRE.get(logging_settings.logfire_level, "info"),  # type: ignore[arg-type]
            environment=app_settings.environment,
        )

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(app_settings),
    ]
    if logging_settings.logfire_enabled:
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]
    renderer = _renderer(logging_settings)
    if renderer is not None:
        processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
