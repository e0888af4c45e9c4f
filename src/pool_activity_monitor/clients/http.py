# -*- coding: utf-8 -*-
"""Async HTTP client with retries and rate-limit handling (outbound calls only)."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Mapping, Optional
from structlog.contextvars import bound_contextvars

from pool_activity_monitor.config import Settings
from pool_activity_monitor.exceptions import ApiError, RateLimitError


def _retry_after_seconds(headers: Mapping[str, str]) -> Optional[float]:
    header = headers.get("Retry-After")
    if not header:
        return None
    try:
        return float(header)
    except ValueError:
        return None


class AsyncHttpClient:
    """Async JSON-over-HTTP client used by alert channels and text generation.

    Retries transport errors and 5xx responses with exponential backoff and
    honours Retry-After on 429. Other 4xx responses are not retried. If no
    session is injected, one is created and must be closed via aclose() or
    by using the client as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (settings.api: timeout, max_retries).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.api.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """Perform a POST request with a JSON body and return the parsed JSON response.

        Args:
            url: Full URL to request.
            json: Optional JSON-serializable body.
            headers: Optional extra request headers (e.g. Authorization).
            max_retries: Attempts for this call; defaults to settings.api.max_retries.

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            RateLimitError: If 429 is returned on the last attempt.
            ApiError: If the request fails after all retries, with a non-retryable 4xx,
                or if a 2xx body is not valid JSON.
        """
        payload = json or {}
        request_id = uuid.uuid4().hex[:12]
        attempts = max_retries if max_retries is not None else self._settings.api.max_retries
        last_error: Optional[Exception] = None
        last_retry_after: Optional[float] = None

        with bound_contextvars(
            http_url=url,
            http_request_id=request_id,
            http_max_retries=attempts,
        ):
            for attempt in range(attempts):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.post(url, json=payload, headers=headers) as response:
                            if response.status == 429:
                                last_retry_after = _retry_after_seconds(response.headers)
                                last_error = None
                                self._logger.warning(
                                    "http_post_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=last_retry_after,
                                )
                                if attempt + 1 < attempts:
                                    if last_retry_after is not None and last_retry_after > 0:
                                        await asyncio.sleep(last_retry_after)
                                    else:
                                        await asyncio.sleep(self._backoff_delay(attempt))
                                continue

                            response.raise_for_status()
                            try:
                                return await response.json(content_type=None)
                            except ValueError as e:
                                self._logger.warning(
                                    "http_post_invalid_json",
                                    http_status_code=response.status,
                                    error_message=str(e),
                                )
                                raise ApiError(
                                    f"POST returned a non-JSON body: {url}",
                                    url=url,
                                    status_code=response.status,
                                    cause=e,
                                ) from e
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        if 400 <= e.status < 500:
                            self._logger.warning(
                                "http_post_rejected",
                                http_status_code=e.status,
                                error_message=e.message,
                            )
                            raise ApiError(
                                f"POST rejected with {e.status}: {url}",
                                url=url,
                                status_code=e.status,
                                cause=e,
                            ) from e
                        self._logger.debug(
                            "http_post_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=e.status,
                        )
                        await asyncio.sleep(self._backoff_delay(attempt))
                    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                        last_error = e
                        self._logger.debug(
                            "http_post_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        await asyncio.sleep(self._backoff_delay(attempt))

            if last_error is None:
                raise RateLimitError(url=url, retry_after=last_retry_after)

            status_code = (
                last_error.status if isinstance(last_error, aiohttp.ClientResponseError) else None
            )
            self._logger.error(
                "http_post_failed",
                http_status_code=status_code,
                http_attempts=attempts,
                error_type=type(last_error).__name__,
                error_message=str(last_error),
            )
            raise ApiError(
                f"POST failed after {attempts} retries: {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error
