# -*- coding: utf-8 -*-
"""OpenAI-compatible chat completion client used to word alerts."""

from __future__ import annotations

import structlog
from typing import Any, Callable, Optional, TYPE_CHECKING

from pool_activity_monitor.exceptions import CompositionError, MissingRequiredConfigError

if TYPE_CHECKING:
    from pool_activity_monitor.clients.http import AsyncHttpClient
    from pool_activity_monitor.config import Settings


class TextGenerator:
    """Generates short text from a system and a user prompt.

    Talks to POST {base_url}/chat/completions. Only the first choice is used.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: AsyncHttpClient,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            settings: Application settings (uses settings.text_generation).
            http_client: Shared HTTP client (injected).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).

        Raises:
            MissingRequiredConfigError: If no API key is configured.
        """
        cfg = settings.text_generation
        if not cfg.api_key:
            raise MissingRequiredConfigError("Text generation requires TEXT_GENERATION__API_KEY.")
        self._settings = settings
        self._http = http_client
        self._url = f"{cfg.base_url.rstrip('/')}/chat/completions"
        self._headers = {"Authorization": f"Bearer {cfg.api_key}"}
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the generated text, stripped.

        Raises:
            ApiError: If the request fails.
            CompositionError: If the response carries no text.
        """
        cfg = self._settings.text_generation
        body = {
            "model": cfg.model,
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        response = await self._http.post(self._url, json=body, headers=self._headers)
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompositionError("Text generation response has no content") from e
        if not isinstance(content, str):
            raise CompositionError("Text generation content is not a string")
        self._logger.debug("text_generated", model=cfg.model, text_length=len(content))
        return content.strip()
