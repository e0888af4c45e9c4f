"""Custom exceptions for the ingestion, aggregation and alerting pipeline."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for pool activity monitor errors."""

    pass


class MissingRequiredConfigError(MonitorError):
    """Raised when a required configuration value is missing."""

    pass


class ValidationError(MonitorError):
    """Raised when a pushed event batch is malformed. The caller may fix and retry."""

    def __init__(self, message: str, *, errors: list[dict[str, object]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(MonitorError):
    """Raised when the store fails for a reason other than an idempotency conflict."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.cause = cause


class AggregationError(MonitorError):
    """Raised when activity metrics cannot be read. The chain's cycle is skipped."""

    def __init__(
        self,
        message: str,
        *,
        chain: str | None = None,
        variant: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.chain = chain
        self.variant = variant
        self.cause = cause


class CompositionError(MonitorError):
    """Raised when generated alert text is unusable. Recovered with the fixed template."""

    pass


class DeliveryError(MonitorError):
    """Raised by an alert channel when a message could not be posted."""

    def __init__(
        self,
        message: str,
        *,
        channel: str | None = None,
        retry_after: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.channel = channel
        self.retry_after = retry_after
        self.cause = cause


class ApiError(MonitorError):
    """Raised when an outbound HTTP request fails after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RateLimitError(ApiError):
    """Raised when the API returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429)
        self.retry_after = retry_after
