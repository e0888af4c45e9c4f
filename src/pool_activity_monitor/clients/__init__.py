"""HTTP and API clients."""

from pool_activity_monitor.clients.http import AsyncHttpClient
from pool_activity_monitor.clients.text_generation import TextGenerator

__all__ = [
    "AsyncHttpClient",
    "TextGenerator",
]
