"""HTTP API: webhook ingestion server and request schemas."""

from pool_activity_monitor.api.schemas import BlockEventBatch, WebhookPayload, parse_webhook_payload
from pool_activity_monitor.api.server import IngestionServer

__all__ = ["BlockEventBatch", "IngestionServer", "WebhookPayload", "parse_webhook_payload"]
