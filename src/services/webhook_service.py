"""Glow Pay Gateway - Webhook service.

Delivers payment lifecycle events to the merchant's webhook URL.
Delivery is best-effort: one attempt, short timeout, failures logged and
swallowed. Callers dispatch it as a detached task and never await it.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any

import httpx

from src.core.security import sign_payload
from src.utils.helpers import format_utc_datetime, utc_now

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature"
EVENT_HEADER = "X-Glow-Event"


class WebhookEventType(str, Enum):
    """Webhook event types."""

    PAYMENT_CREATED = "payment.created"
    PAYMENT_COMPLETED = "payment.completed"
    PAYMENT_EXPIRED = "payment.expired"


class WebhookService:
    """Service for webhook delivery.

    Features:
    - HMAC-SHA256 signature over the exact body sent (``X-Signature``)
    - Single attempt with a bounded timeout
    - Fire-and-forget dispatch that keeps a reference to in-flight tasks
    """

    def __init__(self, client: httpx.AsyncClient, timeout_seconds: float = 5.0) -> None:
        self._client = client
        self.timeout_seconds = timeout_seconds
        self._pending: set[asyncio.Task[bool]] = set()

    @staticmethod
    def build_body(event: str, payload: dict[str, Any]) -> str:
        """Serialize ``{event, **payload, timestamp}`` as compact JSON."""
        body = {"event": event, **payload, "timestamp": format_utc_datetime(utc_now())}
        return json.dumps(body, separators=(",", ":"), default=str)

    async def send(
        self,
        url: str,
        secret: str,
        event: WebhookEventType | str,
        payload: dict[str, Any],
    ) -> bool:
        """Deliver one webhook.

        Args:
            url: Merchant webhook URL
            secret: Merchant webhook secret
            event: Event type
            payload: Event fields merged into the body

        Returns:
            True if the receiver answered 2xx. Never raises.
        """
        event_name = event.value if isinstance(event, WebhookEventType) else event
        try:
            body = self.build_body(event_name, payload)
            headers = {
                "Content-Type": "application/json",
                SIGNATURE_HEADER: sign_payload(body, secret),
                EVENT_HEADER: event_name,
            }
            response = await self._client.post(
                url,
                content=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException:
            logger.warning(f"Webhook timeout: {event_name} to {url}")
            return False
        except Exception as e:
            logger.warning(f"Webhook error: {event_name} to {url} - {e}")
            return False

        if 200 <= response.status_code < 300:
            logger.info(f"Webhook delivered: {event_name} to {url}")
            return True

        logger.warning(f"Webhook rejected: {event_name} to {url} status={response.status_code}")
        return False

    def dispatch(
        self,
        url: str,
        secret: str,
        event: WebhookEventType | str,
        payload: dict[str, Any],
    ) -> asyncio.Task[bool]:
        """Schedule delivery without awaiting it.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self.send(url, secret, event, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
