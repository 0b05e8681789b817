"""Tests for signed webhook delivery."""

import json

import httpx

from src.core.security import sign_payload
from src.services.webhook_service import (
    EVENT_HEADER,
    SIGNATURE_HEADER,
    WebhookEventType,
    WebhookService,
)
from tests.conftest import WEBHOOK_SECRET, WEBHOOK_URL


class TestBuildBody:
    def test_body_layout(self):
        body = json.loads(
            WebhookService.build_body("payment.created", {"paymentId": "p1", "amountSats": 5})
        )
        assert list(body) == ["event", "paymentId", "amountSats", "timestamp"]
        assert body["event"] == "payment.created"
        assert body["timestamp"].endswith("Z")

    def test_body_is_compact(self):
        raw = WebhookService.build_body("payment.created", {"paymentId": "p1"})
        assert ", " not in raw and ": " not in raw


class TestSend:
    async def test_signature_covers_exact_body(self, webhook_service, ln_host):
        delivered = await webhook_service.send(
            WEBHOOK_URL, WEBHOOK_SECRET, WebhookEventType.PAYMENT_COMPLETED, {"paymentId": "p1"}
        )

        assert delivered is True
        request = ln_host.webhooks[0]
        assert request.headers[SIGNATURE_HEADER] == sign_payload(
            request.content.decode(), WEBHOOK_SECRET
        )
        assert request.headers[EVENT_HEADER] == "payment.completed"
        assert request.headers["content-type"] == "application/json"

    async def test_non_2xx_returns_false(self, webhook_service, ln_host):
        ln_host.webhook_status = 503
        assert not await webhook_service.send(
            WEBHOOK_URL, WEBHOOK_SECRET, "payment.expired", {"paymentId": "p1"}
        )
        assert len(ln_host.webhooks) == 1

    async def test_transport_errors_are_swallowed(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            service = WebhookService(client, timeout_seconds=1)
            assert not await service.send(WEBHOOK_URL, "s", "payment.created", {})

    async def test_timeout_is_swallowed(self):
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(slow)) as client:
            service = WebhookService(client, timeout_seconds=1)
            assert not await service.send(WEBHOOK_URL, "s", "payment.created", {})


class TestDispatch:
    async def test_dispatch_runs_detached_and_drains(self, webhook_service, ln_host):
        task = webhook_service.dispatch(
            WEBHOOK_URL, WEBHOOK_SECRET, WebhookEventType.PAYMENT_CREATED, {"paymentId": "p1"}
        )
        assert webhook_service.pending_count == 1

        await webhook_service.drain()

        assert task.done()
        assert task.result() is True
        assert webhook_service.pending_count == 0
        assert ln_host.webhook_bodies()[0]["paymentId"] == "p1"

    async def test_drain_without_pending_tasks(self, webhook_service):
        await webhook_service.drain()
        assert webhook_service.pending_count == 0
