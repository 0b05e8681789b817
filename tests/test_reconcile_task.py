"""Tests for the delayed reconcile task."""

from unittest.mock import patch

from src.workers.tasks.reconcile import run_reconcile, schedule_payment_reconcile
from tests.conftest import MERCHANT_ID, backdate


class TestRunReconcile:
    async def test_expires_unpolled_payment_and_delivers_webhook(
        self, payment_service, webhook_service, store, http_client, ln_host, merchant
    ):
        created = await payment_service.create_payment(MERCHANT_ID, 21, "https://pay.example")
        await webhook_service.drain()
        await backdate(payment_service, created.payment_id)

        result = await run_reconcile(created.payment_id, store, http_client)

        assert result == {"payment_id": created.payment_id, "status": "expired"}
        assert ln_host.webhook_bodies()[-1]["event"] == "payment.expired"

    async def test_completes_settled_payment(
        self, payment_service, store, http_client, ln_host, merchant
    ):
        created = await payment_service.create_payment(MERCHANT_ID, 21, "https://pay.example")
        ln_host.settle_all()

        result = await run_reconcile(created.payment_id, store, http_client)
        assert result["status"] == "completed"

    async def test_missing_payment(self, store, http_client):
        result = await run_reconcile("gone", store, http_client)
        assert result == {"payment_id": "gone", "status": None}


def test_schedule_uses_countdown():
    with patch("src.workers.tasks.reconcile.reconcile_payment.apply_async") as apply_async:
        schedule_payment_reconcile("p1", 610)
    apply_async.assert_called_once_with(args=["p1"], countdown=610)
