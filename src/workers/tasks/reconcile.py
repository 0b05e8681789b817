"""Glow Pay Gateway - Payment reconcile tasks.

- reconcile_payment: Delayed task that settles or expires one payment
- schedule_payment_reconcile: Helper to schedule it at payment creation
"""

import asyncio
import logging

import httpx

from src.celery_app import celery_app
from src.core.config import get_settings
from src.core.exceptions import PaymentNotFound
from src.core.store import KeyValueStore, create_store
from src.services.lnurl_service import LnurlService
from src.services.merchant_service import MerchantService
from src.services.payment_service import PaymentService
from src.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)


async def run_reconcile(
    payment_id: str,
    store: KeyValueStore,
    http_client: httpx.AsyncClient,
) -> dict:
    """Reconcile one payment and wait for its webhook delivery."""
    settings = get_settings()
    webhook_service = WebhookService(http_client, timeout_seconds=settings.webhook_timeout_seconds)
    service = PaymentService(
        store,
        MerchantService(store),
        LnurlService(
            http_client,
            timeout_seconds=settings.lnurl_timeout_seconds,
            verify_timeout_seconds=settings.verify_timeout_seconds,
        ),
        webhook_service,
        settings=settings,
    )
    try:
        payment = await service.reconcile(payment_id)
    except PaymentNotFound:
        logger.warning(f"Payment {payment_id} not found for reconcile")
        return {"payment_id": payment_id, "status": None}
    finally:
        await webhook_service.drain()

    return {"payment_id": payment_id, "status": payment.status.value}


@celery_app.task(name="src.workers.tasks.reconcile.reconcile_payment")
def reconcile_payment(payment_id: str) -> dict:
    """Reconcile a payment after its expiry window.

    Scheduled with a delay when the payment is created.

    Args:
        payment_id: The payment to reconcile
    """

    async def _reconcile() -> dict:
        store = create_store(get_settings())
        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                return await run_reconcile(payment_id, store, client)
        finally:
            await store.close()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        result = loop.run_until_complete(_reconcile())
        logger.info(f"Payment {payment_id} reconciled via delayed task: {result['status']}")
        return result
    finally:
        loop.close()


def schedule_payment_reconcile(payment_id: str, delay_seconds: int) -> None:
    """Schedule a payment to be reconciled after a delay.

    Args:
        payment_id: The payment id
        delay_seconds: Seconds until the task runs
    """
    reconcile_payment.apply_async(args=[payment_id], countdown=delay_seconds)
    logger.debug(f"Scheduled reconcile for payment {payment_id} in {delay_seconds} seconds")
