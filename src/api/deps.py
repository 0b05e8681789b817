"""Common FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends, Header, Request

from src.core.config import Settings, get_settings
from src.core.store import KeyValueStore
from src.models.merchant import Merchant
from src.services.lnurl_service import LnurlService
from src.services.merchant_service import MerchantService
from src.services.payment_service import PaymentService, ReconcileScheduler
from src.services.webhook_service import WebhookService


def get_store(request: Request) -> KeyValueStore:
    """Keyed store created in the application lifespan."""
    return request.app.state.store


def get_lnurl_service(request: Request) -> LnurlService:
    return request.app.state.lnurl_service


def get_webhook_service(request: Request) -> WebhookService:
    return request.app.state.webhook_service


def get_merchant_service(
    store: Annotated[KeyValueStore, Depends(get_store)],
) -> MerchantService:
    """Create MerchantService instance."""
    return MerchantService(store)


def get_reconcile_scheduler(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ReconcileScheduler | None:
    """Delayed Celery reconcile, when the worker is enabled."""
    if not settings.reconcile_worker_enabled:
        return None
    from src.workers.tasks.reconcile import schedule_payment_reconcile

    return schedule_payment_reconcile


def get_payment_service(
    store: Annotated[KeyValueStore, Depends(get_store)],
    merchant_service: Annotated[MerchantService, Depends(get_merchant_service)],
    lnurl_service: Annotated[LnurlService, Depends(get_lnurl_service)],
    webhook_service: Annotated[WebhookService, Depends(get_webhook_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    scheduler: Annotated[ReconcileScheduler | None, Depends(get_reconcile_scheduler)],
) -> PaymentService:
    """Create PaymentService instance."""
    return PaymentService(
        store,
        merchant_service,
        lnurl_service,
        webhook_service,
        settings=settings,
        reconcile_scheduler=scheduler,
    )


def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the token from ``Authorization: Bearer <token>``."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_api_key_merchant(
    service: Annotated[MerchantService, Depends(get_merchant_service)],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> Merchant:
    """Merchant owning the active ``X-API-Key``.

    Raises:
        InvalidApiKey: Missing, unknown or revoked key
    """
    return await service.authenticate_api_key(x_api_key)


def get_base_url(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Public base URL for checkout links."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


# ============ Type Aliases for Common Dependencies ============

BearerToken = Annotated[str | None, Depends(get_bearer_token)]

ApiKeyMerchant = Annotated[Merchant, Depends(get_api_key_merchant)]

MerchantServiceDep = Annotated[MerchantService, Depends(get_merchant_service)]

PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]

BaseUrl = Annotated[str, Depends(get_base_url)]
