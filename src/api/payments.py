"""Glow Pay Gateway - Payment API routes.

Public API for merchants to create payments (``X-API-Key``) and for the
checkout page to poll payment status (no authentication).
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.api.deps import ApiKeyMerchant, BaseUrl, PaymentServiceDep
from src.core.exceptions import GlowPayError
from src.schemas.payment import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    ErrorResponse,
    PaymentMerchantInfo,
    PaymentStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "",
    response_model=CreatePaymentResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Create payment",
)
async def create_payment(
    request: CreatePaymentRequest,
    merchant: ApiKeyMerchant,
    service: PaymentServiceDep,
    base_url: BaseUrl,
):
    """Create a Lightning payment.

    Picks a receiving address by rotation, requests an invoice over
    LNURL-pay and stores the payment as ``pending``.
    """
    try:
        created = await service.create_payment(
            merchant.id,
            request.amount_sats,
            base_url=base_url,
            description=request.description,
            metadata=request.metadata,
        )
    except GlowPayError:
        raise
    except Exception as e:
        logger.exception(f"Payment creation error for merchant {merchant.id}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Failed to create payment"},
        )

    return CreatePaymentResponse(
        payment_id=created.payment_id,
        payment_url=created.payment_url,
        invoice=created.invoice,
        expires_at=created.expires_at,
        verify_url=created.verify_url,
        amount_sats=created.amount_sats,
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentStatusResponse,
    response_model_by_alias=True,
    responses={404: {"model": ErrorResponse}},
    summary="Get payment status",
)
async def get_payment(payment_id: str, service: PaymentServiceDep) -> PaymentStatusResponse:
    """Get payment status.

    A pending payment is reconciled first: LNURL-verify is polled and the
    payment moves to ``completed`` or, past its expiry, ``expired``.
    """
    payment, merchant = await service.get_payment_view(payment_id)

    return PaymentStatusResponse(
        id=payment.id,
        amount_sats=payment.amount_sats,
        description=payment.description,
        invoice=payment.invoice,
        status=payment.status,
        created_at=payment.created_at,
        expires_at=payment.expires_at,
        paid_at=payment.paid_at,
        verify_url=payment.verify_url,
        merchant=(
            PaymentMerchantInfo(store_name=merchant.store_name, redirect_url=merchant.redirect_url)
            if merchant
            else None
        ),
    )
