"""Glow Pay Gateway - Payment schemas.

Request/response bodies for the public payment API. Wire format is
camelCase; Python attributes are snake_case.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.payment import PaymentStatus


class CamelModel(BaseModel):
    """Base for camelCase wire schemas."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Create Payment ============


class CreatePaymentRequest(CamelModel):
    """Request to create a payment.

    Authenticated with the ``X-API-Key`` header.
    """

    amount_sats: int = Field(..., strict=True, description="Amount in sats, positive integer")
    description: str | None = Field(default=None, max_length=640, description="Invoice comment")
    metadata: dict[str, Any] | None = Field(default=None, description="Opaque merchant data")


class CreatePaymentResponse(CamelModel):
    """Response for payment creation."""

    success: bool = True
    payment_id: str = Field(..., description="Payment id")
    payment_url: str = Field(..., description="Hosted checkout page")
    invoice: str = Field(..., description="BOLT11 invoice")
    expires_at: datetime = Field(..., description="Payment expiry time")
    verify_url: str | None = Field(default=None, description="LNURL-verify URL")
    amount_sats: int = Field(..., description="Amount in sats")


# ============ Payment Status ============


class PaymentMerchantInfo(CamelModel):
    """Merchant display info for the checkout page."""

    store_name: str
    redirect_url: str | None = None


class PaymentStatusResponse(CamelModel):
    """Public payment status (no authentication)."""

    success: bool = True
    id: str
    amount_sats: int
    description: str | None
    invoice: str
    status: PaymentStatus
    created_at: datetime
    expires_at: datetime
    paid_at: datetime | None
    verify_url: str | None
    merchant: PaymentMerchantInfo | None = None


# ============ Error Response ============


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str
