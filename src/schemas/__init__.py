"""Schemas module - Pydantic DTOs for request/response."""

from src.schemas.merchant import (
    ApiKeyInput,
    ApiKeyResponse,
    CreateApiKeyRequest,
    CreateApiKeyResponse,
    MerchantReadResponse,
    MerchantSyncRequest,
    MerchantSyncResponse,
    RevokeApiKeyResponse,
)
from src.schemas.payment import (
    CamelModel,
    CreatePaymentRequest,
    CreatePaymentResponse,
    ErrorResponse,
    PaymentMerchantInfo,
    PaymentStatusResponse,
)

__all__: list[str] = [
    # Merchant
    "ApiKeyInput",
    "ApiKeyResponse",
    "CreateApiKeyRequest",
    "CreateApiKeyResponse",
    "MerchantReadResponse",
    "MerchantSyncRequest",
    "MerchantSyncResponse",
    "RevokeApiKeyResponse",
    # Payment
    "CamelModel",
    "CreatePaymentRequest",
    "CreatePaymentResponse",
    "ErrorResponse",
    "PaymentMerchantInfo",
    "PaymentStatusResponse",
]
