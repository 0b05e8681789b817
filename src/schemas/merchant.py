"""Glow Pay Gateway - Merchant config schemas."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from src.schemas.payment import CamelModel

# ============ Config Sync ============


class ApiKeyInput(CamelModel):
    """API key entry in a config sync."""

    key: str = Field(..., min_length=1, max_length=128)
    label: str | None = Field(default=None, max_length=64)
    active: bool = True
    created_at: datetime | None = None


class MerchantSyncRequest(CamelModel):
    """Merchant config written by the dashboard.

    ``lightningAddresses`` is accepted as an alias of ``addresses``.
    Optional fields left out of the body keep their stored value.
    """

    merchant_id: str = Field(..., min_length=1, max_length=64)
    addresses: list[str] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("addresses", "lightningAddresses"),
    )
    api_key: str | None = Field(default=None, max_length=128)
    api_keys: list[ApiKeyInput] | None = None
    store_name: str | None = Field(default=None, max_length=128)
    redirect_url: str | None = Field(default=None, max_length=512)
    rotation_enabled: bool | None = None
    rotation_count: int | None = Field(default=None, ge=0)
    webhook_url: str | None = Field(default=None, max_length=512)
    brand_color: str | None = Field(default=None, max_length=32)
    logo_url: str | None = Field(default=None, max_length=512)


class MerchantSyncResponse(CamelModel):
    success: bool = True
    merchant_id: str


class MerchantReadResponse(CamelModel):
    """Merchant config for its owner (auth token hash omitted)."""

    success: bool = True
    data: dict[str, Any]


# ============ API Keys ============


class CreateApiKeyRequest(CamelModel):
    label: str | None = Field(default=None, max_length=64)


class ApiKeyResponse(CamelModel):
    key: str
    label: str
    created_at: datetime
    active: bool


class CreateApiKeyResponse(CamelModel):
    success: bool = True
    api_key: ApiKeyResponse


class RevokeApiKeyResponse(CamelModel):
    success: bool = True
    api_key: ApiKeyResponse
