"""Glow Pay Gateway - Merchant config API.

Authenticated with ``Authorization: Bearer <authToken>``, where the token is
derived from the merchant's seed phrase and only its hash is stored.
"""

from fastapi import APIRouter, Query, status

from src.api.deps import BearerToken, MerchantServiceDep
from src.schemas.merchant import (
    ApiKeyResponse,
    CreateApiKeyRequest,
    CreateApiKeyResponse,
    MerchantReadResponse,
    MerchantSyncRequest,
    MerchantSyncResponse,
    RevokeApiKeyResponse,
)
from src.schemas.payment import ErrorResponse

router = APIRouter(prefix="/merchants", tags=["merchants"])

_AUTH_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=MerchantSyncResponse,
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Create or update merchant config",
)
async def sync_merchant(
    data: MerchantSyncRequest,
    token: BearerToken,
    service: MerchantServiceDep,
) -> MerchantSyncResponse:
    """Register a merchant or sync its config.

    The first successful write stores the hash of the presented token;
    later writes must present the same token.
    """
    merchant = await service.sync_merchant(data, token)
    return MerchantSyncResponse(merchant_id=merchant.id)


@router.get(
    "",
    response_model=MerchantReadResponse,
    responses=_AUTH_ERRORS,
    summary="Get merchant config",
)
async def get_merchant(
    token: BearerToken,
    service: MerchantServiceDep,
    merchant_id: str = Query(..., alias="id", min_length=1),
) -> MerchantReadResponse:
    """Get the merchant's own config (restore on a new device)."""
    merchant = await service.get_authorized_merchant(merchant_id, token)
    return MerchantReadResponse(data=merchant.to_public())


@router.post(
    "/{merchant_id}/api-keys",
    response_model=CreateApiKeyResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    responses=_AUTH_ERRORS,
    summary="Create API key",
)
async def create_api_key(
    merchant_id: str,
    token: BearerToken,
    service: MerchantServiceDep,
    data: CreateApiKeyRequest | None = None,
) -> CreateApiKeyResponse:
    merchant = await service.get_authorized_merchant(merchant_id, token)
    api_key = await service.create_api_key(merchant, data.label if data else None)
    return CreateApiKeyResponse(api_key=ApiKeyResponse.model_validate(api_key.model_dump()))


@router.delete(
    "/{merchant_id}/api-keys/{key}",
    response_model=RevokeApiKeyResponse,
    response_model_by_alias=True,
    responses={409: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Revoke API key",
)
async def revoke_api_key(
    merchant_id: str,
    key: str,
    token: BearerToken,
    service: MerchantServiceDep,
) -> RevokeApiKeyResponse:
    """Revoke an API key. The last active key cannot be revoked."""
    merchant = await service.get_authorized_merchant(merchant_id, token)
    api_key = await service.revoke_api_key(merchant, key)
    return RevokeApiKeyResponse(api_key=ApiKeyResponse.model_validate(api_key.model_dump()))
