"""Merchant Service - merchant config, API keys and auth checks.

Store layout:
    merchant:{id}       -> Merchant document
    apikey:{key}        -> merchant id (active keys only)
    addr_usage:{id}     -> {account_index: last_used_ms}
"""

import logging

from src.core.exceptions import (
    ApiKeyNotFound,
    CannotRevokeLastActiveKey,
    InvalidApiKey,
    InvalidAuthToken,
    MerchantNotFound,
    MissingFieldsError,
    Unauthorized,
    ValidationError,
)
from src.core.security import (
    generate_api_key,
    generate_webhook_secret,
    hash_auth_token,
    verify_auth_token,
)
from src.core.store import KeyValueStore
from src.models.merchant import ApiKey, Merchant
from src.schemas.merchant import MerchantSyncRequest
from src.utils.helpers import now_ms, utc_now
from src.utils.rotation import parse_usage

logger = logging.getLogger(__name__)


def merchant_key(merchant_id: str) -> str:
    return f"merchant:{merchant_id}"


def api_key_index(api_key: str) -> str:
    return f"apikey:{api_key}"


def address_usage_key(merchant_id: str) -> str:
    return f"addr_usage:{merchant_id}"


class MerchantService:
    """Service for merchant documents and their credentials."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ============ Lookup ============

    async def get_merchant(self, merchant_id: str) -> Merchant | None:
        data = await self.store.get(merchant_key(merchant_id))
        if data is None:
            return None
        return Merchant.model_validate(data)

    async def require_merchant(self, merchant_id: str) -> Merchant:
        merchant = await self.get_merchant(merchant_id)
        if merchant is None:
            raise MerchantNotFound()
        return merchant

    async def get_merchant_by_api_key(self, api_key: str) -> Merchant | None:
        """Resolve an API key to its merchant.

        A key that is revoked, or no longer listed on the merchant,
        resolves to None exactly like an unknown key.
        """
        if not api_key:
            return None
        merchant_id = await self.store.get(api_key_index(api_key))
        if not merchant_id:
            return None
        merchant = await self.get_merchant(merchant_id)
        if merchant is None:
            return None
        entry = merchant.find_key(api_key)
        if entry is None or not entry.active:
            return None
        return merchant

    # ============ Authentication ============

    async def authenticate_api_key(self, api_key: str | None) -> Merchant:
        """Authorize payment creation.

        Raises:
            InvalidApiKey: Missing, unknown or revoked key
        """
        if not api_key:
            raise InvalidApiKey("Missing X-API-Key header")
        merchant = await self.get_merchant_by_api_key(api_key)
        if merchant is None:
            raise InvalidApiKey()
        return merchant

    @staticmethod
    def authorize(merchant: Merchant | None, token: str | None) -> None:
        """Check a bearer token against the merchant's stored hash.

        A merchant without a stored hash (or a merchant that does not exist
        yet) accepts any token; the first authorized read or write stores its hash.

        Raises:
            Unauthorized: No token presented
            InvalidAuthToken: Token does not match the stored hash
        """
        if not token:
            raise Unauthorized()
        if merchant is None or not merchant.auth_token_hash:
            return
        if not verify_auth_token(token, merchant.auth_token_hash):
            raise InvalidAuthToken()

    async def get_authorized_merchant(self, merchant_id: str, token: str | None) -> Merchant:
        """Load a merchant for its owner.

        A merchant stored without a token hash is bound to the first token
        presented here, so later reads must present that same token.

        Raises:
            Unauthorized / MerchantNotFound / InvalidAuthToken
        """
        if not token:
            raise Unauthorized()
        merchant = await self.require_merchant(merchant_id)
        self.authorize(merchant, token)
        if not merchant.auth_token_hash:
            merchant.auth_token_hash = hash_auth_token(token)
            merchant.updated_at = utc_now()
            await self.save_merchant(merchant)
            logger.info(f"Bound auth token for merchant {merchant.id} on first read")
        return merchant

    # ============ Persistence ============

    async def save_merchant(self, merchant: Merchant, previous: Merchant | None = None) -> None:
        """Write the merchant document and reconcile the API key index.

        Active keys are indexed, inactive keys are unindexed, and keys that
        were on ``previous`` but are gone now are unindexed.
        """
        await self.store.set(merchant_key(merchant.id), merchant.to_document())

        if previous is not None:
            current = {k.key for k in merchant.api_keys}
            for old in previous.api_keys:
                if old.key not in current:
                    await self.store.delete(api_key_index(old.key))

        for api_key in merchant.api_keys:
            if api_key.active:
                await self.store.set(api_key_index(api_key.key), merchant.id)
            else:
                await self.store.delete(api_key_index(api_key.key))

    async def _ensure_keys_available(self, merchant: Merchant) -> None:
        for api_key in merchant.active_keys():
            owner = await self.store.get(api_key_index(api_key.key))
            if owner and owner != merchant.id:
                raise ValidationError("API key is already in use")

    async def sync_merchant(self, data: MerchantSyncRequest, token: str | None) -> Merchant:
        """Create or update a merchant from a dashboard config sync.

        Idempotent: re-sending the same config leaves the document unchanged
        apart from ``updatedAt``.

        Raises:
            Unauthorized: No bearer token
            InvalidAuthToken: Token does not match the stored hash
            MissingFieldsError: New merchant without any API key
        """
        if not token:
            raise Unauthorized()

        existing = await self.get_merchant(data.merchant_id)
        self.authorize(existing, token)

        fields = data.model_fields_set
        now = utc_now()

        if existing is None:
            if not data.api_keys and not data.api_key:
                raise MissingFieldsError("Missing required fields: merchantId, apiKey, addresses")
            merchant = Merchant(id=data.merchant_id, registered_at=now)
            logger.info(f"Registering merchant {data.merchant_id}")
        else:
            merchant = existing.model_copy(deep=True)

        merchant.addresses = list(data.addresses)
        if "store_name" in fields:
            merchant.store_name = data.store_name or ""
        if "redirect_url" in fields:
            merchant.redirect_url = data.redirect_url or None
        if "rotation_enabled" in fields and data.rotation_enabled is not None:
            merchant.rotation_enabled = data.rotation_enabled
        if "rotation_count" in fields:
            merchant.rotation_count = data.rotation_count or None
        if "brand_color" in fields:
            merchant.brand_color = data.brand_color
        if "logo_url" in fields:
            merchant.logo_url = data.logo_url
        if "webhook_url" in fields:
            merchant.webhook_url = data.webhook_url or None

        if data.api_keys is not None:
            merchant.api_keys = self._merge_api_keys(merchant, data)
        elif data.api_key and merchant.find_key(data.api_key) is None:
            merchant.api_keys.append(ApiKey(key=data.api_key, created_at=now))

        if merchant.webhook_url and not merchant.webhook_secret:
            merchant.webhook_secret = generate_webhook_secret()

        if not merchant.auth_token_hash:
            merchant.auth_token_hash = hash_auth_token(token)

        merchant.updated_at = now

        await self._ensure_keys_available(merchant)
        await self.save_merchant(merchant, previous=existing)
        return merchant

    @staticmethod
    def _merge_api_keys(merchant: Merchant, data: MerchantSyncRequest) -> list[ApiKey]:
        """Replace the key list, keeping ``createdAt`` of keys that persist."""
        merged: list[ApiKey] = []
        seen: set[str] = set()
        for incoming in data.api_keys or []:
            if incoming.key in seen:
                continue
            seen.add(incoming.key)
            known = merchant.find_key(incoming.key)
            merged.append(
                ApiKey(
                    key=incoming.key,
                    label=incoming.label or (known.label if known else "Default"),
                    active=incoming.active,
                    created_at=known.created_at if known else (incoming.created_at or utc_now()),
                )
            )
        return merged

    # ============ API key lifecycle ============

    async def create_api_key(self, merchant: Merchant, label: str | None = None) -> ApiKey:
        """Append a new active key. Existing keys and mappings are untouched."""
        previous = merchant.model_copy(deep=True)
        api_key = ApiKey(key=generate_api_key(), label=label or "Default", created_at=utc_now())
        merchant.api_keys.append(api_key)
        merchant.updated_at = utc_now()
        await self.save_merchant(merchant, previous=previous)
        logger.info(f"Created API key '{api_key.label}' for merchant {merchant.id}")
        return api_key

    async def revoke_api_key(self, merchant: Merchant, key: str) -> ApiKey:
        """Deactivate a key.

        Raises:
            ApiKeyNotFound: Key is not on this merchant
            CannotRevokeLastActiveKey: Key is the only active one
        """
        api_key = merchant.find_key(key)
        if api_key is None:
            raise ApiKeyNotFound()
        if api_key.active and len(merchant.active_keys()) <= 1:
            raise CannotRevokeLastActiveKey()

        previous = merchant.model_copy(deep=True)
        api_key.active = False
        merchant.updated_at = utc_now()
        await self.save_merchant(merchant, previous=previous)
        logger.info(f"Revoked API key '{api_key.label}' for merchant {merchant.id}")
        return api_key

    # ============ Address usage ============

    async def get_address_usage(self, merchant_id: str) -> dict[int, int]:
        return parse_usage(await self.store.get(address_usage_key(merchant_id)))

    async def record_address_usage(
        self, merchant_id: str, account_index: int, used_at_ms: int | None = None
    ) -> dict[int, int]:
        """Stamp ``account_index`` as just used (last write wins)."""
        usage = await self.get_address_usage(merchant_id)
        usage[account_index] = used_at_ms if used_at_ms is not None else now_ms()
        await self.store.set(
            address_usage_key(merchant_id),
            {str(index): last_used for index, last_used in usage.items()},
        )
        return usage
