"""Glow Pay Gateway - Merchant model.

Stored as a JSON document under ``merchant:{id}`` with camelCase keys.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from src.utils.helpers import utc_now


class ApiKey(BaseModel):
    """A merchant API key.

    Attributes:
        key: Secret key value presented in ``X-API-Key``
        label: Human readable label
        created_at: Creation time
        active: False once revoked; inactive keys never authorize
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str = Field(min_length=1)
    label: str = "Default"
    created_at: datetime = Field(default_factory=utc_now)
    active: bool = True


class Merchant(BaseModel):
    """Merchant document - one per seller.

    Attributes:
        id: Stable identifier (derived from seed or client supplied), immutable
        store_name: Display name shown on the checkout page
        addresses: Receiving Lightning addresses; index 0 is the primary
        api_keys: Ordered API keys; only active ones authorize payment creation
        rotation_enabled: Whether payments rotate across addresses
        rotation_count: Number of leading addresses in rotation (0/None = all)
        auth_token_hash: sha256 of the bearer token, unset until first auth
        webhook_url: Event delivery target
        webhook_secret: HMAC key for webhook signatures, generated lazily
        redirect_url: Post-payment redirect target
        brand_color / logo_url: Cosmetic checkout branding
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    store_name: str = ""
    addresses: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("addresses", "lightningAddresses"),
    )
    api_keys: list[ApiKey] = Field(default_factory=list)
    rotation_enabled: bool = True
    rotation_count: int | None = Field(default=None, ge=0)
    auth_token_hash: str | None = None
    webhook_url: str | None = None
    webhook_secret: str | None = None
    redirect_url: str | None = None
    brand_color: str | None = None
    logo_url: str | None = None
    registered_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @computed_field(alias="apiKey")  # type: ignore[prop-decorator]
    @property
    def api_key(self) -> str | None:
        """Backward-compatible single key: the first active key."""
        return self.first_active_key()

    def first_active_key(self) -> str | None:
        for api_key in self.api_keys:
            if api_key.active:
                return api_key.key
        return None

    def active_keys(self) -> list[ApiKey]:
        return [k for k in self.api_keys if k.active]

    def find_key(self, key: str) -> ApiKey | None:
        for api_key in self.api_keys:
            if api_key.key == key:
                return api_key
        return None

    @property
    def has_webhook(self) -> bool:
        return bool(self.webhook_url and self.webhook_secret)

    def to_document(self) -> dict:
        """Serialize for the keyed store."""
        return self.model_dump(mode="json", by_alias=True)

    def to_public(self) -> dict:
        """Serialize for the owner, without the auth token hash."""
        return self.model_dump(mode="json", by_alias=True, exclude={"auth_token_hash"})
