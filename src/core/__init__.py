"""Core module - configuration, identity, storage, and exceptions."""

from src.core.config import Settings, get_settings
from src.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    GlowPayError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from src.core.security import (
    derive_auth_token,
    derive_merchant_id,
    hash_auth_token,
    sign_payload,
    verify_auth_token,
)
from src.core.store import KeyValueStore, MemoryStore, RedisStore, create_store

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Identity
    "derive_merchant_id",
    "derive_auth_token",
    "hash_auth_token",
    "verify_auth_token",
    "sign_payload",
    # Store
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "create_store",
    # Exceptions
    "GlowPayError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "UpstreamError",
]
