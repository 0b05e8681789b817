"""Glow Pay Gateway - Identity derivation and signing utilities.

A merchant's identity is derived client-side from a secret seed phrase:

    merchant_id = "m_" + hex(HMAC-SHA256(seed, "<namespace>:merchant-id"))[:16]
    auth_token  = hex(HMAC-SHA256(seed, "<namespace>:auth-token"))

The seed never reaches the server. The server only sees the auth token (as a
Bearer credential) and stores ``sha256(auth_token)``, so a leaked store cannot
be used to impersonate a merchant. Both values can be re-derived from the seed
on a new device without any server-side secret.
"""

import hashlib
import hmac
import secrets
import string

DEFAULT_NAMESPACE = "glow-pay"

API_KEY_PREFIX = "glow_"
API_KEY_LENGTH = 32
WEBHOOK_SECRET_LENGTH = 48

_ALPHABET = string.ascii_letters + string.digits


def _hmac_sha256_hex(key: str, message: str) -> str:
    return hmac.new(
        key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def derive_merchant_id(seed: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Derive the stable merchant identifier from a seed phrase.

    Args:
        seed: Secret seed phrase (e.g. BIP-39 mnemonic)
        namespace: Product prefix for domain separation

    Returns:
        ``m_`` followed by 16 lowercase hex characters
    """
    digest = _hmac_sha256_hex(seed, f"{namespace}:merchant-id")
    return f"m_{digest[:16]}"


def derive_auth_token(seed: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Derive the bearer auth token from a seed phrase.

    Returns:
        Full 64-character hex digest
    """
    return _hmac_sha256_hex(seed, f"{namespace}:auth-token")


def hash_auth_token(token: str) -> str:
    """Hash an auth token for storage (hex SHA-256)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_auth_token(token: str, token_hash: str) -> bool:
    """Check a presented token against a stored hash in constant time."""
    return hmac.compare_digest(hash_auth_token(token), token_hash.lower())


def generate_api_key() -> str:
    """Generate a new merchant API key (``glow_`` + 32 alphanumerics)."""
    return API_KEY_PREFIX + "".join(secrets.choice(_ALPHABET) for _ in range(API_KEY_LENGTH))


def generate_webhook_secret() -> str:
    """Generate a webhook signing secret (48 alphanumerics)."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(WEBHOOK_SECRET_LENGTH))


def sign_payload(payload: str, secret: str) -> str:
    """Create HMAC-SHA256 signature for a webhook body.

    Args:
        payload: Serialized JSON body, exactly as sent
        secret: Merchant's webhook secret

    Returns:
        Hex-encoded signature
    """
    return _hmac_sha256_hex(secret, payload)


def verify_signature(payload: str, signature: str, secret: str) -> bool:
    """Verify a webhook signature (receiver side helper)."""
    expected = sign_payload(payload, secret)
    return hmac.compare_digest(expected.lower(), signature.lower())
