"""Glow Pay Gateway - Custom exceptions.

Every error raised by the service layer derives from ``GlowPayError`` and
carries the HTTP status it maps to. The API layer renders them as
``{"error": message}``.
"""

from typing import Any


class GlowPayError(Exception):
    """Base exception for all gateway errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ============ Validation (400) ============


class ValidationError(GlowPayError):
    """Input validation failed."""

    status_code = 400


class MissingFieldsError(ValidationError):
    """Required request fields are absent."""

    pass


class InvalidAmount(ValidationError):
    """Amount is not a positive integer number of sats."""

    def __init__(self, message: str = "amountSats must be a positive integer") -> None:
        super().__init__(message)


class AmountOutOfRange(ValidationError):
    """Amount falls outside the receiver's sendable bounds."""

    def __init__(self, min_sats: int, max_sats: int) -> None:
        super().__init__(
            f"Amount must be between {min_sats} and {max_sats} sats",
            {"min_sats": min_sats, "max_sats": max_sats},
        )


class NoAddressesAvailable(ValidationError):
    """Merchant has no receiving addresses configured."""

    def __init__(self, message: str = "No addresses available") -> None:
        super().__init__(message)


# ============ Authentication / Authorization (401 / 403) ============


class AuthenticationError(GlowPayError):
    """Authentication failed."""

    status_code = 401


class Unauthorized(AuthenticationError):
    """No credential was presented."""

    def __init__(self, message: str = "Missing authorization token") -> None:
        super().__init__(message)


class InvalidApiKey(AuthenticationError):
    """API key is missing, unknown or revoked."""

    def __init__(self, message: str = "Invalid API key") -> None:
        super().__init__(message)


class AuthorizationError(GlowPayError):
    """Credential does not grant access to this resource."""

    status_code = 403


class InvalidAuthToken(AuthorizationError):
    """Bearer token does not match the stored hash."""

    def __init__(self, message: str = "Invalid auth token") -> None:
        super().__init__(message)


# ============ Not found (404) ============


class NotFoundError(GlowPayError):
    """Requested resource does not exist."""

    status_code = 404


class MerchantNotFound(NotFoundError):
    def __init__(self, message: str = "Merchant not found") -> None:
        super().__init__(message)


class PaymentNotFound(NotFoundError):
    def __init__(self, message: str = "Payment not found") -> None:
        super().__init__(message)


class ApiKeyNotFound(NotFoundError):
    def __init__(self, message: str = "API key not found") -> None:
        super().__init__(message)


# ============ Conflict (409) ============


class ConflictError(GlowPayError):
    """Operation conflicts with the current resource state."""

    status_code = 409


class CannotRevokeLastActiveKey(ConflictError):
    """Revoking would leave the merchant without an active API key."""

    def __init__(self, message: str = "Cannot revoke the last active API key") -> None:
        super().__init__(message)


# ============ Upstream (502) ============


class UpstreamError(GlowPayError):
    """An external LNURL collaborator failed."""

    status_code = 502


class LnurlError(UpstreamError):
    """LNURL pay-info or verify request failed."""

    pass


class InvoiceRequestFailed(UpstreamError):
    """LNURL callback refused or failed to issue an invoice."""

    pass
