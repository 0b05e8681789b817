"""Models module - Pydantic documents persisted in the keyed store."""

from src.models.merchant import ApiKey, Merchant
from src.models.payment import (
    Payment,
    PaymentStatus,
    generate_payment_id,
    sats_to_msats,
)

__all__ = [
    # Merchant
    "ApiKey",
    "Merchant",
    # Payment
    "Payment",
    "PaymentStatus",
    "generate_payment_id",
    "sats_to_msats",
]
