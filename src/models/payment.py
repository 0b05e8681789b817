"""Glow Pay Gateway - Payment model."""

import secrets
import time
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MSATS_PER_SAT = 1000

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class PaymentStatus(str, Enum):
    """Payment status.

    State transitions:
    - pending -> completed (terminal)
    - pending -> expired (terminal)
    """

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_payment_id() -> str:
    """Generate a unique, opaque payment id.

    Format: base36(timestamp_ms) + "_" + 7 random base36 chars
    Example: lzq8k2c1_4f9a0bx
    """
    timestamp = _to_base36(int(time.time() * 1000))
    random_suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"{timestamp}_{random_suffix}"


def sats_to_msats(sats: int) -> int:
    return sats * MSATS_PER_SAT


class Payment(BaseModel):
    """Payment document - one per invoice request.

    Stored under ``payment:{id}``. ``invoice``, ``expires_at``,
    ``account_index`` and ``used_address`` are fixed at creation; only the
    status fields move, and only forward.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    merchant_id: str
    amount_sats: int = Field(gt=0)
    amount_msats: int = Field(gt=0)
    description: str | None = None
    metadata: dict[str, Any] | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    invoice: str
    verify_url: str | None = None
    account_index: int | None = None
    used_address: str | None = None
    created_at: datetime
    expires_at: datetime
    paid_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def is_past_expiry(self, now: datetime) -> bool:
        return now > self.expires_at

    def mark_completed(self, now: datetime) -> None:
        if not self.is_pending:
            raise ValueError(f"Payment {self.id} is already {self.status.value}")
        self.status = PaymentStatus.COMPLETED
        self.paid_at = now

    def mark_expired(self) -> None:
        if not self.is_pending:
            raise ValueError(f"Payment {self.id} is already {self.status.value}")
        self.status = PaymentStatus.EXPIRED

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
