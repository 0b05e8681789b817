"""Glow Pay Service Layer.

Business logic services for the Glow Pay Gateway.
Each service encapsulates domain-specific operations and can be reused across
API endpoints and background workers.
"""

from src.services.lnurl_service import LnurlService
from src.services.merchant_service import MerchantService
from src.services.payment_service import CreatedPayment, PaymentService
from src.services.webhook_service import WebhookEventType, WebhookService

__all__ = [
    "CreatedPayment",
    "LnurlService",
    "MerchantService",
    "PaymentService",
    "WebhookEventType",
    "WebhookService",
]
