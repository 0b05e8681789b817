"""Payment Service - payment lifecycle.

Creates Lightning payments through LNURL-pay and reconciles them against
LNURL-verify:

    pending -> completed   (verify reports settled; paidAt set once)
    pending -> expired     (wall clock passed expiresAt)

Both targets are terminal. Webhooks for each transition are dispatched as
detached tasks and never affect the outcome.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from src.core.config import Settings, get_settings
from src.core.exceptions import AmountOutOfRange, InvalidAmount, PaymentNotFound
from src.core.store import KeyValueStore
from src.models.merchant import Merchant
from src.models.payment import (
    MSATS_PER_SAT,
    Payment,
    PaymentStatus,
    generate_payment_id,
    sats_to_msats,
)
from src.services.lnurl_service import (
    LnurlInvoice,
    LnurlService,
    build_verify_url,
    extract_payment_hash,
)
from src.services.merchant_service import MerchantService
from src.services.webhook_service import WebhookEventType, WebhookService
from src.utils.helpers import build_payment_url, format_utc_datetime, utc_now
from src.utils.rotation import select_rotation_address

logger = logging.getLogger(__name__)

ReconcileScheduler = Callable[[str, int], None]


def payment_key(payment_id: str) -> str:
    return f"payment:{payment_id}"


def transition_key(payment_id: str) -> str:
    return f"payment_transition:{payment_id}"


@dataclass(frozen=True)
class CreatedPayment:
    """Result of payment creation."""

    payment_id: str
    payment_url: str
    invoice: str
    expires_at: datetime
    verify_url: str | None
    amount_sats: int


class PaymentService:
    """Service for payment creation and reconciliation."""

    def __init__(
        self,
        store: KeyValueStore,
        merchant_service: MerchantService,
        lnurl_service: LnurlService,
        webhook_service: WebhookService,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        reconcile_scheduler: ReconcileScheduler | None = None,
    ) -> None:
        self.store = store
        self.merchants = merchant_service
        self.lnurl = lnurl_service
        self.webhooks = webhook_service
        self._rng = rng
        self._reconcile_scheduler = reconcile_scheduler

        settings = settings or get_settings()
        self.expiry_seconds = settings.payment_expiry_seconds
        self.ttl_seconds = settings.payment_ttl_seconds
        self.reconcile_buffer_seconds = settings.reconcile_delay_buffer_seconds

    # ============ Persistence ============

    async def get_payment(self, payment_id: str) -> Payment | None:
        data = await self.store.get(payment_key(payment_id))
        if data is None:
            return None
        return Payment.model_validate(data)

    async def require_payment(self, payment_id: str) -> Payment:
        payment = await self.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFound()
        return payment

    def _remaining_ttl(self, payment: Payment) -> int:
        retain_until = payment.created_at + timedelta(seconds=self.ttl_seconds)
        return max(int((retain_until - utc_now()).total_seconds()), 1)

    async def save_payment(self, payment: Payment) -> None:
        """Write a payment; its TTL is anchored to ``createdAt``."""
        await self.store.set(
            payment_key(payment.id), payment.to_document(), ttl_seconds=self._remaining_ttl(payment)
        )

    # ============ Create ============

    async def create_payment(
        self,
        merchant_id: str,
        amount_sats: int,
        base_url: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CreatedPayment:
        """Issue an invoice and persist a pending payment.

        Args:
            merchant_id: Owning merchant
            amount_sats: Positive integer amount in sats
            base_url: Base for the hosted checkout URL
            description: Invoice comment
            metadata: Opaque merchant data stored with the payment

        Returns:
            CreatedPayment

        Raises:
            MerchantNotFound: Unknown merchant
            InvalidAmount: Amount is not a positive integer
            NoAddressesAvailable: Merchant has no addresses
            LnurlError: Pay info could not be fetched
            AmountOutOfRange: Amount outside the receiver's sendable range
            InvoiceRequestFailed: Receiver did not issue an invoice
        """
        merchant = await self.merchants.require_merchant(merchant_id)

        if isinstance(amount_sats, bool) or not isinstance(amount_sats, int) or amount_sats < 1:
            raise InvalidAmount()

        usage = await self.merchants.get_address_usage(merchant.id)
        selected = select_rotation_address(
            merchant.addresses,
            usage,
            rotation_enabled=merchant.rotation_enabled,
            rotation_count=merchant.rotation_count,
            rng=self._rng,
        )
        await self.merchants.record_address_usage(merchant.id, selected.account_index)

        pay_info = await self.lnurl.fetch_pay_info(selected.address)
        amount_msats = sats_to_msats(amount_sats)
        if not pay_info.min_sendable <= amount_msats <= pay_info.max_sendable:
            raise AmountOutOfRange(
                -(-pay_info.min_sendable // MSATS_PER_SAT),
                pay_info.max_sendable // MSATS_PER_SAT,
            )

        invoice = await self.lnurl.request_invoice(
            pay_info.callback,
            amount_msats,
            comment=description,
            expiry_seconds=self.expiry_seconds,
            comment_allowed=pay_info.comment_allowed,
        )
        verify_url = self.resolve_verify_url(invoice, selected.address)

        now = utc_now()
        payment = Payment(
            id=generate_payment_id(),
            merchant_id=merchant.id,
            amount_sats=amount_sats,
            amount_msats=amount_msats,
            description=description or None,
            metadata=metadata or None,
            status=PaymentStatus.PENDING,
            invoice=invoice.pr,
            verify_url=verify_url,
            account_index=selected.account_index,
            used_address=selected.address,
            created_at=now,
            expires_at=now + timedelta(seconds=self.expiry_seconds),
        )
        await self.save_payment(payment)
        logger.info(
            f"Payment {payment.id} created for merchant {merchant.id}: "
            f"{amount_sats} sats via account {selected.account_index}"
        )

        self._notify(
            merchant,
            WebhookEventType.PAYMENT_CREATED,
            {
                "paymentId": payment.id,
                "amountSats": payment.amount_sats,
                "description": payment.description,
                "status": payment.status.value,
            },
        )
        self._schedule_reconcile(payment)

        return CreatedPayment(
            payment_id=payment.id,
            payment_url=build_payment_url(base_url, merchant.id, payment.id),
            invoice=payment.invoice,
            expires_at=payment.expires_at,
            verify_url=verify_url,
            amount_sats=amount_sats,
        )

    @staticmethod
    def resolve_verify_url(invoice: LnurlInvoice, lightning_address: str) -> str | None:
        """Prefer the callback's verify URL, else derive one from the payment hash."""
        if invoice.verify:
            return invoice.verify
        payment_hash = extract_payment_hash(invoice.pr)
        if not payment_hash:
            return None
        return build_verify_url(lightning_address, payment_hash)

    # ============ Reconcile ============

    async def reconcile(self, payment_id: str) -> Payment:
        """Bring a payment's status up to date.

        Terminal payments are returned as stored with no side effects.
        Verify polling failures are logged and ignored; they never change
        the status on their own.

        Raises:
            PaymentNotFound: Unknown payment
        """
        payment = await self.require_payment(payment_id)
        if not payment.is_pending:
            return payment

        if payment.verify_url:
            try:
                result = await self.lnurl.verify(payment.verify_url)
            except Exception as e:
                logger.warning(f"LNURL-verify check failed for payment {payment.id}: {e}")
            else:
                if result.settled:
                    return await self._transition(payment.id, PaymentStatus.COMPLETED)

        if payment.is_past_expiry(utc_now()):
            return await self._transition(payment.id, PaymentStatus.EXPIRED)

        return payment

    async def _transition(self, payment_id: str, status: PaymentStatus) -> Payment:
        current = await self.require_payment(payment_id)
        if not current.is_pending:
            return current

        # One transition per payment: only the caller that claims the marker
        # persists the new status and notifies
        claimed = await self.store.set_if_absent(
            transition_key(payment_id), status.value, ttl_seconds=self._remaining_ttl(current)
        )
        if not claimed:
            logger.debug(f"Payment {payment_id} transition already claimed")
            return await self.require_payment(payment_id)

        if status == PaymentStatus.COMPLETED:
            current.mark_completed(utc_now())
            event = WebhookEventType.PAYMENT_COMPLETED
        else:
            current.mark_expired()
            event = WebhookEventType.PAYMENT_EXPIRED

        await self.save_payment(current)
        logger.info(f"Payment {current.id} -> {current.status.value}")

        payload: dict[str, Any] = {
            "paymentId": current.id,
            "amountSats": current.amount_sats,
            "status": current.status.value,
        }
        if current.paid_at is not None:
            payload["paidAt"] = format_utc_datetime(current.paid_at)

        merchant = await self.merchants.get_merchant(current.merchant_id)
        if merchant is not None:
            self._notify(merchant, event, payload)
        return current

    async def get_payment_view(self, payment_id: str) -> tuple[Payment, Merchant | None]:
        """Reconciled payment plus its merchant for the public status page."""
        payment = await self.reconcile(payment_id)
        merchant = await self.merchants.get_merchant(payment.merchant_id)
        return payment, merchant

    # ============ Side effects ============

    def _notify(
        self, merchant: Merchant, event: WebhookEventType, payload: dict[str, Any]
    ) -> None:
        if not merchant.has_webhook:
            return
        self.webhooks.dispatch(
            merchant.webhook_url,  # type: ignore[arg-type]
            merchant.webhook_secret,  # type: ignore[arg-type]
            event,
            payload,
        )

    def _schedule_reconcile(self, payment: Payment) -> None:
        if self._reconcile_scheduler is None:
            return
        try:
            self._reconcile_scheduler(payment.id, self.expiry_seconds + self.reconcile_buffer_seconds)
        except Exception as e:
            logger.error(f"Failed to schedule reconcile for payment {payment.id}: {e}")
