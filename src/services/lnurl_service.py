"""LNURL-pay / LNURL-verify client.

Talks to the payee's Lightning address host:
- pay info:  GET https://{domain}/.well-known/lnurlp/{user}
- invoice:   GET {callback}?amount={msats}&comment=...
- verify:    GET {verify_url}  ->  {"status": "OK", "settled": bool, ...}

The ``httpx.AsyncClient`` is created once per process and passed in.
"""

import logging

import bolt11
import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from src.core.exceptions import InvoiceRequestFailed, LnurlError

logger = logging.getLogger(__name__)


class _LnurlModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LnurlPayInfo(_LnurlModel):
    """LUD-06 payRequest response."""

    callback: str
    min_sendable: int = Field(ge=0)
    max_sendable: int = Field(ge=0)
    metadata: str = ""
    tag: str = "payRequest"
    comment_allowed: int | None = None


class LnurlInvoice(_LnurlModel):
    """Callback response carrying the BOLT11 invoice."""

    pr: str = Field(min_length=1)
    verify: str | None = None


class LnurlVerifyResult(_LnurlModel):
    """LUD-21 verify response."""

    status: str = "OK"
    settled: bool = False
    preimage: str | None = None
    pr: str | None = None


def parse_lightning_address(address: str) -> tuple[str, str]:
    """Split ``user@domain`` into its parts.

    Raises:
        LnurlError: If the address is not of the form user@domain
    """
    username, sep, domain = address.strip().partition("@")
    if not sep or not username or not domain:
        raise LnurlError(f"Invalid Lightning address format: {address}")
    return username, domain


def build_verify_url(lightning_address: str, payment_hash: str) -> str:
    """Conventional LNURL-verify endpoint for an address and payment hash."""
    username, domain = parse_lightning_address(lightning_address)
    return f"https://{domain}/lnurlp/{username}/verify/{payment_hash}"


def extract_payment_hash(invoice: str) -> str | None:
    """Extract the payment hash from a BOLT11 invoice.

    Returns:
        Hex payment hash, or None if the invoice cannot be decoded
    """
    try:
        return bolt11.decode(invoice).payment_hash or None
    except Exception as e:
        logger.warning(f"Failed to decode bolt11 invoice: {e}")
        return None


class LnurlService:
    """LNURL-pay and LNURL-verify operations."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout_seconds: float = 10.0,
        verify_timeout_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self.timeout_seconds = timeout_seconds
        self.verify_timeout_seconds = verify_timeout_seconds

    async def fetch_pay_info(self, lightning_address: str) -> LnurlPayInfo:
        """Fetch LNURL-pay metadata for a Lightning address.

        Raises:
            LnurlError: On HTTP failure or malformed response
        """
        username, domain = parse_lightning_address(lightning_address)
        url = f"https://{domain}/.well-known/lnurlp/{username}"

        try:
            response = await self._client.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise LnurlError(f"Failed to fetch LNURL-pay info: {e}") from e
        except ValueError as e:
            raise LnurlError("LNURL-pay info is not valid JSON") from e

        if isinstance(data, dict) and data.get("status") == "ERROR":
            raise LnurlError(data.get("reason") or "LNURL-pay info request failed")

        try:
            return LnurlPayInfo.model_validate(data)
        except PydanticValidationError as e:
            raise LnurlError("Malformed LNURL-pay info response") from e

    async def request_invoice(
        self,
        callback_url: str,
        amount_msats: int,
        comment: str | None = None,
        expiry_seconds: int | None = None,
        comment_allowed: int | None = None,
    ) -> LnurlInvoice:
        """Request an invoice from the LNURL-pay callback.

        Args:
            callback_url: ``callback`` from the pay info
            amount_msats: Amount in millisatoshis
            comment: Optional payer comment (payment description)
            expiry_seconds: Requested invoice expiry
            comment_allowed: Max comment length advertised by the payee; no
                comment is sent unless it is positive

        Raises:
            InvoiceRequestFailed: On HTTP failure, error status or missing invoice
        """
        params: dict[str, str | int] = {"amount": amount_msats}
        # LUD-12: the payee accepts comments only when commentAllowed > 0
        if comment and comment_allowed and comment_allowed > 0:
            params["comment"] = comment[:comment_allowed]
        if expiry_seconds:
            params["expiry"] = expiry_seconds

        try:
            response = await self._client.get(
                callback_url, params=params, timeout=self.timeout_seconds
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise InvoiceRequestFailed(f"Failed to request invoice: {e}") from e
        except ValueError as e:
            raise InvoiceRequestFailed("Invoice response is not valid JSON") from e

        if not isinstance(data, dict):
            raise InvoiceRequestFailed("Malformed invoice response")
        if data.get("status") == "ERROR":
            raise InvoiceRequestFailed(data.get("reason") or "Failed to create invoice")

        try:
            return LnurlInvoice.model_validate(data)
        except PydanticValidationError as e:
            raise InvoiceRequestFailed("Invoice response has no payment request") from e

    async def verify(self, verify_url: str) -> LnurlVerifyResult:
        """Poll an LNURL-verify endpoint.

        Raises:
            LnurlError: On HTTP failure, timeout or malformed response
        """
        try:
            response = await self._client.get(verify_url, timeout=self.verify_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise LnurlError(f"Failed to verify payment: {e!r}") from e
        except ValueError as e:
            raise LnurlError("Verify response is not valid JSON") from e

        if isinstance(data, dict) and data.get("status") == "ERROR":
            raise LnurlError(data.get("reason") or "Verify request failed")

        try:
            return LnurlVerifyResult.model_validate(data)
        except PydanticValidationError as e:
            raise LnurlError("Malformed verify response") from e
