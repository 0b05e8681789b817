"""Tests for the LNURL-pay / LNURL-verify client."""

import httpx
import pytest

from src.core.exceptions import InvoiceRequestFailed, LnurlError
from src.services.lnurl_service import (
    LnurlService,
    build_verify_url,
    extract_payment_hash,
    parse_lightning_address,
)
from tests.conftest import LN_DOMAIN


def service_for(handler) -> tuple[LnurlService, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LnurlService(client, timeout_seconds=1, verify_timeout_seconds=1), client


class TestAddressHelpers:
    def test_parse(self):
        assert parse_lightning_address("alice@ln.example") == ("alice", "ln.example")

    @pytest.mark.parametrize("address", ["alice", "@ln.example", "alice@", ""])
    def test_parse_rejects_malformed(self, address):
        with pytest.raises(LnurlError):
            parse_lightning_address(address)

    def test_build_verify_url(self):
        assert (
            build_verify_url("alice@ln.example", "ff" * 32)
            == f"https://ln.example/lnurlp/alice/verify/{'ff' * 32}"
        )

    def test_undecodable_invoice_has_no_hash(self):
        assert extract_payment_hash("not-an-invoice") is None


class TestPayInfo:
    async def test_fetch(self, lnurl_service, ln_host):
        info = await lnurl_service.fetch_pay_info(f"bob@{LN_DOMAIN}")

        assert info.callback == f"https://{LN_DOMAIN}/lnurlp/bob/callback"
        assert info.min_sendable == 1_000
        assert info.max_sendable == 100_000_000
        assert info.comment_allowed == 64
        assert ln_host.requests[0].url.path == "/.well-known/lnurlp/bob"

    async def test_http_error(self):
        service, client = service_for(lambda request: httpx.Response(404))
        async with client:
            with pytest.raises(LnurlError):
                await service.fetch_pay_info("bob@ln.example")

    async def test_error_status(self):
        service, client = service_for(
            lambda request: httpx.Response(200, json={"status": "ERROR", "reason": "no user"})
        )
        async with client:
            with pytest.raises(LnurlError, match="no user"):
                await service.fetch_pay_info("bob@ln.example")

    async def test_malformed_body(self):
        service, client = service_for(lambda request: httpx.Response(200, json={"tag": "x"}))
        async with client:
            with pytest.raises(LnurlError):
                await service.fetch_pay_info("bob@ln.example")


class TestRequestInvoice:
    async def test_params(self, lnurl_service, ln_host):
        invoice = await lnurl_service.request_invoice(
            f"https://{LN_DOMAIN}/lnurlp/bob/callback",
            21_000,
            comment="x" * 100,
            expiry_seconds=600,
            comment_allowed=64,
        )

        params = ln_host.requests[0].url.params
        assert params["amount"] == "21000"
        assert params["comment"] == "x" * 64
        assert params["expiry"] == "600"
        assert invoice.pr.startswith("lnbc")
        assert invoice.verify is not None

    async def test_comment_omitted_when_empty(self, lnurl_service, ln_host):
        await lnurl_service.request_invoice(f"https://{LN_DOMAIN}/lnurlp/bob/callback", 1_000)
        assert "comment" not in ln_host.requests[0].url.params

    @pytest.mark.parametrize("comment_allowed", [None, 0])
    async def test_comment_omitted_when_payee_disallows_comments(
        self, lnurl_service, ln_host, comment_allowed
    ):
        await lnurl_service.request_invoice(
            f"https://{LN_DOMAIN}/lnurlp/bob/callback",
            1_000,
            comment="Coffee",
            comment_allowed=comment_allowed,
        )
        assert "comment" not in ln_host.requests[0].url.params

    async def test_error_status(self, lnurl_service, ln_host):
        ln_host.invoice_error = "amount too small"
        with pytest.raises(InvoiceRequestFailed, match="amount too small"):
            await lnurl_service.request_invoice(
                f"https://{LN_DOMAIN}/lnurlp/bob/callback", 1_000
            )

    async def test_missing_pr(self):
        service, client = service_for(lambda request: httpx.Response(200, json={"routes": []}))
        async with client:
            with pytest.raises(InvoiceRequestFailed):
                await service.request_invoice("https://ln.example/cb", 1_000)


class TestVerify:
    async def test_settled_flag(self, lnurl_service, ln_host):
        ln_host.settled["ab" * 32] = True
        result = await lnurl_service.verify(f"https://{LN_DOMAIN}/lnurlp/bob/verify/{'ab' * 32}")
        assert result.settled is True

    async def test_unknown_hash_is_unsettled(self, lnurl_service):
        result = await lnurl_service.verify(f"https://{LN_DOMAIN}/lnurlp/bob/verify/{'cd' * 32}")
        assert result.settled is False

    async def test_timeout_raises(self, lnurl_service, ln_host):
        ln_host.verify_timeout = True
        with pytest.raises(LnurlError):
            await lnurl_service.verify(f"https://{LN_DOMAIN}/lnurlp/bob/verify/{'ab' * 32}")
