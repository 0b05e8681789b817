"""
Pytest configuration and shared fixtures.

Provides an in-memory keyed store, a fake Lightning address host (LNURL-pay,
LNURL-verify) plus a webhook receiver behind ``httpx.MockTransport``, and
services / API clients wired to them.
"""

import asyncio
import json
import random
from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Any

import httpx
import pytest

from src.core.config import get_settings
from src.core.security import hash_auth_token
from src.core.store import MemoryStore
from src.models.merchant import ApiKey, Merchant
from src.services.lnurl_service import LnurlService
from src.services.merchant_service import MerchantService
from src.services.payment_service import PaymentService
from src.services.webhook_service import WebhookService
from src.utils.helpers import utc_now

LN_DOMAIN = "ln.example"
WEBHOOK_URL = "https://merchant.example/hooks/glow"
WEBHOOK_SECRET = "whsec_test_secret"
API_KEY = "glow_testkey00000000000000000000000"
AUTH_TOKEN = "a" * 64
MERCHANT_ID = "m_0123456789abcdef"
ADDRESSES = [f"alice@{LN_DOMAIN}", f"bob@{LN_DOMAIN}", f"carol@{LN_DOMAIN}"]


class RecordingStore(MemoryStore):
    """MemoryStore that counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        self.writes.append(key)
        await super().set(key, value, ttl_seconds)

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        written = await super().set_if_absent(key, value, ttl_seconds)
        if written:
            self.writes.append(key)
        return written


class YieldingStore(RecordingStore):
    """Store that suspends on every call, like a networked backend."""

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        await asyncio.sleep(0)
        await super().set(key, value, ttl_seconds)

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        await asyncio.sleep(0)
        return await super().set_if_absent(key, value, ttl_seconds)


class FixedRandom(random.Random):
    """Random source returning a fixed value from ``random()``."""

    def __init__(self, value: float = 0.0) -> None:
        super().__init__()
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


class FakeLightningHost:
    """Fake LNURL host and webhook receiver.

    Attributes:
        min_sendable / max_sendable: Bounds in msats returned by pay info
        include_verify: Whether invoice responses carry a ``verify`` URL
        invoice_error: Reason returned as ``{"status": "ERROR"}`` when set
        settled: payment hash -> settled flag for verify
        verify_timeout: Raise a timeout on verify requests
        webhook_status: Status code returned by the webhook receiver
    """

    def __init__(self) -> None:
        self.min_sendable = 1_000
        self.max_sendable = 100_000_000
        self.include_verify = True
        self.invoice_error: str | None = None
        self.settled: dict[str, bool] = {}
        self.verify_timeout = False
        self.webhook_status = 200
        self.requests: list[httpx.Request] = []
        self.webhooks: list[httpx.Request] = []
        self._invoice_counter = 0

    def paths(self, fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if fragment in r.url.path]

    def webhook_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.webhooks]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and str(request.url) == WEBHOOK_URL:
            self.webhooks.append(request)
            return httpx.Response(self.webhook_status, json={"ok": True})

        self.requests.append(request)
        path = request.url.path

        if path.startswith("/.well-known/lnurlp/"):
            user = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "callback": f"https://{LN_DOMAIN}/lnurlp/{user}/callback",
                    "minSendable": self.min_sendable,
                    "maxSendable": self.max_sendable,
                    "metadata": '[["text/plain","Pay"]]',
                    "tag": "payRequest",
                    "commentAllowed": 64,
                },
            )

        if path.endswith("/callback"):
            if self.invoice_error:
                return httpx.Response(200, json={"status": "ERROR", "reason": self.invoice_error})
            user = path.split("/")[2]
            self._invoice_counter += 1
            payment_hash = f"{self._invoice_counter:064x}"
            self.settled.setdefault(payment_hash, False)
            body: dict[str, Any] = {
                "pr": f"lnbc{request.url.params['amount']}n1p{payment_hash}",
                "routes": [],
            }
            if self.include_verify:
                body["verify"] = f"https://{LN_DOMAIN}/lnurlp/{user}/verify/{payment_hash}"
            return httpx.Response(200, json=body)

        if "/verify/" in path:
            if self.verify_timeout:
                raise httpx.ReadTimeout("verify timed out", request=request)
            payment_hash = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "settled": self.settled.get(payment_hash, False),
                    "preimage": None,
                    "pr": "lnbc",
                },
            )

        return httpx.Response(404, json={"status": "ERROR", "reason": "not found"})

    def settle_all(self) -> None:
        for payment_hash in self.settled:
            self.settled[payment_hash] = True


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def ln_host() -> FakeLightningHost:
    return FakeLightningHost()


@pytest.fixture
async def http_client(ln_host: FakeLightningHost) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(ln_host.handler)) as client:
        yield client


@pytest.fixture
def merchant_service(store: RecordingStore) -> MerchantService:
    return MerchantService(store)


@pytest.fixture
def lnurl_service(http_client: httpx.AsyncClient) -> LnurlService:
    return LnurlService(http_client, timeout_seconds=2, verify_timeout_seconds=1)


@pytest.fixture
def webhook_service(http_client: httpx.AsyncClient) -> WebhookService:
    return WebhookService(http_client, timeout_seconds=1)


@pytest.fixture
def rng() -> FixedRandom:
    return FixedRandom(0.0)


@pytest.fixture
def payment_service(
    store: RecordingStore,
    merchant_service: MerchantService,
    lnurl_service: LnurlService,
    webhook_service: WebhookService,
    rng: FixedRandom,
) -> PaymentService:
    return PaymentService(store, merchant_service, lnurl_service, webhook_service, rng=rng)


def make_merchant(**overrides: Any) -> Merchant:
    fields: dict[str, Any] = {
        "id": MERCHANT_ID,
        "store_name": "Test Store",
        "addresses": list(ADDRESSES),
        "api_keys": [ApiKey(key=API_KEY, label="Default")],
        "rotation_enabled": True,
        "rotation_count": 3,
        "auth_token_hash": hash_auth_token(AUTH_TOKEN),
        "webhook_url": WEBHOOK_URL,
        "webhook_secret": WEBHOOK_SECRET,
        "redirect_url": "https://shop.example/thanks",
    }
    fields.update(overrides)
    return Merchant(**fields)


async def backdate(payment_service: PaymentService, payment_id: str) -> None:
    """Shift a stored payment so its expiry lies in the past."""
    payment = await payment_service.require_payment(payment_id)
    payment.expires_at = utc_now() - timedelta(seconds=1)
    payment.created_at = payment.expires_at - timedelta(seconds=600)
    await payment_service.save_payment(payment)


@pytest.fixture
async def merchant(merchant_service: MerchantService) -> Merchant:
    merchant = make_merchant()
    await merchant_service.save_merchant(merchant)
    return merchant


@pytest.fixture
async def api_client(
    store: RecordingStore, http_client: httpx.AsyncClient
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client against the app, lifespan included."""
    from src.main import create_app

    app = create_app(store=store, http_client=http_client)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            client.app = app  # type: ignore[attr-defined]
            yield client
