"""Glow Pay Gateway - FastAPI Application."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api import register_routers
from src.core.config import Settings, get_settings
from src.core.exceptions import GlowPayError
from src.core.store import KeyValueStore, create_store
from src.services.lnurl_service import LnurlService
from src.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)


def build_lifespan(store: KeyValueStore | None = None, http_client: httpx.AsyncClient | None = None):
    """Lifespan factory; tests inject a store and a mocked HTTP client."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler.

        Startup: keyed store, shared HTTP client, LNURL and webhook services
        Shutdown: drain webhooks, close clients
        """
        settings = get_settings()
        app.state.store = store if store is not None else create_store(settings)
        client = http_client
        if client is None:
            client = httpx.AsyncClient(follow_redirects=True)
        app.state.http_client = client
        app.state.lnurl_service = LnurlService(
            client,
            timeout_seconds=settings.lnurl_timeout_seconds,
            verify_timeout_seconds=settings.verify_timeout_seconds,
        )
        app.state.webhook_service = WebhookService(
            client, timeout_seconds=settings.webhook_timeout_seconds
        )
        yield
        await app.state.webhook_service.drain()
        if http_client is None:
            await client.aclose()
        if store is None:
            await app.state.store.close()

    return lifespan


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``."""

    @app.exception_handler(GlowPayError)
    async def glowpay_error_handler(request: Request, exc: GlowPayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        if not errors:
            return _error_response(400, "Invalid request")
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _error_response(400, f"{location}: {message}" if location else message)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    store: KeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Application factory.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        description="Lightning payment gateway API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=build_lifespan(store, http_client),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Application instance
app = create_app()
