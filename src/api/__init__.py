"""API module - route handlers and common dependencies."""

from fastapi import FastAPI

from src.api.deps import (
    ApiKeyMerchant,
    BearerToken,
    MerchantServiceDep,
    PaymentServiceDep,
)

__all__ = [
    "ApiKeyMerchant",
    "BearerToken",
    "MerchantServiceDep",
    "PaymentServiceDep",
    "register_routers",
]


def register_routers(app: FastAPI) -> None:
    """Register all API routers to the application.

    Args:
        app: FastAPI application instance
    """
    from src.api.merchants import router as merchants_router
    from src.api.payments import router as payments_router

    app.include_router(payments_router)
    app.include_router(merchants_router)
