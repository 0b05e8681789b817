"""Glow Pay Gateway - Core Configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Glow Pay Gateway"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root logging level")
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )
    public_base_url: str = Field(
        default="",
        description="Base URL for checkout pages; falls back to the request host when empty",
    )

    # Keyed store
    store_backend: Literal["redis", "memory"] = Field(
        default="redis", description="Persistence backend for merchants and payments"
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the keyed store and task queue",
    )

    # Payment settings
    payment_expiry_seconds: int = Field(
        default=600, description="Lightning invoice / payment expiry window in seconds"
    )
    payment_ttl_seconds: int = Field(
        default=86400, description="Retention of payment records in the keyed store"
    )

    # Outbound HTTP
    lnurl_timeout_seconds: float = Field(
        default=10.0, description="Timeout for LNURL-pay info and invoice requests"
    )
    verify_timeout_seconds: float = Field(
        default=5.0, description="Timeout for LNURL-verify polling"
    )
    webhook_timeout_seconds: float = Field(
        default=5.0, description="Timeout for a single webhook delivery attempt"
    )

    # Background reconciliation
    reconcile_worker_enabled: bool = Field(
        default=False,
        description="Schedule a delayed Celery reconcile task for every new payment",
    )
    reconcile_delay_buffer_seconds: int = Field(
        default=10, description="Extra delay after expiry before the reconcile task runs"
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parsed CORS origins."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
