"""Formatting and URL helpers."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(utc_now().timestamp() * 1000)


def format_utc_datetime(dt: datetime | None) -> str | None:
    """Format datetime to ISO string with Z suffix for UTC.

    Args:
        dt: timezone-aware UTC datetime or None

    Returns:
        ISO format string with Z suffix (e.g., "2026-01-10T10:30:00.123Z") or None
    """
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payment_url(base_url: str, merchant_id: str, payment_id: str) -> str:
    """Checkout page URL for a payment."""
    return f"{base_url.rstrip('/')}/pay/{merchant_id}/{payment_id}"
