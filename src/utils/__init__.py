"""Glow Pay Utility Functions.

Common helper functions and utilities used across the application.
"""

from src.utils.helpers import build_payment_url, format_utc_datetime, now_ms, utc_now
from src.utils.rotation import SelectedAddress, parse_usage, select_rotation_address

__all__ = [
    "SelectedAddress",
    "build_payment_url",
    "format_utc_datetime",
    "now_ms",
    "parse_usage",
    "select_rotation_address",
    "utc_now",
]
