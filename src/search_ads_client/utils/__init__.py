"""Shared utilities: cancellation, JSON coercion, HTTP and security helpers."""

from .cancellation import SYSTEM_CLOCK, CancelToken, Clock, SystemClock, check_cancel
from .security import (
    safe_display_url,
    sanitize_string,
    setup_secure_logging,
    validate_download_uri,
)

__all__ = [
    "CancelToken",
    "Clock",
    "SYSTEM_CLOCK",
    "SystemClock",
    "check_cancel",
    "safe_display_url",
    "sanitize_string",
    "setup_secure_logging",
    "validate_download_uri",
]
