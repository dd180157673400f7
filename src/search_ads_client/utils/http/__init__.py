"""HTTP utilities for the Search Ads client.

Provides the blocking transport, its response wrapper and the bounded
rate-limit retry helpers.
"""

from .retry import (
    RATE_LIMIT_ATTEMPTS,
    RATE_LIMIT_BACKOFF,
    backoff_delay,
    rate_limit_retry,
    retry_rate_limited,
)
from .transport import (
    DEFAULT_TIMEOUT_SECONDS,
    RawResponse,
    Transport,
    create_limits,
    create_timeout,
    parse_retry_after,
    raise_for_status,
)

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "RATE_LIMIT_ATTEMPTS",
    "RATE_LIMIT_BACKOFF",
    "RawResponse",
    "Transport",
    "backoff_delay",
    "create_limits",
    "create_timeout",
    "parse_retry_after",
    "raise_for_status",
    "rate_limit_retry",
    "retry_rate_limited",
]
