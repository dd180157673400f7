"""Bounded retry for rate-limited operations.

Only errors whose ``retryable`` flag was set at the transport boundary
(HTTP 429) are retried. Every other failure propagates immediately.
The backoff follows a fixed escalating schedule rather than jittered
exponential growth, and all sleeping goes through an injectable clock.
"""

import logging
from functools import wraps
from typing import Callable, Optional, Sequence, TypeVar

from ...exceptions import APIError
from ..cancellation import SYSTEM_CLOCK, CancelToken, Clock, check_cancel

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_BACKOFF: Sequence[float] = (2.0, 5.0, 10.0, 15.0)
RATE_LIMIT_ATTEMPTS = 4


def backoff_delay(attempt: int, schedule: Sequence[float] = RATE_LIMIT_BACKOFF) -> float:
    """Delay after the given zero-based attempt; the last step repeats."""
    return schedule[min(attempt, len(schedule) - 1)]


def retry_rate_limited(
    operation: Callable[[], T],
    *,
    attempts: int = RATE_LIMIT_ATTEMPTS,
    schedule: Sequence[float] = RATE_LIMIT_BACKOFF,
    clock: Clock = SYSTEM_CLOCK,
    cancel: Optional[CancelToken] = None,
    description: str = "request",
) -> T:
    """Run ``operation``, retrying while it fails with a retryable error.

    :param operation: Zero-argument callable to run
    :type operation: Callable[[], T]
    :param attempts: Maximum number of calls, including the first
    :type attempts: int
    :param schedule: Sleep before each retry, indexed by attempt
    :type schedule: Sequence[float]
    :param clock: Clock used for sleeping
    :type clock: Clock
    :param cancel: Token checked before each retry
    :type cancel: Optional[CancelToken]
    :param description: Label for log messages
    :type description: str
    :return: The operation's result
    :rtype: T
    :raises APIError: The last retryable error once attempts run out,
        or the first non-retryable error
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    last_error: Optional[APIError] = None
    for attempt in range(attempts):
        try:
            return operation()
        except APIError as e:
            if not e.retryable:
                raise
            last_error = e
            if attempt == attempts - 1:
                break
            delay = backoff_delay(attempt, schedule)
            logger.warning(
                "%s rate limited (attempt %d/%d), retrying in %.0fs",
                description,
                attempt + 1,
                attempts,
                delay,
            )
            clock.sleep(delay)
            check_cancel(cancel, description)
    raise last_error


def rate_limit_retry(
    attempts: int = RATE_LIMIT_ATTEMPTS,
    schedule: Sequence[float] = RATE_LIMIT_BACKOFF,
    clock: Clock = SYSTEM_CLOCK,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`retry_rate_limited`.

    :param attempts: Maximum number of calls, including the first
    :type attempts: int
    :param schedule: Sleep before each retry, indexed by attempt
    :type schedule: Sequence[float]
    :param clock: Clock used for sleeping
    :type clock: Clock
    :return: Decorator
    :rtype: Callable[[Callable[..., T]], Callable[..., T]]
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return retry_rate_limited(
                lambda: func(*args, **kwargs),
                attempts=attempts,
                schedule=schedule,
                clock=clock,
                description=func.__name__,
            )

        return wrapper

    return decorator
