"""Cancellation tokens and clocks for blocking operations.

Every network call accepts an optional :class:`CancelToken`. The token
carries an optional monotonic deadline and a cancel flag that another
thread may set; transports check it before each request and clamp
their timeout to the remaining budget.

Clocks are injected wherever the client sleeps so tests can drive
virtual time instead of waiting.
"""

import threading
import time
from typing import Optional, Protocol

from ..exceptions import CancelledError, TimeoutError


class Clock(Protocol):
    """Minimal clock interface used by retry and polling loops."""

    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Clock backed by :mod:`time`."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


SYSTEM_CLOCK = SystemClock()


class CancelToken:
    """Caller-owned cancellation handle with an optional deadline.

    :param deadline: Absolute deadline on ``clock.monotonic()``, or None
    :type deadline: Optional[float]
    :param clock: Clock the deadline refers to
    :type clock: Clock
    """

    def __init__(self, deadline: Optional[float] = None, clock: Clock = SYSTEM_CLOCK):
        self.deadline = deadline
        self.clock = clock
        self._event = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float, clock: Clock = SYSTEM_CLOCK) -> "CancelToken":
        """Create a token whose deadline is ``seconds`` from now.

        :param seconds: Time budget in seconds
        :type seconds: float
        :param clock: Clock used to compute the deadline
        :type clock: Clock
        :return: New cancel token
        :rtype: CancelToken
        """
        return cls(deadline=clock.monotonic() + seconds, clock=clock)

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.clock.monotonic())

    def expired(self) -> bool:
        return self.deadline is not None and self.clock.monotonic() >= self.deadline

    def raise_if_cancelled(self, operation: Optional[str] = None) -> None:
        """Raise when the token was cancelled or its deadline passed.

        :param operation: Name of the operation about to run
        :type operation: Optional[str]
        :raises CancelledError: If :meth:`cancel` was called
        :raises TimeoutError: If the deadline has passed
        """
        if self.cancelled:
            raise CancelledError(operation=operation)
        if self.expired():
            raise TimeoutError("Deadline exceeded", operation=operation)

    def clamp_timeout(self, timeout: float) -> float:
        """Limit a per-request timeout to the remaining deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)


def check_cancel(cancel: Optional[CancelToken], operation: Optional[str] = None) -> None:
    """Shorthand for ``cancel.raise_if_cancelled`` that tolerates None."""
    if cancel is not None:
        cancel.raise_if_cancelled(operation)
