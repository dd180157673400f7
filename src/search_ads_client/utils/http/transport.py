"""Blocking HTTP transport with response wrapping.

The transport executes one request and returns the raw status, headers
and body. It never raises for an HTTP status; callers decide what a
status means. Retryability is decided here, once, and travels with the
response (and with any :class:`APIError` built from it).
"""

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

import httpx

from ...exceptions import APIError, TimeoutError
from ..cancellation import CancelToken, check_cancel
from ..security import safe_display_url, sanitize_error_body, sanitize_string

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 45.0
RETRYABLE_STATUS_CODES = frozenset({429})


def create_timeout(seconds: float = DEFAULT_TIMEOUT_SECONDS, connect: Optional[float] = None) -> httpx.Timeout:
    """Create an httpx timeout with a single overall budget.

    :param seconds: Read, write and pool timeout
    :type seconds: float
    :param connect: Optional tighter connect timeout
    :type connect: Optional[float]
    :return: Timeout configuration
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(seconds, connect=connect if connect is not None else seconds)


def create_limits(
    max_keepalive: int = 10,
    max_connections: int = 20,
    keepalive_expiry: float = 30.0,
) -> httpx.Limits:
    """Create connection pool limits.

    :param max_keepalive: Maximum idle keep-alive connections
    :type max_keepalive: int
    :param max_connections: Maximum concurrent connections
    :type max_connections: int
    :param keepalive_expiry: Seconds before an idle connection is closed
    :type keepalive_expiry: float
    :return: Limits configuration
    :rtype: httpx.Limits
    """
    return httpx.Limits(
        max_keepalive_connections=max_keepalive,
        max_connections=max_connections,
        keepalive_expiry=keepalive_expiry,
    )


def parse_retry_after(headers: httpx.Headers) -> Optional[float]:
    """Parse a Retry-After header (delta-seconds or HTTP-date)."""
    retry_after = headers.get("retry-after", "").strip()
    if not retry_after:
        return None
    if retry_after.isdigit():
        return float(retry_after)
    try:
        retry_date = parsedate_to_datetime(retry_after)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable Retry-After header %r", retry_after)
        return None
    return max(0.0, (retry_date - datetime.now(retry_date.tzinfo)).total_seconds())


class RawResponse:
    """Wrapper for HTTP responses with convenient access methods.

    JSON decoding is cached; an empty body decodes to ``{}``.
    """

    def __init__(self, response: httpx.Response):
        """Initialize the response wrapper.

        :param response: The underlying httpx.Response object
        :type response: httpx.Response
        """
        self.response = response
        self._json_cache: Any = None
        self._json_loaded = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def content(self) -> bytes:
        return self.response.content

    @property
    def text(self) -> str:
        return self.response.text

    def json(self) -> Any:
        """Get the response body as parsed JSON.

        :return: Parsed JSON, ``{}`` for an empty body
        :rtype: Any
        :raises APIError: If the body is not valid JSON
        """
        if not self._json_loaded:
            if not self.response.content.strip():
                self._json_cache = {}
            else:
                try:
                    self._json_cache = self.response.json()
                except ValueError as e:
                    raise APIError(
                        f"invalid JSON response: {e}", status_code=self.status_code
                    ) from e
            self._json_loaded = True
        return self._json_cache

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def retryable(self) -> bool:
        """Whether the request may succeed if repeated later."""
        return self.status_code in RETRYABLE_STATUS_CODES

    @property
    def retry_after(self) -> Optional[float]:
        return parse_retry_after(self.headers)


def raise_for_status(response: RawResponse) -> RawResponse:
    """Convert a non-2xx response into a sanitized :class:`APIError`.

    :param response: Response to check
    :type response: RawResponse
    :return: The same response when it is a success
    :rtype: RawResponse
    :raises APIError: If the status is outside 2xx
    """
    if response.is_success:
        return response
    raise APIError(
        sanitize_error_body(response.content),
        status_code=response.status_code,
        retryable=response.retryable,
    )


class Transport:
    """Synchronous HTTP transport backed by ``httpx.Client``.

    :param timeout: Per-request timeout in seconds
    :type timeout: float
    :param transport: Optional httpx transport, e.g. ``httpx.MockTransport``
    :type transport: Optional[httpx.BaseTransport]
    :param client: Optional pre-built client; takes precedence over ``transport``
    :type client: Optional[httpx.Client]
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=create_timeout(timeout),
            limits=create_limits(),
            transport=transport,
            follow_redirects=False,
        )

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        form: Optional[Dict[str, str]] = None,
        cancel: Optional[CancelToken] = None,
    ) -> RawResponse:
        """Execute one request.

        :param method: HTTP method
        :type method: str
        :param url: Absolute URL
        :type url: str
        :param headers: Request headers
        :type headers: Optional[Dict[str, str]]
        :param params: Query parameters
        :type params: Optional[Dict[str, Any]]
        :param json_body: JSON body; None sends no body
        :type json_body: Any
        :param form: Form-encoded body
        :type form: Optional[Dict[str, str]]
        :param cancel: Cancellation token checked before sending
        :type cancel: Optional[CancelToken]
        :return: Wrapped response, whatever its status
        :rtype: RawResponse
        :raises CancelledError: If the token was cancelled
        :raises TimeoutError: If the deadline passed or the request timed out
        :raises APIError: For connection-level failures
        """
        display = safe_display_url(url)
        check_cancel(cancel, f"{method} {display}")
        timeout = cancel.clamp_timeout(self.timeout) if cancel else self.timeout

        kwargs: Dict[str, Any] = {"headers": headers, "params": params}
        if json_body is not None:
            kwargs["json"] = json_body
        elif form is not None:
            kwargs["data"] = form

        logger.debug("%s %s", method, display)
        try:
            response = self._client.request(
                method, url, timeout=create_timeout(timeout), **kwargs
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(
                f"Request timed out: {method} {display}", operation=method
            ) from e
        except httpx.HTTPError as e:
            raise APIError(
                sanitize_string(f"Request failed: {method} {display}: {e}")
            ) from e
        logger.debug("%s %s -> %d", method, display, response.status_code)
        return RawResponse(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
