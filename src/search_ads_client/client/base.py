"""Authenticated request plumbing shared by every resource mixin."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..auth.token_manager import AuthContext, TokenManager
from ..config.settings import CredentialSource, EnvCredentialSource, Settings
from ..exceptions import APIError
from ..utils.cancellation import SYSTEM_CLOCK, CancelToken, Clock
from ..utils.coerce import extract_data_items, extract_data_object
from ..utils.http.transport import RawResponse, Transport, raise_for_status
from .fallback import MultiPathInvoker
from .pagination import PaginatedFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseClient:
    """Owns the transport, token manager and request helpers.

    :param settings: Endpoint and timeout configuration
    :type settings: Optional[Settings]
    :param credential_source: Supplies the signing credential
    :type credential_source: Optional[CredentialSource]
    :param token_manager: Pre-built token manager; built from the
        other arguments when omitted
    :type token_manager: Optional[TokenManager]
    :param transport: HTTP transport
    :type transport: Optional[Transport]
    :param clock: Clock used by retry and polling loops
    :type clock: Clock
    :param now: Wall clock used for default dates and start times
    :type now: Callable[[], datetime]
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credential_source: Optional[CredentialSource] = None,
        token_manager: Optional[TokenManager] = None,
        transport: Optional[Transport] = None,
        clock: Clock = SYSTEM_CLOCK,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or Settings()
        self.transport = transport or Transport(timeout=self.settings.timeout_seconds)
        self.token_manager = token_manager or TokenManager(
            self.transport,
            credential_source=credential_source or EnvCredentialSource(),
            settings=self.settings,
        )
        self.clock = clock
        self._now = now
        self.pages = PaginatedFetcher(self._send)
        self.invoker = MultiPathInvoker(self._send)

    def url_for(self, path: str) -> str:
        """Resolve an API path against the configured base URL."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{self.settings.api_base_url}/{path.lstrip('/')}"

    @staticmethod
    def _auth_headers(context: AuthContext, org_context: bool = True) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {context.bearer_token}"}
        if org_context:
            headers["X-AP-Context"] = f"orgId={context.org_id}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        cancel: Optional[CancelToken] = None,
        org_context: bool = True,
    ) -> RawResponse:
        """Send one authenticated request without interpreting its status.

        :param method: HTTP method
        :type method: str
        :param path: API path, or an absolute URL
        :type path: str
        :param params: Query parameters
        :type params: Optional[Dict[str, Any]]
        :param body: JSON body; None sends no body
        :type body: Any
        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :param org_context: Whether to send the organization header
        :type org_context: bool
        :return: Raw response
        :rtype: RawResponse
        """
        context = self.token_manager.authenticate(cancel)
        return self.transport.send(
            method,
            self.url_for(path),
            headers=self._auth_headers(context, org_context),
            params=params,
            json_body=body,
            cancel=cancel,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        response = self._send(method, path, params=params, body=body, cancel=cancel)
        return raise_for_status(response).json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, cancel: Optional[CancelToken] = None) -> Any:
        return self._request("GET", path, params=params, cancel=cancel)

    def _post(self, path: str, body: Any, cancel: Optional[CancelToken] = None) -> Any:
        return self._request("POST", path, body=body, cancel=cancel)

    def _put(self, path: str, body: Any, cancel: Optional[CancelToken] = None) -> Any:
        return self._request("PUT", path, body=body, cancel=cancel)

    def _delete(self, path: str, cancel: Optional[CancelToken] = None) -> None:
        self._request("DELETE", path, cancel=cancel)

    @staticmethod
    def _parse_items(
        payload: Any,
        parse: Callable[[Any], Optional[T]],
        extract: Callable[[Any], List[Any]] = extract_data_items,
    ) -> List[T]:
        results = []
        for raw in extract(payload):
            record = parse(raw)
            if record is not None:
                results.append(record)
        return results

    @staticmethod
    def _parse_one(payload: Any, parse: Callable[[Any], Optional[T]], what: str) -> T:
        record = parse(extract_data_object(payload))
        if record is None:
            raise APIError(f"invalid {what} response payload")
        return record

    def _find(
        self,
        path: str,
        selector: Optional[Dict[str, Any]],
        parse: Callable[[Any], Optional[T]],
        cancel: Optional[CancelToken] = None,
    ) -> List[T]:
        payload = self._post(path, selector or {}, cancel=cancel)
        return self._parse_items(payload, parse)

    def validate_credentials(self, cancel: Optional[CancelToken] = None) -> str:
        """Authenticate and return the resolved organization id.

        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :return: Organization id
        :rtype: str
        :raises AuthError: If credentials are missing or rejected
        """
        return self.token_manager.authenticate(cancel).org_id

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
