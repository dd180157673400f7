"""Bearer token lifecycle management.

This module derives short-lived bearer tokens from the long-lived
signing credential and caches them per credential identity. The
manager is an explicit object rather than process-wide state so each
client (and each test) owns its own cache.

The cache is guarded by a mutex, but a refresh is not single-flighted:
threads that miss the cache concurrently each perform a full exchange
and the last one to finish wins the cache slot.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..config.settings import Credential, CredentialSource, EnvCredentialSource, Settings
from ..exceptions import AuthError
from ..utils.cancellation import CancelToken
from ..utils.coerce import float_from_any, map_from_any, string_from_any
from ..utils.http.transport import Transport, raise_for_status
from .signing import make_client_secret

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 3600
MAX_TOKEN_TTL_SECONDS = 7 * 24 * 3600
EXPIRY_SAFETY_MARGIN = timedelta(seconds=60)
SHORT_TTL_FALLBACK = timedelta(minutes=55)


@dataclass(frozen=True)
class AuthContext:
    """Cached authentication state.

    :param bearer_token: Access token for the Authorization header
    :param org_id: Organization sent in the org-context header
    :param expires_at: When the context stops being served from cache
    :param credential_hash: Identity of the credential it was derived from
    """

    bearer_token: str
    org_id: str
    expires_at: datetime
    credential_hash: str

    def is_valid_for(self, credential_hash: str, now: datetime) -> bool:
        return self.credential_hash == credential_hash and now < self.expires_at

    def __repr__(self) -> str:
        return (
            f"AuthContext(bearer_token=<REDACTED>, org_id={self.org_id!r}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Derives and caches bearer tokens.

    :param transport: Transport used for the token exchange and org lookup
    :type transport: Transport
    :param credential_source: Callable returning the current credential
    :type credential_source: Optional[CredentialSource]
    :param settings: Endpoint configuration
    :type settings: Optional[Settings]
    :param now: Clock returning an aware UTC datetime
    :type now: Callable[[], datetime]
    """

    def __init__(
        self,
        transport: Transport,
        credential_source: Optional[CredentialSource] = None,
        settings: Optional[Settings] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.transport = transport
        self.credential_source = credential_source or EnvCredentialSource()
        self.settings = settings or Settings()
        self._now = now
        self._lock = threading.Lock()
        self._cached: Optional[AuthContext] = None

    @property
    def cached(self) -> Optional[AuthContext]:
        with self._lock:
            return self._cached

    def invalidate(self) -> None:
        """Drop the cached context so the next call re-authenticates."""
        with self._lock:
            self._cached = None

    def authenticate(self, cancel: Optional[CancelToken] = None) -> AuthContext:
        """Return a valid auth context, exchanging a new token when needed.

        :param cancel: Cancellation token passed to network calls
        :type cancel: Optional[CancelToken]
        :return: Cached or freshly derived context
        :rtype: AuthContext
        :raises AuthError: If the credential is missing, the key is
            invalid, or the organization cannot be resolved
        :raises APIError: If the token endpoint or org lookup fails
        """
        credential = self.credential_source()
        if credential is None or not credential.is_complete():
            raise AuthError(
                "Search Ads credentials are missing or incomplete",
                reason=AuthError.MISSING_CREDENTIALS,
            )
        credential_hash = credential.credential_hash()

        with self._lock:
            cached = self._cached
        if cached is not None and cached.is_valid_for(credential_hash, self._now()):
            return cached

        context = self._derive(credential, credential_hash, cancel)
        with self._lock:
            self._cached = context
        return context

    def _derive(
        self, credential: Credential, credential_hash: str, cancel: Optional[CancelToken]
    ) -> AuthContext:
        client_secret = make_client_secret(credential, audience=self.settings.audience)
        access_token, ttl = self._request_access_token(
            credential.client_id, client_secret, cancel
        )
        org_id = self._fetch_org_id(access_token, cancel)

        now = self._now()
        expires_at = now + timedelta(seconds=ttl) - EXPIRY_SAFETY_MARGIN
        if expires_at <= now:
            expires_at = now + SHORT_TTL_FALLBACK
        logger.info(
            "Obtained Search Ads access token for org %s (ttl %.0fs)", org_id, ttl
        )
        return AuthContext(
            bearer_token=access_token,
            org_id=org_id,
            expires_at=expires_at,
            credential_hash=credential_hash,
        )

    def _request_access_token(
        self, client_id: str, client_secret: str, cancel: Optional[CancelToken]
    ):
        response = self.transport.send(
            "POST",
            self.settings.token_url,
            form={
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
                "scope": self.settings.scope,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            cancel=cancel,
        )
        raise_for_status(response)
        data = map_from_any(response.json())
        access_token = string_from_any(data.get("access_token")).strip()
        if not access_token:
            raise AuthError(
                "OAuth response missing access_token", reason=AuthError.TOKEN_EXCHANGE
            )
        ttl = float_from_any(data.get("expires_in"))
        if not math.isfinite(ttl) or ttl <= 0 or ttl > MAX_TOKEN_TTL_SECONDS:
            ttl = DEFAULT_TOKEN_TTL_SECONDS
        return access_token, ttl

    def _fetch_org_id(self, access_token: str, cancel: Optional[CancelToken]) -> str:
        response = self.transport.send(
            "GET",
            f"{self.settings.api_base_url}/me",
            headers={"Authorization": f"Bearer {access_token}"},
            cancel=cancel,
        )
        raise_for_status(response)
        data = map_from_any(map_from_any(response.json()).get("data"))
        if not data:
            raise AuthError(
                "Search Ads /me response missing data", reason=AuthError.MISSING_ORG_ID
            )
        org_id = string_from_any(data.get("parentOrgId")).strip()
        if not org_id:
            raise AuthError(
                "Search Ads /me response missing parentOrgId",
                reason=AuthError.MISSING_ORG_ID,
            )
        return org_id
