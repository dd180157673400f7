"""Unit tests for bearer token derivation and caching."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from search_ads_client.auth import TokenManager
from search_ads_client.auth.token_manager import SHORT_TTL_FALLBACK
from search_ads_client.config import Settings, StaticCredentialSource
from search_ads_client.exceptions import APIError, AuthError

pytestmark = pytest.mark.auth

TOKEN_URL = "https://appleid.apple.com/auth/oauth2/token"
ME_URL = "https://api.searchads.apple.com/api/v5/me"


class MutableClock:
    def __init__(self):
        self.now = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def wall_clock():
    return MutableClock()


@pytest.fixture
def manager(mock_transport, credential, wall_clock):
    def _make(cred=credential):
        return TokenManager(
            mock_transport,
            credential_source=StaticCredentialSource(cred),
            settings=Settings(),
            now=wall_clock,
        )

    return _make


class TestAuthenticate:
    """Token exchange and org lookup."""

    def test_exchange_and_org_lookup(self, manager, fake_api, credential, wall_clock):
        context = manager().authenticate()

        assert context.bearer_token == "test-access-token"
        assert context.org_id == "4242"
        assert context.credential_hash == credential.credential_hash()
        assert context.expires_at == wall_clock.now + timedelta(seconds=3600 - 60)

        token_request = fake_api.calls("POST", TOKEN_URL)[0]
        form = parse_qs(token_request.content.decode())
        assert form["grant_type"] == ["client_credentials"]
        assert form["client_id"] == [credential.client_id]
        assert form["scope"] == ["searchadsorg"]
        assert form["client_secret"][0].count(".") == 2

        me_request = fake_api.calls("GET", ME_URL)[0]
        assert me_request.headers["Authorization"] == "Bearer test-access-token"
        assert "X-AP-Context" not in me_request.headers

    def test_missing_ttl_defaults_to_an_hour(self, manager, fake_api, wall_clock):
        fake_api.reset("POST", TOKEN_URL).on("POST", TOKEN_URL, json={"access_token": "t"})
        context = manager().authenticate()
        assert context.expires_at == wall_clock.now + timedelta(seconds=3540)

    def test_tiny_ttl_uses_short_fallback(self, manager, fake_api, wall_clock):
        fake_api.reset("POST", TOKEN_URL).on(
            "POST", TOKEN_URL, json={"access_token": "t", "expires_in": 30}
        )
        context = manager().authenticate()
        assert context.expires_at == wall_clock.now + SHORT_TTL_FALLBACK

    def test_org_always_resolved_through_me(self, manager, fake_api, credential):
        cred = credential.model_copy(update={"org_id": "999"})
        context = manager(cred).authenticate()
        assert context.org_id == "4242"
        assert len(fake_api.calls("GET", ME_URL)) == 1

    @pytest.mark.parametrize(
        "body",
        [
            b'{"access_token": "t", "expires_in": 1e400}',
            b'{"access_token": "t", "expires_in": "NaN"}',
            b'{"access_token": "t", "expires_in": 1e300}',
        ],
    )
    def test_unusable_ttl_defaults_to_an_hour(self, manager, fake_api, wall_clock, body):
        fake_api.reset("POST", TOKEN_URL).on(
            "POST", TOKEN_URL, content=body, headers={"Content-Type": "application/json"}
        )
        context = manager().authenticate()
        assert context.expires_at == wall_clock.now + timedelta(seconds=3540)

    def test_missing_credential(self, mock_transport):
        tm = TokenManager(mock_transport, credential_source=StaticCredentialSource(None), settings=Settings())
        with pytest.raises(AuthError) as exc_info:
            tm.authenticate()
        assert exc_info.value.reason == AuthError.MISSING_CREDENTIALS

    def test_missing_parent_org_id(self, manager, fake_api):
        fake_api.reset("GET", "me").on("GET", "me", json={"data": {"orgName": "x"}})
        with pytest.raises(AuthError) as exc_info:
            manager().authenticate()
        assert exc_info.value.reason == AuthError.MISSING_ORG_ID

    def test_missing_access_token(self, manager, fake_api):
        fake_api.reset("POST", TOKEN_URL).on("POST", TOKEN_URL, json={"token_type": "bearer"})
        with pytest.raises(AuthError) as exc_info:
            manager().authenticate()
        assert exc_info.value.reason == AuthError.TOKEN_EXCHANGE

    def test_rejected_exchange_is_api_error(self, manager, fake_api):
        fake_api.reset("POST", TOKEN_URL).on(
            "POST", TOKEN_URL, status=401, json={"error": "invalid_client"}
        )
        with pytest.raises(APIError) as exc_info:
            manager().authenticate()
        assert exc_info.value.status_code == 401


class TestTokenCache:
    """Cache hits, expiry and credential changes."""

    def test_cache_hit_makes_no_network_calls(self, manager, fake_api):
        tm = manager()
        first = tm.authenticate()
        calls_after_first = len(fake_api.requests)

        second = tm.authenticate()

        assert second is first
        assert len(fake_api.requests) == calls_after_first

    def test_expiry_forces_refresh(self, manager, fake_api, wall_clock):
        tm = manager()
        tm.authenticate()
        wall_clock.now += timedelta(seconds=3541)
        tm.authenticate()
        assert len(fake_api.calls("POST", TOKEN_URL)) == 2

    def test_credential_change_forces_refresh(self, mock_transport, fake_api, credential, wall_clock):
        current = {"cred": credential}
        tm = TokenManager(
            mock_transport,
            credential_source=lambda: current["cred"],
            settings=Settings(),
            now=wall_clock,
        )
        first = tm.authenticate()
        current["cred"] = credential.model_copy(update={"key_id": "rotated-key"})
        second = tm.authenticate()

        assert second is not first
        assert second.credential_hash != first.credential_hash
        assert len(fake_api.calls("POST", TOKEN_URL)) == 2

    def test_invalidate(self, manager, fake_api):
        tm = manager()
        tm.authenticate()
        tm.invalidate()
        assert tm.cached is None
        tm.authenticate()
        assert len(fake_api.calls("POST", TOKEN_URL)) == 2

    def test_repr_hides_token(self, manager):
        context = manager().authenticate()
        assert "test-access-token" not in repr(context)


def test_network_failure_is_not_cached(mock_transport, credential, fake_api):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_api.reset("POST", TOKEN_URL).on("POST", TOKEN_URL, handler=boom)
    tm = TokenManager(mock_transport, credential_source=StaticCredentialSource(credential), settings=Settings())
    with pytest.raises(APIError):
        tm.authenticate()
    assert tm.cached is None
