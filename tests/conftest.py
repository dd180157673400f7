import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from search_ads_client.client import SearchAdsClient  # noqa: E402
from search_ads_client.config import Credential, Settings, StaticCredentialSource  # noqa: E402
from search_ads_client.utils.http import Transport  # noqa: E402

API_BASE = "https://api.searchads.apple.com/api/v5"
TOKEN_URL = "https://appleid.apple.com/auth/oauth2/token"
FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as testing authentication"
    )
    config.addinivalue_line(
        "markers", "reports: mark test as testing the report pipeline"
    )


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set a predictable environment for tests.

    Credential variables are cleared so nothing leaks in from the
    developer's shell; tests that need a credential use the
    ``credential`` fixture or set the variables themselves.
    """
    for name in (
        "OE_ADS_CREDENTIALS_JSON",
        "OE_ADS_CLIENT_ID",
        "OE_ADS_TEAM_ID",
        "OE_ADS_KEY_ID",
        "OE_ADS_PRIVATE_KEY",
        "OE_ADS_ORG_ID",
        "OE_ADS_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("OE_ADS_API_BASE_URL", API_BASE)
    monkeypatch.setenv("OE_ADS_TOKEN_URL", TOKEN_URL)
    monkeypatch.setenv("OE_ADS_TRUSTED_HOST_ROOT", "apple.com")
    monkeypatch.setenv("OE_ADS_TIMEOUT_SECONDS", "45")

    # Logging
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    yield


class FakeClock:
    """Manual clock: ``sleep`` advances ``monotonic`` and is recorded."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApi:
    """Routes ``httpx.MockTransport`` requests to canned responses.

    Responses registered for a route are served in order; the last one
    repeats. Unregistered routes answer 404. The token endpoint and
    ``/me`` are pre-registered.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.on("POST", TOKEN_URL, json={"access_token": "test-access-token", "expires_in": 3600})
        self.on("GET", "me", json={"data": {"parentOrgId": 4242}})

    @staticmethod
    def url(path: str) -> str:
        if path.startswith("https://"):
            return path
        return f"{API_BASE}/{path.lstrip('/')}"

    def on(self, method, path, status=200, json=None, content=None, headers=None, handler=None):
        """Queue a response for ``method path``; returns self for chaining."""
        self.routes.setdefault((method, self.url(path)), []).append(
            (status, json, content, headers, handler)
        )
        return self

    def reset(self, method, path):
        self.routes.pop((method, self.url(path)), None)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, f"{request.url.scheme}://{request.url.host}{request.url.path}")
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"error": {"message": "not found"}})
        status, payload, content, headers, handler = queue.pop(0) if len(queue) > 1 else queue[0]
        if handler is not None:
            return handler(request)
        if content is not None:
            return httpx.Response(status, content=content, headers=headers)
        if payload is None:
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, json=payload, headers=headers)

    def calls(self, method=None, path=None):
        """Recorded requests, optionally filtered by method and path."""
        out = []
        for request in self.requests:
            if method and request.method != method:
                continue
            if path and f"{request.url.scheme}://{request.url.host}{request.url.path}" != self.url(path):
                continue
            out.append(request)
        return out

    def api_calls(self):
        """Recorded requests other than the token exchange and ``/me``."""
        return [
            r
            for r in self.requests
            if str(r.url).split("?")[0] not in (TOKEN_URL, self.url("me"))
        ]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture(scope="session")
def private_key_pem():
    """A freshly generated P-256 key in PKCS8 PEM form."""
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def credential(private_key_pem):
    return Credential(
        client_id="SEARCHADS.test-client",
        team_id="SEARCHADS.test-team",
        key_id="test-key-id",
        private_key=private_key_pem,
    )


@pytest.fixture
def mock_transport(fake_api):
    transport = Transport(transport=httpx.MockTransport(fake_api.handler))
    yield transport
    transport.close()


@pytest.fixture
def client(fake_api, credential, fake_clock, mock_transport):
    """Client wired to ``fake_api`` with a fixed wall clock and fake monotonic clock."""
    return SearchAdsClient(
        settings=Settings(),
        credential_source=StaticCredentialSource(credential),
        transport=mock_transport,
        clock=fake_clock,
        now=lambda: FIXED_NOW,
    )
