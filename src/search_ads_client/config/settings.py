"""Configuration settings for the Search Ads client.

This module defines the configuration settings for the client, including
the signing credential, API endpoints and transport tuning. Settings are
loaded from environment variables and .env files.
"""

import hashlib
import json
from typing import Callable, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import AuthError

DEFAULT_API_BASE_URL = "https://api.searchads.apple.com/api/v5"
DEFAULT_TOKEN_URL = "https://appleid.apple.com/auth/oauth2/token"
DEFAULT_AUDIENCE = "https://appleid.apple.com"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Credentials may be supplied either as a single JSON blob in
    ``OE_ADS_CREDENTIALS_JSON`` or as individual ``OE_ADS_*`` variables;
    the JSON blob wins when both are present.

    :param credentials_json: JSON credential blob
    :type credentials_json: Optional[str]
    :param client_id: OAuth client identifier
    :type client_id: Optional[str]
    :param team_id: Team identifier used as the assertion issuer
    :type team_id: Optional[str]
    :param key_id: Identifier of the signing key
    :type key_id: Optional[str]
    :param private_key: PEM or one-line base64 EC private key
    :type private_key: Optional[str]
    :param org_id: Organization id as supplied; the bearer context always
        takes its org from the ``/me`` lookup
    :type org_id: Optional[str]
    :param api_base_url: Versioned base URL for REST resources
    :type api_base_url: str
    :param token_url: OAuth token endpoint
    :type token_url: str
    :param timeout_seconds: Per-request network timeout
    :type timeout_seconds: float
    :param trusted_host_root: Root domain report downloads must live under
    :type trusted_host_root: str
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Credential
    credentials_json: Optional[str] = Field(
        None,
        alias="OE_ADS_CREDENTIALS_JSON",
        description="JSON blob with clientId, teamId, keyId, privateKey, orgId",
    )
    client_id: Optional[str] = Field(None, alias="OE_ADS_CLIENT_ID")
    team_id: Optional[str] = Field(None, alias="OE_ADS_TEAM_ID")
    key_id: Optional[str] = Field(None, alias="OE_ADS_KEY_ID")
    private_key: Optional[str] = Field(None, alias="OE_ADS_PRIVATE_KEY")
    org_id: Optional[str] = Field(None, alias="OE_ADS_ORG_ID")

    # API Configuration
    api_base_url: str = Field(
        DEFAULT_API_BASE_URL,
        alias="OE_ADS_API_BASE_URL",
        description="Search Ads API base URL",
    )
    token_url: str = Field(
        DEFAULT_TOKEN_URL,
        alias="OE_ADS_TOKEN_URL",
        description="OAuth token endpoint",
    )
    audience: str = Field(DEFAULT_AUDIENCE, alias="OE_ADS_AUDIENCE")
    scope: str = Field("searchadsorg", alias="OE_ADS_SCOPE")
    timeout_seconds: float = Field(
        45.0,
        validation_alias=AliasChoices("OE_ADS_TIMEOUT_SECONDS", "OE_ADS_TIMEOUT"),
        description="HTTP timeout in seconds",
    )
    trusted_host_root: str = Field(
        "apple.com",
        alias="OE_ADS_TRUSTED_HOST_ROOT",
        description="Report downloads must be served from this domain or a subdomain",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", alias="LOG_LEVEL", description="Logging level"
    )

    @field_validator("api_base_url", "token_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so paths can be joined with a single ``/``.

        :param v: Configured URL
        :type v: str
        :return: URL without trailing slash
        :rtype: str
        """
        return v.strip().rstrip("/")

    @field_validator("trusted_host_root")
    @classmethod
    def normalize_host_root(cls, v: str) -> str:
        return v.strip().lower().lstrip(".")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class Credential(BaseModel):
    """Long-lived signing credential.

    Immutable once loaded. Field names accept both the snake_case
    attribute names and the camelCase keys used in the JSON blob.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    client_id: str = Field("", alias="clientId")
    team_id: str = Field("", alias="teamId")
    key_id: str = Field("", alias="keyId")
    private_key: str = Field("", alias="privateKey")
    org_id: Optional[str] = Field(None, alias="orgId")

    @field_validator("org_id", mode="before")
    @classmethod
    def stringify_org_id(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    def is_complete(self) -> bool:
        """Check that every required field carries a non-blank value.

        :return: True when client, team, key id and key are all present
        :rtype: bool
        """
        return all(
            value and value.strip()
            for value in (self.client_id, self.team_id, self.key_id, self.private_key)
        )

    def credential_hash(self) -> str:
        """Identity of the credential, used to invalidate cached tokens.

        :return: Hex SHA-256 of the four required fields joined by ``|``
        :rtype: str
        """
        joined = "|".join(
            [self.client_id, self.team_id, self.key_id, self.private_key]
        )
        return hashlib.sha256(joined.encode("utf-8")).hexdigest()

    def __repr__(self) -> str:
        return (
            f"Credential(client_id={self.client_id!r}, team_id={self.team_id!r}, "
            f"key_id={self.key_id!r}, private_key=<REDACTED>, org_id={self.org_id!r})"
        )

    __str__ = __repr__


CredentialSource = Callable[[], Optional[Credential]]
"""Zero-argument callable returning the current credential, or None."""


def load_credential(config: Optional[Settings] = None) -> Optional[Credential]:
    """Resolve the credential from settings.

    :param config: Settings to read; a fresh ``Settings()`` when omitted
    :type config: Optional[Settings]
    :return: The credential, or None when no credential variables are set
    :rtype: Optional[Credential]
    :raises AuthError: If the JSON blob is malformed or incomplete
    """
    config = config or Settings()
    raw = (config.credentials_json or "").strip()
    if raw:
        try:
            data = json.loads(raw)
            credential = Credential.model_validate(data)
        except (ValueError, PydanticValidationError) as e:
            raise AuthError(
                f"invalid OE_ADS_CREDENTIALS_JSON JSON: {type(e).__name__}",
                reason=AuthError.MISSING_CREDENTIALS,
            ) from e
        if not credential.is_complete():
            raise AuthError(
                "incomplete credentials in OE_ADS_CREDENTIALS_JSON",
                reason=AuthError.MISSING_CREDENTIALS,
            )
        return credential

    values = {
        "client_id": (config.client_id or "").strip(),
        "team_id": (config.team_id or "").strip(),
        "key_id": (config.key_id or "").strip(),
        "private_key": (config.private_key or "").strip(),
    }
    if not all(values.values()):
        return None
    org_id = (config.org_id or "").strip() or None
    return Credential(org_id=org_id, **values)


class EnvCredentialSource:
    """Credential source that re-reads the environment on every call.

    Re-reading lets a rotated credential take effect without restarting
    the process; the token cache notices via the credential hash.
    """

    def __call__(self) -> Optional[Credential]:
        return load_credential(Settings())


class StaticCredentialSource:
    """Credential source wrapping a fixed value."""

    def __init__(self, credential: Optional[Credential]):
        self.credential = credential

    def __call__(self) -> Optional[Credential]:
        return self.credential


settings = Settings()
"""Global settings instance.

Created once at import; clients accept an explicit ``Settings`` when a
different configuration is needed.
"""
