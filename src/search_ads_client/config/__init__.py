"""Configuration for the Search Ads client."""

from .settings import (
    Credential,
    CredentialSource,
    EnvCredentialSource,
    Settings,
    StaticCredentialSource,
    load_credential,
    settings,
)

__all__ = [
    "Credential",
    "CredentialSource",
    "EnvCredentialSource",
    "Settings",
    "StaticCredentialSource",
    "load_credential",
    "settings",
]
