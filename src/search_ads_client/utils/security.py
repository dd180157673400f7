"""Security utilities for redaction, URI validation, and secure logging.

This module consolidates the security-related functionality of the client:
- Redaction of bearer tokens, JWTs and secret query parameters
- Validation of report download URIs against the trusted host root
- Secure logging setup with automatic redaction
"""

import json
import logging
import re
import sys
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from ..exceptions import ValidationError

REDACTED = "[REDACTED]"

# Patterns for sensitive data detection, applied in order
SENSITIVE_PATTERNS = {
    "jwt_token": re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    "bearer_token": re.compile(r"(\bbearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    "basic_auth": re.compile(r"(\bbasic\s+)[A-Za-z0-9+/=]+", re.IGNORECASE),
    "secret_param": re.compile(
        r"(\b(?:access_token|refresh_token|client_secret|api_key|token|secret|"
        r"password|key|sig|signature)=)[^&\s\"']+",
        re.IGNORECASE,
    ),
    "secret_field": re.compile(
        r"(\"(?:access_token|refresh_token|client_secret|private_key|privateKey)\"\s*:\s*\")"
        r"[^\"]*",
        re.IGNORECASE,
    ),
}

# =============================================================================
# String and Log Sanitization
# =============================================================================


def sanitize_string(value: str) -> str:
    """Redact secrets embedded in a string.

    Bearer tokens, JWTs and secret-looking query parameters are replaced
    by ``[REDACTED]`` while the surrounding text is preserved, so error
    messages stay readable.

    :param value: String to sanitize
    :type value: str
    :return: Sanitized string with sensitive data redacted
    :rtype: str
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():
        if pattern_name == "jwt_token":
            value = pattern.sub(REDACTED, value)
        else:
            value = pattern.sub(lambda m: m.group(1) + REDACTED, value)
    return value


def sanitize_error_body(body: bytes) -> str:
    """Turn an upstream error body into a caller-safe message.

    :param body: Raw response body
    :type body: bytes
    :return: Sanitized message, ``"Unknown error"`` for an empty body
    :rtype: str
    """
    message = body.decode("utf-8", errors="replace").strip() if body else ""
    if not message:
        return "Unknown error"
    return sanitize_string(message)


def safe_display_url(url: str) -> str:
    """Strip query and fragment from a URL for display.

    Values that do not parse as an absolute URL are returned unchanged.

    :param url: URL to display
    :type url: str
    :return: Scheme, host and path only
    :rtype: str
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


# =============================================================================
# Download URI Validation
# =============================================================================


def _normalize_raw_uri(raw: str) -> str:
    trimmed = (raw or "").strip()
    if not trimmed:
        return ""
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] == '"':
        try:
            decoded = json.loads(trimmed)
        except ValueError:
            decoded = None
        if isinstance(decoded, str):
            trimmed = decoded.strip()
    trimmed = trimmed.strip("\"'")
    trimmed = trimmed.replace("\\/", "/")
    return trimmed.strip()


def is_trusted_host(host: str, trusted_root: str, api_host: Optional[str] = None) -> bool:
    """Check a hostname against the trusted root domain.

    :param host: Lower-cased hostname to check
    :type host: str
    :param trusted_root: Root domain, e.g. ``apple.com``
    :type trusted_root: str
    :param api_host: Optional API host that is always trusted
    :type api_host: Optional[str]
    :return: True for the root itself, any subdomain of it, or the API host
    :rtype: bool
    """
    host = host.lower().rstrip(".")
    root = trusted_root.lower().strip().lstrip(".")
    if api_host and host == api_host.lower():
        return True
    if not root:
        return False
    return host == root or host.endswith("." + root)


def validate_download_uri(
    raw: str,
    api_base_url: str,
    trusted_root: str,
) -> str:
    """Validate and canonicalize a report download URI.

    Accepts absolute URIs, bare ``host/path`` values and root- or
    scheme-relative URIs (resolved against the API host). ``http`` is
    coerced to ``https``; any other scheme is rejected, as is any host
    outside the trusted root. No network call is made.

    :param raw: URI as returned by the report resource
    :type raw: str
    :param api_base_url: API base URL used to resolve relative URIs
    :type api_base_url: str
    :param trusted_root: Root domain the host must belong to
    :type trusted_root: str
    :return: Canonical https URL safe to fetch
    :rtype: str
    :raises ValidationError: If the URI is empty, malformed, not https
        or hosted outside the trusted root
    """
    value = _normalize_raw_uri(raw)
    if not value:
        raise ValidationError("custom report download URI is empty", field="downloadUri")

    try:
        parts = urlsplit(value)
        if not parts.scheme and not value.startswith("/"):
            # Bare host/path without a scheme
            parts = urlsplit("https://" + value)
        if not parts.scheme:
            base = urlsplit(api_base_url)
            if not base.scheme or not base.netloc:
                raise ValidationError(
                    "custom report download URI is invalid", field="downloadUri"
                )
            root = urlunsplit((base.scheme, base.netloc, "/", "", ""))
            parts = urlsplit(urljoin(root, value))
        host = (parts.hostname or "").strip().lower()
    except ValueError as e:
        raise ValidationError(
            "custom report download URI is invalid", field="downloadUri"
        ) from e

    scheme = parts.scheme.lower()
    if scheme == "http":
        scheme = "https"
    if scheme != "https":
        raise ValidationError(
            "custom report download URI must use https", field="downloadUri"
        )
    if not host:
        raise ValidationError(
            "custom report download URI is missing host", field="downloadUri"
        )
    if parts.username or parts.password:
        raise ValidationError(
            "custom report download URI must not carry credentials",
            field="downloadUri",
        )
    api_host = (urlsplit(api_base_url).hostname or "").lower() or None
    if not is_trusted_host(host, trusted_root, api_host):
        raise ValidationError(
            "custom report download URI host is not trusted",
            field="downloadUri",
            value=host,
        )
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


# =============================================================================
# Secure Logging Setup
# =============================================================================


class SanitizingFormatter(logging.Formatter):
    """Formatter that automatically redacts sensitive data.

    The message is rendered with its arguments first and then sanitized,
    so secrets passed as ``%s`` arguments are caught as well.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with automatic sanitization.

        :param record: Log record to format
        :type record: logging.LogRecord
        :return: Sanitized log message
        :rtype: str
        """
        if record.args:
            try:
                record.msg = sanitize_string(record.msg % record.args)
                record.args = None
            except (TypeError, ValueError):
                record.msg = sanitize_string(str(record.msg))
                record.args = tuple(
                    sanitize_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
        else:
            record.msg = sanitize_string(str(record.msg))
        return super().format(record)


# Global flag to track if logging has been set up
_LOGGING_CONFIGURED = False


def setup_secure_logging(level: str = "INFO") -> None:
    """Set up logging with automatic sanitization.

    Configures the root logger once; later calls are no-ops.

    :param level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :type level: str
    :return: None
    :rtype: None
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    formatter = SanitizingFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True
