"""Structured exception classes for the Search Ads client."""

import json
from typing import Any, Dict, List, Optional


class SearchAdsError(Exception):
    """Base exception for all Search Ads client errors.

    This exception serves as the parent class for every error the
    client raises, providing a consistent interface for error handling
    across token management, transport and report processing.

    :param message: Message safe to show and log
    :param code: Stable code; defaults to the class name
    :param details: Structured context for callers and logs
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Store the message, stable code and structured details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as a plain dictionary.

        :return: ``error``, ``message`` and ``details`` keys
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Serialize :meth:`to_dict` as JSON.

        :return: JSON text
        """
        return json.dumps(self.to_dict())


class AuthError(SearchAdsError):
    """Raised when a bearer token cannot be derived.

    The ``reason`` attribute tells callers which stage failed so they
    can distinguish a missing credential from a rejected key.

    :param message: Description of the authentication failure
    :param reason: One of the ``AuthError`` reason constants
    """

    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    MISSING_ORG_ID = "MISSING_ORG_ID"
    INVALID_KEY = "INVALID_KEY"
    TOKEN_EXCHANGE = "TOKEN_EXCHANGE"

    def __init__(self, message: str, reason: str = MISSING_CREDENTIALS):
        """Initialize authentication error with message and reason."""
        super().__init__(
            message=message, code="AUTH_ERROR", details={"reason": reason}
        )
        self.reason = reason


class APIError(SearchAdsError):
    """Raised for upstream HTTP failures.

    The message is sanitized before it reaches this constructor; it must
    never carry bearer tokens or secret query parameters.

    :param message: Description of the API error
    :param status_code: HTTP status code, or None for transport failures
    :param retryable: Whether the failure may succeed on a later attempt
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        """Initialize API error with message and response status."""
        details: Dict[str, Any] = {}
        if status_code:
            details["status_code"] = status_code
        if retryable:
            details["retryable"] = True
        super().__init__(message=message, code="API_ERROR", details=details)
        self.status_code = status_code
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status_code:
            return f"Search Ads API error ({self.status_code}): {self.message}"
        return self.message


class TimeoutError(APIError):
    """Raised when a deadline passes before an operation finishes.

    :param message: Description of the timeout
    :param operation: Operation that ran out of time
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize timeout error with message and operation."""
        super().__init__(message=message)
        if operation:
            self.details["operation"] = operation
        self.code = "TIMEOUT_ERROR"
        self.operation = operation


class CancelledError(SearchAdsError):
    """Raised when the caller cancels an in-flight operation."""

    def __init__(self, message: str = "Operation cancelled", operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message=message, code="CANCELLED", details=details)
        self.operation = operation


class ValidationError(SearchAdsError):
    """Raised when input validation fails.

    :param message: What was wrong with the input
    :param field: Name of the rejected input
    :param value: Optional value that failed validation
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        """Initialize validation error with message and field details."""
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)
        self.field = field
        self.value = value


class ExhaustionError(SearchAdsError):
    """Raised when every fallback route and payload variant was rejected.

    :param message: Description of what could not be done
    :param attempts: Labels of the attempts that were made, in order
    :param last_error: The final error observed before giving up
    """

    def __init__(
        self,
        message: str,
        attempts: Optional[List[str]] = None,
        last_error: Optional[APIError] = None,
    ):
        """Initialize exhaustion error with the attempt trail."""
        details: Dict[str, Any] = {"attempts": list(attempts or [])}
        if last_error is not None:
            details["last_status_code"] = last_error.status_code
        super().__init__(message=message, code="EXHAUSTION_ERROR", details=details)
        self.attempts = list(attempts or [])
        self.last_error = last_error

    @property
    def status_code(self) -> Optional[int]:
        """Status code of the last rejected attempt, if any."""
        return self.last_error.status_code if self.last_error else None
