"""Search Ads API client package.

This package provides a resilient, synchronous client for the Apple
Search Ads campaign management API. It includes bearer token
management derived from a signing credential, defensive response
normalization, route and payload fallbacks for inconsistent endpoints,
and the custom report pipeline behind share-of-voice analysis.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"

from .client import SearchAdsClient
from .config import Credential, Settings, StaticCredentialSource
from .exceptions import (
    APIError,
    AuthError,
    CancelledError,
    ExhaustionError,
    SearchAdsError,
    TimeoutError,
    ValidationError,
)
from .reports import ReportPipeline, SOVReportPipeline, SOVResult
from .utils.cancellation import CancelToken

__all__ = [
    "APIError",
    "AuthError",
    "CancelToken",
    "CancelledError",
    "Credential",
    "ExhaustionError",
    "ReportPipeline",
    "SOVReportPipeline",
    "SOVResult",
    "SearchAdsClient",
    "SearchAdsError",
    "Settings",
    "StaticCredentialSource",
    "TimeoutError",
    "ValidationError",
    "__version__",
]
