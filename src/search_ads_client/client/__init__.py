"""Search Ads API client.

:var __all__: List of public exports from this module
:type __all__: List[str]
"""

from .base import BaseClient
from .fallback import Attempt, MultiPathInvoker
from .pagination import DEFAULT_PAGE_SIZE, PaginatedFetcher
from .search_ads import SearchAdsClient

__all__ = [
    "Attempt",
    "BaseClient",
    "DEFAULT_PAGE_SIZE",
    "MultiPathInvoker",
    "PaginatedFetcher",
    "SearchAdsClient",
]
