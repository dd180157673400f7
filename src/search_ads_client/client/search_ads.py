"""Search Ads API client facade.

Composes the resource mixins over :class:`BaseClient`, which owns the
token manager, transport, paginated fetcher and multi-path invoker.
Every list operation returns its records sorted by identity (custom
reports newest first, metrics by date).

Example::

    with SearchAdsClient() as client:
        for campaign in client.fetch_campaigns():
            print(campaign.id, campaign.name, campaign.status)
"""

from .ads import AdsMixin
from .base import BaseClient
from .campaigns import CampaignsMixin
from .custom_reports import CustomReportsMixin
from .discovery import DiscoveryMixin
from .keywords import KeywordsMixin
from .metrics import MetricsMixin


class SearchAdsClient(
    CampaignsMixin,
    KeywordsMixin,
    AdsMixin,
    DiscoveryMixin,
    MetricsMixin,
    CustomReportsMixin,
    BaseClient,
):
    """Synchronous client for the Search Ads campaign management API.

    Instances are safe to share between threads; the token cache is the
    only shared mutable state and is guarded by the token manager.
    """
