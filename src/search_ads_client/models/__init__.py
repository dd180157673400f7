"""Search Ads client models package.

This package contains the Pydantic models returned by the client,
organized into entity snapshots and reporting models.
"""

from .entities import (
    Ad,
    AdGroup,
    AdRejection,
    App,
    AppAsset,
    AppDetail,
    AppEligibility,
    Campaign,
    CountryOrRegion,
    Creative,
    DeviceSizeMapping,
    GeoEntity,
    Keyword,
    Money,
    NegativeKeyword,
    ProductPage,
    ProductPageLocale,
    Snapshot,
)
from .reports import (
    AdGroupDailyMetrics,
    CustomReport,
    DailyMetrics,
    DecisionBucket,
    DecisionEntry,
    KeywordDailyMetrics,
    ReportState,
    SearchTermDailyMetrics,
    SOVRow,
)

__all__ = [
    # Entities
    "Ad",
    "AdGroup",
    "AdRejection",
    "App",
    "AppAsset",
    "AppDetail",
    "AppEligibility",
    "Campaign",
    "CountryOrRegion",
    "Creative",
    "DeviceSizeMapping",
    "GeoEntity",
    "Keyword",
    "Money",
    "NegativeKeyword",
    "ProductPage",
    "ProductPageLocale",
    "Snapshot",
    # Reports
    "AdGroupDailyMetrics",
    "CustomReport",
    "DailyMetrics",
    "DecisionBucket",
    "DecisionEntry",
    "KeywordDailyMetrics",
    "ReportState",
    "SearchTermDailyMetrics",
    "SOVRow",
]
