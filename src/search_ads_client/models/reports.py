"""Pydantic models for reporting.

Covers daily metric rows from campaign-level reports, custom report
jobs, and the normalized share-of-voice rows and decision entries
derived from a downloaded report CSV.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .entities import Snapshot


class DailyMetrics(Snapshot):
    """Metrics for one entity on one day.

    :param date: ``YYYY-MM-DD``
    :type date: str
    :param installs: None when the report omitted every install field
    :type installs: Optional[int]
    :param cpt: Cost per tap, 0 when there were no taps
    :type cpt: float
    """

    date: str
    campaign_id: int
    ad_group_id: int
    impressions: int = 0
    taps: int = 0
    installs: Optional[int] = None
    spend: float = 0.0
    cpt: float = 0.0
    currency_code: Optional[str] = None

    @property
    def ttr(self) -> float:
        """Tap-through rate."""
        return self.taps / self.impressions if self.impressions else 0.0

    @property
    def conversion_rate(self) -> float:
        return (self.installs or 0) / self.taps if self.taps else 0.0


class AdGroupDailyMetrics(DailyMetrics):
    ad_group_name: str = ""


class KeywordDailyMetrics(DailyMetrics):
    keyword_id: int
    keyword_text: str
    match_type: str = "BROAD"
    status: str = "ENABLED"


class SearchTermDailyMetrics(DailyMetrics):
    search_term_text: str


class ReportState(str, Enum):
    """Known custom report states."""

    QUEUED = "QUEUED"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @classmethod
    def is_terminal(cls, state: str) -> bool:
        return (state or "").upper() in (cls.COMPLETED.value, cls.FAILED.value)


class CustomReport(Snapshot):
    """Asynchronous custom report job.

    ``state`` is kept as the upper-cased string the API returned so
    states this client does not know about survive a round trip.
    """

    id: int
    name: str
    granularity: str = "DAILY"
    state: str = ""
    download_uri: Optional[str] = None
    dimensions: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    date_range: Optional[str] = None
    creation_time: Optional[str] = None
    modification_time: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return ReportState.is_terminal(self.state)

    @property
    def is_completed(self) -> bool:
        return self.state == ReportState.COMPLETED.value


class SOVRow(Snapshot):
    """One normalized row of a share-of-voice (impression share) report."""

    week: str = ""
    app_name: str = ""
    app_id: str = ""
    country_or_region: str = ""
    keyword: str = ""
    popularity: float = 0.0
    impression_share: float = 0.0
    rank: float = 0.0
    impressions: int = 0
    taps: int = 0
    installs: int = 0
    spend: float = 0.0


class DecisionBucket(str, Enum):
    """Why a keyword underperforms."""

    AUCTION_LIMITED = "auction-limited"
    CONVERSION_LIMITED = "conversion-limited"
    VOLUME_LIMITED = "volume-limited"


class DecisionEntry(Snapshot):
    """Classification of one SOV row with its recommended action."""

    keyword: str
    popularity: float
    share: float
    rank: float
    bucket: DecisionBucket
    action: str
    reason: str
