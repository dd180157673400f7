"""Daily performance metrics from the campaign reporting endpoints.

Report rows carry their dimension values in ``metadata`` and their
numbers either per day under ``granularity`` or as one ``total``. Each
row is expanded into one record per granularity entry when present,
otherwise into a single record dated from the metadata.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..models import AdGroupDailyMetrics, KeywordDailyMetrics, SearchTermDailyMetrics
from ..utils.cancellation import CancelToken
from ..utils.coerce import (
    JSONObject,
    extract_report_rows,
    first_id,
    first_present,
    first_string,
    float_from_any,
    int_from_any,
    list_from_any,
    map_from_any,
    normalize_date_key,
    upper,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

REPORT_ROW_LIMIT = 1000


def date_only(value: DateLike) -> str:
    """Format a date, datetime or date string as ``YYYY-MM-DD`` (UTC for aware datetimes)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return normalize_date_key(str(value))


def parse_metrics(source: JSONObject) -> Dict[str, Any]:
    """Extract the metric block shared by every report row.

    Installs come from the first *present* field among ``totalInstalls``,
    ``tapInstalls`` and ``installs``; when none is present installs are
    None rather than zero. CPT is spend per tap, 0 without taps.

    :param source: A granularity entry or a row total
    :type source: JSONObject
    :return: Keyword arguments for a :class:`DailyMetrics` model
    :rtype: Dict[str, Any]
    """
    impressions = int_from_any(source.get("impressions"))
    taps = int_from_any(source.get("taps"))
    raw_installs, found = first_present(source, "totalInstalls", "tapInstalls", "installs")
    local_spend = map_from_any(source.get("localSpend"))
    spend = float_from_any(local_spend.get("amount"))
    return {
        "impressions": impressions,
        "taps": taps,
        "installs": int_from_any(raw_installs) if found else None,
        "spend": spend,
        "cpt": spend / taps if taps > 0 else 0.0,
        "currency_code": first_string(local_spend, "currency", "currencyCode") or None,
    }


def expand_row(row: JSONObject, start: str) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """Yield ``(date, metrics)`` pairs for one report row."""
    granular = list_from_any(row.get("granularity"))
    if granular:
        for entry_raw in granular:
            entry = map_from_any(entry_raw)
            yield normalize_date_key(first_string(entry, "date") or start), parse_metrics(entry)
        return
    meta = map_from_any(row.get("metadata"))
    raw_date = first_string(meta, "date") or first_string(row, "date") or start
    yield normalize_date_key(raw_date), parse_metrics(map_from_any(row.get("total")))


def report_body(
    start: str,
    end: str,
    conditions: Optional[List[JSONObject]] = None,
    time_zone: str = "UTC",
    include_empty: bool = True,
) -> JSONObject:
    selector: JSONObject = {
        "orderBy": [{"field": "impressions", "sortOrder": "DESCENDING"}],
        "pagination": {"offset": 0, "limit": REPORT_ROW_LIMIT},
    }
    if conditions:
        selector["conditions"] = conditions
    return {
        "startTime": start,
        "endTime": end,
        "granularity": "DAILY",
        "selector": selector,
        "timeZone": time_zone,
        "returnRecordsWithNoMetrics": include_empty,
        "returnRowTotals": include_empty,
        "returnGrandTotals": False,
    }


class MetricsMixin:
    """Daily ad group, keyword and search term metrics."""

    def fetch_ad_group_daily_metrics(
        self,
        start: DateLike,
        end: DateLike,
        campaign_id: int,
        ad_group_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> List[AdGroupDailyMetrics]:
        """Fetch daily metrics for one ad group.

        Rows whose metadata names a different ad group or campaign are
        skipped.

        :param start: First day of the range
        :type start: DateLike
        :param end: Last day of the range
        :type end: DateLike
        :param campaign_id: Campaign id
        :type campaign_id: int
        :param ad_group_id: Ad group id
        :type ad_group_id: int
        :return: Metrics sorted by date
        :rtype: List[AdGroupDailyMetrics]
        """
        start_key, end_key = date_only(start), date_only(end)
        body = report_body(
            start_key,
            end_key,
            conditions=[{"field": "adGroupId", "operator": "EQUALS", "values": [str(ad_group_id)]}],
        )
        payload = self._post(f"reports/campaigns/{campaign_id}/adgroups", body, cancel=cancel)

        results = []
        for row_raw in extract_report_rows(payload):
            row = map_from_any(row_raw)
            meta = map_from_any(row.get("metadata"))
            row_ad_group = int_from_any(meta.get("adGroupId"))
            row_campaign = int_from_any(meta.get("campaignId"))
            if row_ad_group not in (0, ad_group_id) or row_campaign not in (0, campaign_id):
                continue
            name = first_string(meta, "adGroupName")
            for day, metrics in expand_row(row, start_key):
                results.append(
                    AdGroupDailyMetrics(
                        date=day,
                        campaign_id=campaign_id,
                        ad_group_id=ad_group_id,
                        ad_group_name=name,
                        **metrics,
                    )
                )
        return sorted(results, key=lambda m: m.date)

    def fetch_keyword_daily_metrics(
        self,
        start: DateLike,
        end: DateLike,
        campaign_id: int,
        ad_group_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> List[KeywordDailyMetrics]:
        """Fetch daily metrics per targeting keyword of an ad group."""
        start_key, end_key = date_only(start), date_only(end)
        payload = self._post(
            f"reports/campaigns/{campaign_id}/adgroups/{ad_group_id}/keywords",
            report_body(start_key, end_key),
            cancel=cancel,
        )

        results = []
        for row_raw in extract_report_rows(payload):
            row = map_from_any(row_raw)
            meta = map_from_any(row.get("metadata"))
            keyword_id = first_id(meta, "keywordId", "targetingKeywordId", "id")
            if keyword_id <= 0:
                continue
            identity = {
                "keyword_id": keyword_id,
                "keyword_text": first_string(meta, "keywordText", "text", "keyword")
                or f"Keyword {keyword_id}",
                "match_type": upper(meta.get("matchType")) or "BROAD",
                "status": upper(meta.get("status")) or "ENABLED",
            }
            for day, metrics in expand_row(row, start_key):
                results.append(
                    KeywordDailyMetrics(
                        date=day,
                        campaign_id=campaign_id,
                        ad_group_id=ad_group_id,
                        **identity,
                        **metrics,
                    )
                )
        return sorted(results, key=lambda m: m.date)

    def fetch_search_term_daily_metrics(
        self,
        start: DateLike,
        end: DateLike,
        campaign_id: int,
        ad_group_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> List[SearchTermDailyMetrics]:
        """Fetch daily metrics per search term.

        Uses the organization time zone and omits rows without metrics.
        """
        start_key, end_key = date_only(start), date_only(end)
        payload = self._post(
            f"reports/campaigns/{campaign_id}/adgroups/{ad_group_id}/searchterms",
            report_body(start_key, end_key, time_zone="ORTZ", include_empty=False),
            cancel=cancel,
        )

        results = []
        for row_raw in extract_report_rows(payload):
            row = map_from_any(row_raw)
            meta = map_from_any(row.get("metadata"))
            term = first_string(meta, "searchTermText", "searchTerm", "term")
            if not term:
                continue
            for day, metrics in expand_row(row, start_key):
                results.append(
                    SearchTermDailyMetrics(
                        date=day,
                        campaign_id=campaign_id,
                        ad_group_id=ad_group_id,
                        search_term_text=term,
                        **metrics,
                    )
                )
        return sorted(results, key=lambda m: m.date)
