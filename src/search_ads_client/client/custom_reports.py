"""Custom (impression share) report jobs and their downloads."""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence

from ..models import CustomReport
from ..utils.cancellation import CancelToken
from ..utils.coerce import JSONObject, extract_custom_report_items, non_blank, non_blank_upper
from ..utils.http.transport import raise_for_status
from ..utils.security import safe_display_url, validate_download_uri
from .metrics import date_only
from .normalize import parse_custom_report

logger = logging.getLogger(__name__)

CUSTOM_REPORTS_PAGE_SIZE = 200
REPORT_NAME_MAX_LENGTH = 50
DEFAULT_REPORT_NAME = "impression_share_report"
DEFAULT_WEEKLY_DATE_RANGE = "LAST_2_WEEKS"
DEFAULT_DAILY_SPAN_DAYS = 14


def _in_condition(field: str, values: List[str]) -> JSONObject:
    return {"field": field, "operator": "IN", "values": values}


class CustomReportsMixin:
    """Impression share report creation, lookup and download."""

    def create_impression_share_report(
        self,
        name: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        date_range: Optional[str] = None,
        granularity: Optional[str] = None,
        countries: Optional[Sequence[str]] = None,
        adam_ids: Optional[Sequence[str]] = None,
        search_terms: Optional[Sequence[str]] = None,
        cancel: Optional[CancelToken] = None,
    ) -> CustomReport:
        """Submit an impression share report job.

        Granularity is DAILY unless WEEKLY is asked for explicitly. Weekly
        reports are bounded by ``date_range`` (``LAST_2_WEEKS`` by
        default); daily reports by ``start_time``/``end_time``, which
        default to the fourteen days ending yesterday (UTC) unless both
        are given.

        :param name: Report name, truncated to 50 characters
        :type name: Optional[str]
        :param start_time: First day of a daily report
        :type start_time: Optional[str]
        :param end_time: Last day of a daily report
        :type end_time: Optional[str]
        :param date_range: Relative range of a weekly report
        :type date_range: Optional[str]
        :param granularity: ``DAILY`` or ``WEEKLY``
        :type granularity: Optional[str]
        :param countries: Country or region codes to filter on
        :type countries: Optional[Sequence[str]]
        :param adam_ids: App ids to filter on
        :type adam_ids: Optional[Sequence[str]]
        :param search_terms: Search terms to filter on
        :type search_terms: Optional[Sequence[str]]
        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :return: The created report, usually still pending
        :rtype: CustomReport
        :raises APIError: If the request fails; a 429 carries ``retryable``
        """
        conditions = []
        normalized_countries = non_blank_upper(countries)
        if normalized_countries:
            conditions.append(_in_condition("countryOrRegion", normalized_countries))
        normalized_apps = non_blank(adam_ids)
        if normalized_apps:
            conditions.append(_in_condition("adamId", normalized_apps))
        normalized_terms = non_blank(search_terms)
        if normalized_terms:
            conditions.append(_in_condition("searchTerm", normalized_terms))

        resolved_granularity = "WEEKLY" if (granularity or "").strip().upper() == "WEEKLY" else "DAILY"
        report_name = (name or "").strip() or DEFAULT_REPORT_NAME

        body: Dict[str, Any] = {
            "name": report_name[:REPORT_NAME_MAX_LENGTH],
            "granularity": resolved_granularity,
            "selector": {"conditions": conditions},
        }
        if resolved_granularity == "WEEKLY":
            body["dateRange"] = (date_range or "").strip().upper() or DEFAULT_WEEKLY_DATE_RANGE
        else:
            start, end = (start_time or "").strip(), (end_time or "").strip()
            if not (start and end):
                last_day = self._now() - timedelta(days=1)
                start = date_only(last_day - timedelta(days=DEFAULT_DAILY_SPAN_DAYS - 1))
                end = date_only(last_day)
            body["startTime"] = start
            body["endTime"] = end

        payload = self._post("custom-reports", body, cancel=cancel)
        report = self._parse_one(payload, parse_custom_report, "custom report")
        logger.info(
            "Created %s impression share report %d (%s)",
            resolved_granularity.lower(),
            report.id,
            report.state or "no state",
        )
        return report

    def fetch_custom_report(self, report_id: int, cancel: Optional[CancelToken] = None) -> CustomReport:
        payload = self._get(f"custom-reports/{report_id}", cancel=cancel)
        return self._parse_one(payload, parse_custom_report, "custom report")

    def fetch_custom_reports(self, cancel: Optional[CancelToken] = None) -> List[CustomReport]:
        """Fetch every custom report, newest (highest id) first."""
        reports = self.pages.fetch_all(
            "custom-reports",
            parse_custom_report,
            page_size=CUSTOM_REPORTS_PAGE_SIZE,
            extract=extract_custom_report_items,
            cancel=cancel,
        )
        return sorted(reports, key=lambda r: r.id, reverse=True)

    def download_custom_report(self, uri: str, cancel: Optional[CancelToken] = None) -> bytes:
        """Download a completed report's file.

        The URI is validated before anything is sent, and the request
        carries the bearer token without the organization header.

        :param uri: ``downloadUri`` of a completed report
        :type uri: str
        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :return: Raw file contents
        :rtype: bytes
        :raises ValidationError: If the URI is not an https URL on a
            trusted host
        :raises APIError: If the download fails
        """
        url = validate_download_uri(
            uri, self.settings.api_base_url, self.settings.trusted_host_root
        )
        logger.debug("Downloading report from %s", safe_display_url(url))
        response = self._send("GET", url, cancel=cancel, org_context=False)
        return raise_for_status(response).content
