"""Unit tests for daily metrics report parsing."""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from search_ads_client.client.metrics import date_only, parse_metrics


def report(*rows):
    return {"data": {"reportingDataResponse": {"row": list(rows)}}}


class TestHelpers:
    def test_date_only_accepts_several_types(self):
        assert date_only(date(2025, 3, 1)) == "2025-03-01"
        assert date_only("2025-03-01T10:00:00.000") == "2025-03-01"
        late = datetime(2025, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert date_only(late) == "2025-03-02"

    def test_installs_absent_is_none(self):
        assert parse_metrics({"impressions": 10})["installs"] is None

    def test_installs_zero_is_kept(self):
        assert parse_metrics({"totalInstalls": 0, "installs": 7})["installs"] == 0

    def test_cpt(self):
        metrics = parse_metrics({"taps": 4, "localSpend": {"amount": "10.00", "currency": "USD"}})
        assert metrics["cpt"] == pytest.approx(2.5)
        assert metrics["currency_code"] == "USD"
        assert parse_metrics({"taps": 0})["cpt"] == 0.0


class TestAdGroupMetrics:
    def test_granularity_rows_expand_per_day(self, client, fake_api):
        fake_api.on(
            "POST",
            "reports/campaigns/1/adgroups",
            json=report(
                {
                    "metadata": {"campaignId": 1, "adGroupId": 2, "adGroupName": "Brand"},
                    "granularity": [
                        {"date": "2025-03-02", "impressions": 5, "taps": 1, "tapInstalls": 1},
                        {"date": "2025-03-01", "impressions": 9, "taps": 2},
                    ],
                }
            ),
        )
        metrics = client.fetch_ad_group_daily_metrics(date(2025, 3, 1), "2025-03-02", 1, 2)
        assert [m.date for m in metrics] == ["2025-03-01", "2025-03-02"]
        assert metrics[0].installs is None
        assert metrics[1].installs == 1
        assert metrics[0].ad_group_name == "Brand"

        body = json.loads(fake_api.calls("POST", "reports/campaigns/1/adgroups")[0].content)
        assert body["startTime"] == "2025-03-01"
        assert body["granularity"] == "DAILY"
        assert body["timeZone"] == "UTC"
        assert body["selector"]["conditions"][0]["values"] == ["2"]

    def test_mismatched_ad_group_skipped(self, client, fake_api):
        fake_api.on(
            "POST",
            "reports/campaigns/1/adgroups",
            json=report(
                {"metadata": {"campaignId": 1, "adGroupId": 3}, "total": {"impressions": 1}},
                {"metadata": {"campaignId": 1, "adGroupId": 2, "date": "2025-03-01"}, "total": {"impressions": 4}},
            ),
        )
        metrics = client.fetch_ad_group_daily_metrics("2025-03-01", "2025-03-01", 1, 2)
        assert len(metrics) == 1
        assert metrics[0].impressions == 4


class TestKeywordMetrics:
    def test_keyword_identity_defaults(self, client, fake_api):
        fake_api.on(
            "POST",
            "reports/campaigns/1/adgroups/2/keywords",
            json=report(
                {"metadata": {"keywordId": 11}, "total": {"impressions": 3}},
                {"metadata": {"keyword": "no id"}, "total": {"impressions": 8}},
            ),
        )
        metrics = client.fetch_keyword_daily_metrics("2025-03-01", "2025-03-07", 1, 2)
        assert len(metrics) == 1
        assert metrics[0].keyword_text == "Keyword 11"
        assert metrics[0].match_type == "BROAD"
        assert metrics[0].date == "2025-03-01"


class TestSearchTermMetrics:
    def test_org_time_zone_without_empty_rows(self, client, fake_api):
        fake_api.on(
            "POST",
            "reports/campaigns/1/adgroups/2/searchterms",
            json=report(
                {"metadata": {"searchTermText": "photo editor"}, "granularity": [{"date": "2025-03-03", "taps": 2}]},
                {"metadata": {}, "total": {"taps": 5}},
            ),
        )
        metrics = client.fetch_search_term_daily_metrics("2025-03-01", "2025-03-07", 1, 2)
        assert [m.search_term_text for m in metrics] == ["photo editor"]

        body = json.loads(fake_api.calls("POST", "reports/campaigns/1/adgroups/2/searchterms")[0].content)
        assert body["timeZone"] == "ORTZ"
        assert body["returnRecordsWithNoMetrics"] is False
