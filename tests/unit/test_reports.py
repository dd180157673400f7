"""Unit tests for report CSV parsing, classification and the report pipeline."""

import json

import pytest

from search_ads_client.exceptions import APIError, CancelledError, TimeoutError, ValidationError
from search_ads_client.models import CustomReport, DecisionBucket, SOVRow
from search_ads_client.reports import (
    ReportPipeline,
    ReportPoller,
    SOVReportPipeline,
    build_decision_table,
    classify,
    parse_csv_line,
    parse_float,
    parse_report_csv,
)
from search_ads_client.utils.cancellation import CancelToken

DOWNLOAD_URL = "https://reports.searchads.apple.com/files/7.csv"


def report(state, download_uri=None):
    return CustomReport(id=7, name="r", state=state, download_uri=download_uri)


class TestCsvParsing:
    def test_quoted_fields(self):
        assert parse_csv_line('a,"b,c","d""e"') == ["a", "b,c", 'd"e']

    def test_numbers(self):
        assert parse_float("12.5%") == 12.5
        assert parse_float("1,234") == 1234.0
        assert parse_float("") == 0.0
        assert parse_float("n/a") == 0.0
        assert parse_float("nan") == 0.0

    def test_header_aliases(self):
        camel = parse_report_csv("searchTerm,searchPopularity,impressionShare\nphoto,70,0.1\n")
        title = parse_report_csv("Search Term,Search Popularity,Impression Share\nphoto,70,0.1\n")
        assert camel == title
        assert camel[0].keyword == "photo"
        assert camel[0].popularity == 70.0

    def test_blank_lines_and_bom_skipped(self):
        rows = parse_report_csv('\ufeffsearchTerm,installs\n\n"a, b",3\n\nc,\n')
        assert [r.keyword for r in rows] == ["a, b", "c"]
        assert rows[0].installs == 3
        assert rows[1].installs == 0

    def test_empty_document(self):
        assert parse_report_csv("") == []
        assert parse_report_csv("searchTerm\n") == []


class TestDecisions:
    @pytest.mark.parametrize(
        "popularity, share, installs, bucket",
        [
            (80, 0.1, 0, DecisionBucket.AUCTION_LIMITED),
            (10, 0.3, 0, DecisionBucket.CONVERSION_LIMITED),
            (10, 0.05, 5, DecisionBucket.VOLUME_LIMITED),
            (60, 0.2, 0, DecisionBucket.CONVERSION_LIMITED),
            (60, 0.2, 1, DecisionBucket.VOLUME_LIMITED),
        ],
    )
    def test_classify(self, popularity, share, installs, bucket):
        assert classify(popularity, share, installs).bucket is bucket

    def test_table_keeps_order_and_actions(self):
        rows = [
            SOVRow(keyword="b", popularity=80, impression_share=0.1, rank=2),
            SOVRow(keyword="a", popularity=10, impression_share=0.3),
        ]
        table = build_decision_table(rows)
        assert [d.keyword for d in table] == ["b", "a"]
        assert table[0].action == "increase-bid-or-budget"
        assert table[0].rank == 2
        assert table[1].reason == "Receiving share but no installs"


class TestReportPoller:
    def test_polls_until_completed(self, fake_clock):
        states = iter([report("RUNNING"), report("COMPLETED", DOWNLOAD_URL)])
        poller = ReportPoller(lambda report_id, cancel: next(states), fake_clock)
        done = poller.wait(report("QUEUED"))
        assert done.download_uri == DOWNLOAD_URL
        assert fake_clock.sleeps == [4.0, 4.0]

    def test_already_completed_does_not_poll(self, fake_clock):
        poller = ReportPoller(lambda report_id, cancel: pytest.fail("polled"), fake_clock)
        assert poller.wait(report("COMPLETED", DOWNLOAD_URL)).state == "COMPLETED"
        assert fake_clock.sleeps == []

    def test_rate_limited_poll_keeps_polling(self, fake_clock):
        responses = [APIError("slow down", status_code=429, retryable=True), report("COMPLETED")]

        def fetch(report_id, cancel):
            item = responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        assert ReportPoller(fetch, fake_clock).wait(report("PENDING")).state == "COMPLETED"
        assert fake_clock.sleeps == [4.0, 4.0]

    def test_other_poll_errors_propagate(self, fake_clock):
        def fetch(report_id, cancel):
            raise APIError("boom", status_code=500)

        with pytest.raises(APIError) as exc_info:
            ReportPoller(fetch, fake_clock).wait(report("PENDING"))
        assert exc_info.value.status_code == 500

    def test_failed_report(self, fake_clock):
        poller = ReportPoller(lambda report_id, cancel: report("FAILED"), fake_clock)
        with pytest.raises(APIError) as exc_info:
            poller.wait(report("PENDING"))
        assert not isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.message == "Report did not complete in time. state=FAILED"

    def test_timeout(self, fake_clock):
        poller = ReportPoller(lambda report_id, cancel: report("RUNNING"), fake_clock)
        with pytest.raises(TimeoutError, match="did not complete in time. state=RUNNING"):
            poller.wait(report("PENDING"))
        assert sum(fake_clock.sleeps) == pytest.approx(120.0)

    def test_cancel_checked_before_each_poll(self, fake_clock):
        token = CancelToken(clock=fake_clock)
        token.cancel()
        poller = ReportPoller(lambda report_id, cancel: pytest.fail("polled"), fake_clock)
        with pytest.raises(CancelledError):
            poller.wait(report("PENDING"), cancel=token)


class TestReportPipeline:
    def test_create_retries_rate_limit(self, client, fake_api, fake_clock):
        fake_api.on("POST", "custom-reports", status=429, json={"error": "slow down"})
        fake_api.on("POST", "custom-reports", json={"data": {"id": 7, "state": "QUEUED"}})
        created = ReportPipeline(client).create(granularity="WEEKLY")
        assert created.id == 7
        assert fake_clock.sleeps == [2.0]

    def test_create_gives_up_after_four_attempts(self, client, fake_api, fake_clock):
        fake_api.on("POST", "custom-reports", status=429, json={"error": "slow down"})
        with pytest.raises(APIError) as exc_info:
            ReportPipeline(client).create()
        assert exc_info.value.status_code == 429
        assert len(fake_api.calls("POST", "custom-reports")) == 4
        assert fake_clock.sleeps == [2.0, 5.0, 10.0]

    def test_download_retries_rate_limit(self, client, fake_api, fake_clock):
        fake_api.on("GET", DOWNLOAD_URL, status=429, json={"error": "slow down"})
        fake_api.on("GET", DOWNLOAD_URL, content=b"searchTerm\n")
        data = ReportPipeline(client).download(report("COMPLETED", DOWNLOAD_URL))
        assert data == b"searchTerm\n"
        assert len(fake_api.calls("GET", DOWNLOAD_URL)) == 2
        assert fake_clock.sleeps == [2.0]

    def test_download_gives_up_after_four_attempts(self, client, fake_api, fake_clock):
        fake_api.on("GET", DOWNLOAD_URL, status=429, json={"error": "slow down"})
        with pytest.raises(APIError) as exc_info:
            ReportPipeline(client).download(report("COMPLETED", DOWNLOAD_URL))
        assert exc_info.value.status_code == 429
        assert len(fake_api.calls("GET", DOWNLOAD_URL)) == 4
        assert fake_clock.sleeps == [2.0, 5.0, 10.0]

    def test_missing_download_uri(self, client, fake_api):
        with pytest.raises(APIError, match="Completed report missing downloadUri"):
            ReportPipeline(client).download(report("COMPLETED", "  "))
        assert fake_api.requests == []

    def test_untrusted_download_uri(self, client, fake_api):
        with pytest.raises(ValidationError):
            ReportPipeline(client).download(report("COMPLETED", "https://example.org/7.csv"))
        assert fake_api.requests == []


class TestSOVReportPipeline:
    def test_end_to_end(self, client, fake_api, fake_clock):
        csv_text = (
            "searchTerm,Search Popularity,impressionShare,installs\n"
            '"photo, editor",80,0.1,0\n'
            "\n"
            "collage,10,0.3,0\n"
            '"frame ""pro""",10,0.05,5\n'
        )
        fake_api.on("POST", "custom-reports", json={"data": {"id": 7, "state": "QUEUED"}})
        fake_api.on("GET", "custom-reports/7", status=429, json={"error": "slow down"})
        fake_api.on("GET", "custom-reports/7", json={"data": {"id": 7, "state": "RUNNING"}})
        fake_api.on(
            "GET",
            "custom-reports/7",
            json={"data": {"id": 7, "state": "COMPLETED", "downloadUri": DOWNLOAD_URL}},
        )
        fake_api.on("GET", DOWNLOAD_URL, content=b"\xef\xbb\xbf" + csv_text.encode("utf-8"))

        result = SOVReportPipeline(client).run(123, countries=["us", ""])

        body = json.loads(fake_api.calls("POST", "custom-reports")[0].content)
        assert body["granularity"] == "WEEKLY"
        assert body["dateRange"] == "LAST_4_WEEKS"
        assert body["selector"]["conditions"] == [
            {"field": "countryOrRegion", "operator": "IN", "values": ["US"]},
            {"field": "adamId", "operator": "IN", "values": ["123"]},
        ]

        assert result.report.state == "COMPLETED"
        assert fake_clock.sleeps == [4.0, 4.0, 4.0]
        assert [r.keyword for r in result.rows] == ["photo, editor", "collage", 'frame "pro"']
        assert [d.bucket for d in result.decisions] == [
            DecisionBucket.AUCTION_LIMITED,
            DecisionBucket.CONVERSION_LIMITED,
            DecisionBucket.VOLUME_LIMITED,
        ]
        assert len(fake_api.calls("GET", DOWNLOAD_URL)) == 1

    def test_pipeline_options_are_forwarded(self, client, fake_api, fake_clock):
        fake_api.on("POST", "custom-reports", json={"data": {"id": 7, "state": "QUEUED"}})
        fake_api.on(
            "GET",
            "custom-reports/7",
            json={"data": {"id": 7, "state": "COMPLETED", "downloadUri": DOWNLOAD_URL}},
        )
        fake_api.on("GET", DOWNLOAD_URL, content=b"searchTerm,installs\nphoto,1\n")

        sov = SOVReportPipeline(client, poll_interval=1.5)
        result = sov.run("123")

        assert isinstance(sov.pipeline, ReportPipeline)
        assert fake_clock.sleeps == [1.5]
        assert [r.keyword for r in result.rows] == ["photo"]
