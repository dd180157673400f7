"""Share-of-voice report run: one weekly impression share report for an
app, parsed into normalized rows and a decision table."""

import logging
from typing import List, Optional, Sequence, Union

from pydantic import Field

from ..models import CustomReport, DecisionEntry, Snapshot, SOVRow
from ..utils.cancellation import CancelToken
from ..utils.coerce import non_blank_upper
from .csv_parser import parse_report_csv
from .decisions import build_decision_table
from .pipeline import ReportPipeline

logger = logging.getLogger(__name__)

DEFAULT_SOV_DATE_RANGE = "LAST_4_WEEKS"


class SOVResult(Snapshot):
    """Outcome of a share-of-voice run.

    :param report: The completed report job
    :type report: CustomReport
    :param csv_text: Downloaded report file, decoded
    :type csv_text: str
    :param rows: Normalized rows in file order
    :type rows: List[SOVRow]
    :param decisions: One classification per row, in the same order
    :type decisions: List[DecisionEntry]
    """

    report: CustomReport
    csv_text: str
    rows: List[SOVRow] = Field(default_factory=list)
    decisions: List[DecisionEntry] = Field(default_factory=list)


class SOVReportPipeline:
    """Runs the weekly share-of-voice report for one app.

    :param client: Client exposing the custom report operations
    :type client: SearchAdsClient
    :param pipeline_options: Keyword arguments for :class:`ReportPipeline`
        (clock, polling and retry settings)
    """

    def __init__(self, client, **pipeline_options):
        self.pipeline = ReportPipeline(client, **pipeline_options)

    def run(
        self,
        adam_id: Union[int, str],
        countries: Sequence[str] = (),
        date_range: str = DEFAULT_SOV_DATE_RANGE,
        name: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> SOVResult:
        """Create, wait for, download and classify a share-of-voice report.

        :param adam_id: App to report on
        :type adam_id: Union[int, str]
        :param countries: Country or region codes; all when empty
        :type countries: Sequence[str]
        :param date_range: Relative weekly range, e.g. ``LAST_4_WEEKS``
        :type date_range: str
        :param name: Report name; defaults to the client's default
        :type name: Optional[str]
        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :return: Report, raw CSV, normalized rows and decisions
        :rtype: SOVResult
        :raises TimeoutError: If the report does not finish in time
        :raises APIError: If the report fails, has no download URI, or a
            request fails with anything other than a retried 429
        :raises ValidationError: If the download URI is not trusted
        """
        report, data = self.pipeline.run(
            cancel=cancel,
            name=(name or "").strip() or None,
            date_range=(date_range or "").strip().upper() or DEFAULT_SOV_DATE_RANGE,
            granularity="WEEKLY",
            countries=non_blank_upper(countries),
            adam_ids=[str(adam_id).strip()],
        )
        csv_text = data.decode("utf-8-sig", errors="replace")
        rows = parse_report_csv(csv_text)
        decisions = build_decision_table(rows)
        logger.info(
            "Share-of-voice report %d for app %s: %d rows", report.id, adam_id, len(rows)
        )
        return SOVResult(report=report, csv_text=csv_text, rows=rows, decisions=decisions)
