"""Asynchronous custom report pipeline: create, poll, download.

A report moves through ``PENDING``/``RUNNING`` to ``COMPLETED`` or
``FAILED``; the poller adds ``TIMED_OUT`` when its deadline passes
first. Creation and download retry HTTP 429 on the fixed rate-limit
schedule. Polling treats 429 as "not yet" and keeps its interval.
All waiting goes through the injected clock.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from ..exceptions import APIError, TimeoutError
from ..models import CustomReport, ReportState
from ..utils.cancellation import CancelToken, Clock, check_cancel
from ..utils.http.retry import RATE_LIMIT_ATTEMPTS, RATE_LIMIT_BACKOFF, retry_rate_limited

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 4.0
POLL_TIMEOUT_SECONDS = 120.0


class PollState(str, Enum):
    """States of one polling run."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    @classmethod
    def of(cls, report: CustomReport) -> "PollState":
        if report.state == ReportState.COMPLETED.value:
            return cls.COMPLETED
        if report.state == ReportState.FAILED.value:
            return cls.FAILED
        if report.state == ReportState.RUNNING.value:
            return cls.RUNNING
        return cls.PENDING


def incomplete_report_message(report: CustomReport) -> str:
    return f"Report did not complete in time. state={report.state}"


class ReportPoller:
    """Polls a report until it reaches a terminal state or the deadline.

    :param fetch: Fetches the current state of a report by id
    :type fetch: Callable[[int, Optional[CancelToken]], CustomReport]
    :param clock: Clock used for the deadline and for sleeping
    :type clock: Clock
    :param interval: Seconds between polls
    :type interval: float
    :param timeout: Seconds from the first poll until the run times out
    :type timeout: float
    """

    def __init__(
        self,
        fetch: Callable[[int, Optional[CancelToken]], CustomReport],
        clock: Clock,
        interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = POLL_TIMEOUT_SECONDS,
    ):
        self._fetch = fetch
        self.clock = clock
        self.interval = interval
        self.timeout = timeout

    def wait(self, report: CustomReport, cancel: Optional[CancelToken] = None) -> CustomReport:
        """Poll ``report`` until it completes.

        :param report: Report as returned by creation
        :type report: CustomReport
        :param cancel: Token checked before every poll request
        :type cancel: Optional[CancelToken]
        :return: The completed report
        :rtype: CustomReport
        :raises TimeoutError: If no terminal state is reached in time
        :raises APIError: If the report failed, or a poll fails with
            anything other than 429
        """
        deadline = self.clock.monotonic() + self.timeout
        state = PollState.of(report)
        while state not in (PollState.COMPLETED, PollState.FAILED):
            if self.clock.monotonic() >= deadline:
                state = PollState.TIMED_OUT
                break
            self.clock.sleep(self.interval)
            check_cancel(cancel, f"poll custom report {report.id}")
            try:
                current = self._fetch(report.id, cancel)
            except APIError as e:
                if not e.retryable:
                    raise
                logger.debug("Polling report %d rate limited; polling again", report.id)
                continue
            next_state = PollState.of(current)
            if next_state != state:
                logger.info(
                    "Report %d: %s -> %s", report.id, state.value, next_state.value
                )
            report, state = current, next_state

        if state is PollState.TIMED_OUT:
            raise TimeoutError(
                incomplete_report_message(report), operation=f"poll custom report {report.id}"
            )
        if state is PollState.FAILED:
            raise APIError(incomplete_report_message(report))
        return report


class ReportPipeline:
    """Runs a custom report from creation to downloaded bytes.

    :param client: Client exposing the custom report operations
    :type client: SearchAdsClient
    :param clock: Clock for backoff and polling; defaults to the client's
    :type clock: Optional[Clock]
    :param poll_interval: Seconds between polls
    :type poll_interval: float
    :param poll_timeout: Polling deadline in seconds
    :type poll_timeout: float
    :param attempts: Attempts for rate-limited create and download calls
    :type attempts: int
    :param schedule: Backoff between rate-limited attempts
    :type schedule: Sequence[float]
    """

    def __init__(
        self,
        client,
        clock: Optional[Clock] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = POLL_TIMEOUT_SECONDS,
        attempts: int = RATE_LIMIT_ATTEMPTS,
        schedule: Sequence[float] = RATE_LIMIT_BACKOFF,
    ):
        self.client = client
        self.clock = clock or client.clock
        self.attempts = attempts
        self.schedule = schedule
        self.poller = ReportPoller(
            lambda report_id, cancel: client.fetch_custom_report(report_id, cancel=cancel),
            self.clock,
            interval=poll_interval,
            timeout=poll_timeout,
        )

    def _with_retry(self, operation, description: str, cancel: Optional[CancelToken]):
        return retry_rate_limited(
            operation,
            attempts=self.attempts,
            schedule=self.schedule,
            clock=self.clock,
            cancel=cancel,
            description=description,
        )

    def create(self, cancel: Optional[CancelToken] = None, **params) -> CustomReport:
        """Create an impression share report, retrying on 429.

        Keyword arguments are passed to
        :meth:`SearchAdsClient.create_impression_share_report`.
        """
        return self._with_retry(
            lambda: self.client.create_impression_share_report(cancel=cancel, **params),
            "create custom report",
            cancel,
        )

    def wait(self, report: CustomReport, cancel: Optional[CancelToken] = None) -> CustomReport:
        return self.poller.wait(report, cancel=cancel)

    def download(self, report: CustomReport, cancel: Optional[CancelToken] = None) -> bytes:
        """Download a completed report, retrying on 429.

        :param report: A completed report
        :type report: CustomReport
        :return: File contents
        :rtype: bytes
        :raises APIError: If the report has no download URI
        :raises ValidationError: If the URI is not trusted
        """
        uri = (report.download_uri or "").strip()
        if not uri:
            raise APIError("Completed report missing downloadUri")
        return self._with_retry(
            lambda: self.client.download_custom_report(uri, cancel=cancel),
            "download custom report",
            cancel,
        )

    def run(self, cancel: Optional[CancelToken] = None, **params) -> Tuple[CustomReport, bytes]:
        """Create, wait for and download one report.

        :return: ``(completed_report, file_bytes)``
        :rtype: Tuple[CustomReport, bytes]
        """
        report = self.create(cancel=cancel, **params)
        logger.info("Waiting for custom report %d", report.id)
        report = self.wait(report, cancel=cancel)
        return report, self.download(report, cancel=cancel)
