"""Route and payload fallback for unstable upstream endpoints.

Some operations are served under more than one route (ad group scoped
and campaign scoped negative keywords, for example) and some bulk
writes accept only one of several body shapes. The invoker walks these
alternatives in a fixed order:

* across routes, only HTTP 404 moves on to the next route;
* across payload variants, only HTTP 400, 404 and 405 move on.

Every other status, and every transport failure, is raised at once.
When all alternatives are rejected an :class:`ExhaustionError` is
raised that names what was tried.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Optional, Sequence, TypeVar

from ..exceptions import APIError, ExhaustionError
from ..utils.cancellation import CancelToken
from ..utils.http.transport import raise_for_status
from .pagination import Sender

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROUTE_MISS_STATUSES: FrozenSet[int] = frozenset({404})
VARIANT_REJECT_STATUSES: FrozenSet[int] = frozenset({400, 404, 405})


@dataclass(frozen=True)
class Attempt:
    """One request in a payload-variant cascade.

    :param method: HTTP method
    :param path: Path relative to the API base
    :param body: JSON body, or None for no body
    :param label: Short description used in logs and exhaustion errors
    """

    method: str
    path: str
    body: Any = None
    label: str = ""

    def describe(self) -> str:
        return self.label or f"{self.method} {self.path}"


class MultiPathInvoker:
    """Tries equivalent routes and payload shapes until one is accepted.

    :param send: Authenticated request function
    :type send: Sender
    """

    def __init__(self, send: Sender):
        self._send = send

    def first_path(
        self,
        paths: Sequence[str],
        call: Callable[[str], T],
        description: str,
    ) -> T:
        """Run ``call`` against each path until one is not a route miss.

        :param paths: Candidate paths, primary first
        :type paths: Sequence[str]
        :param call: Operation to run against one path
        :type call: Callable[[str], T]
        :param description: What is being attempted, for the exhaustion error
        :type description: str
        :return: Result of the first path that did not answer 404
        :rtype: T
        :raises APIError: For any failure other than 404
        :raises ExhaustionError: If every path answered 404
        """
        last_error: Optional[APIError] = None
        for path in paths:
            try:
                return call(path)
            except APIError as e:
                if e.status_code not in ROUTE_MISS_STATUSES:
                    raise
                logger.debug("%s: route %s not found, trying next route", description, path)
                last_error = e
        raise ExhaustionError(
            f"Unable to {description}: no supported API route.",
            attempts=list(paths),
            last_error=last_error,
        )

    def request(
        self,
        method: str,
        paths: Sequence[str],
        body: Any = None,
        description: str = "complete request",
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        """Send the same request to each path in turn, advancing on 404.

        :return: Decoded JSON of the accepted response
        :rtype: Any
        """

        def call(path: str) -> Any:
            response = self._send(method, path, body=body, cancel=cancel)
            return raise_for_status(response).json()

        return self.first_path(paths, call, description)

    def invoke_variants(
        self,
        attempts: Sequence[Attempt],
        exhausted_message: str,
        advance_on: FrozenSet[int] = VARIANT_REJECT_STATUSES,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        """Send each attempt in order until one returns 2xx.

        :param attempts: Requests to try, most preferred first
        :type attempts: Sequence[Attempt]
        :param exhausted_message: Message of the error raised when all fail
        :type exhausted_message: str
        :param advance_on: Statuses that mean "try the next variant"
        :type advance_on: FrozenSet[int]
        :param cancel: Cancellation token passed to each request
        :type cancel: Optional[CancelToken]
        :return: Decoded JSON of the accepted response
        :rtype: Any
        :raises APIError: For a status outside ``advance_on``
        :raises ExhaustionError: If every attempt was rejected
        """
        tried: List[str] = []
        last_error: Optional[APIError] = None
        for attempt in attempts:
            tried.append(attempt.describe())
            response = self._send(attempt.method, attempt.path, body=attempt.body, cancel=cancel)
            try:
                return raise_for_status(response).json()
            except APIError as e:
                if e.status_code not in advance_on:
                    raise
                logger.debug(
                    "%s rejected with HTTP %d, trying next variant",
                    attempt.describe(),
                    e.status_code,
                )
                last_error = e
        raise ExhaustionError(exhausted_message, attempts=tried, last_error=last_error)
