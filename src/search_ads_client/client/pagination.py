"""Offset/limit pagination over list endpoints.

Upstream lists are windowed with ``offset``/``limit`` and may return
overlapping windows while records are being mutated, so results are
de-duplicated by identity as pages are merged. Ordering is left to the
caller.
"""

import logging
from typing import Any, Callable, Dict, Hashable, List, Optional, TypeVar

from ..utils.cancellation import CancelToken, check_cancel
from ..utils.coerce import extract_data_items, extract_total_results
from ..utils.http.transport import RawResponse, raise_for_status

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 200

Sender = Callable[..., RawResponse]
"""``send(method, path, *, params=None, body=None, cancel=None) -> RawResponse``."""


def entity_id(item: Any) -> Hashable:
    return item.id


class PaginatedFetcher:
    """Collects every page of a list endpoint.

    :param send: Authenticated request function
    :type send: Sender
    :param page_size: Default ``limit`` per request
    :type page_size: int
    """

    def __init__(self, send: Sender, page_size: int = DEFAULT_PAGE_SIZE):
        self._send = send
        self.page_size = page_size

    def fetch_all(
        self,
        path: str,
        parse: Callable[[Any], Optional[T]],
        *,
        key: Callable[[T], Hashable] = entity_id,
        page_size: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
        extract: Callable[[Any], List[Any]] = extract_data_items,
        cancel: Optional[CancelToken] = None,
    ) -> List[T]:
        """Fetch all pages of ``path``.

        Rows for which ``parse`` returns None are skipped. Fetching stops
        when a page is short or the declared total has been reached,
        whichever comes first.

        :param path: Endpoint path relative to the API base
        :type path: str
        :param parse: Converts one raw row into a record, or None to drop it
        :type parse: Callable[[Any], Optional[T]]
        :param key: Identity used for de-duplication
        :type key: Callable[[T], Hashable]
        :param page_size: Override for the ``limit`` parameter
        :type page_size: Optional[int]
        :param params: Extra query parameters sent with every page
        :type params: Optional[Dict[str, Any]]
        :param extract: Pulls the row array out of a page payload
        :type extract: Callable[[Any], List[Any]]
        :param cancel: Cancellation token checked before each page
        :type cancel: Optional[CancelToken]
        :return: Unique records in arrival order
        :rtype: List[T]
        :raises APIError: If any page request fails
        """
        limit = page_size or self.page_size
        results: List[T] = []
        seen = set()
        offset = 0
        while True:
            check_cancel(cancel, f"GET {path}")
            query = dict(params or {})
            query.update(offset=offset, limit=limit)
            response = raise_for_status(self._send("GET", path, params=query, cancel=cancel))
            payload = response.json()

            items = extract(payload)
            added = 0
            for raw in items:
                record = parse(raw)
                if record is None:
                    continue
                identity = key(record)
                if identity in seen:
                    continue
                seen.add(identity)
                results.append(record)
                added += 1

            total = extract_total_results(payload)
            if (total > 0 and offset + limit >= total) or len(items) < limit:
                break
            if added == 0:
                logger.warning(
                    "Page at offset %d of %s added no new records; stopping", offset, path
                )
                break
            offset += limit

        logger.debug("Fetched %d records from %s", len(results), path)
        return results
