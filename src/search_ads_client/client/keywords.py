"""Targeting keyword and negative keyword operations.

Keyword routes exist both under the campaign (``campaigns/{c}/adgroups/{g}``)
and at org level (``adgroups/{g}``); reads and writes try the campaign
scoped route first and fall back on 404. Negative keyword deletes and
status updates additionally walk a cascade of payload shapes, since the
bulk endpoints have accepted different bodies over time.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import ValidationError
from ..models import Keyword, NegativeKeyword
from ..utils.cancellation import CancelToken
from .campaigns import money_payload
from .fallback import Attempt
from .normalize import parse_keyword, parse_negative_keyword

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD_CURRENCY = "USD"
REMOVAL_STATUSES = ("DELETED", "PAUSED", "INACTIVE")


def keyword_status_payload(status: Optional[str]) -> str:
    """Map a user-facing status to the write-side value; ``""`` when unsupported."""
    normalized = (status or "").strip().upper()
    if normalized in ("ACTIVE", "ENABLED"):
        return "ACTIVE"
    if normalized == "PAUSED":
        return "PAUSED"
    return ""


def negative_keyword_payload(text: str, match_type: Optional[str]) -> Dict[str, str]:
    resolved = "EXACT" if (match_type or "").strip().upper() == "EXACT" else "BROAD"
    return {"text": text, "matchType": resolved, "status": "ACTIVE"}


def _keyword_paths(campaign_id: int, ad_group_id: int, resource: str) -> List[str]:
    return [
        f"campaigns/{campaign_id}/adgroups/{ad_group_id}/{resource}",
        f"adgroups/{ad_group_id}/{resource}",
    ]


class KeywordsMixin:
    """Targeting keyword and negative keyword endpoints."""

    # -------------------------------------------------------------------------
    # Targeting keywords
    # -------------------------------------------------------------------------

    def fetch_keywords(
        self, campaign_id: int, ad_group_id: int, cancel: Optional[CancelToken] = None
    ) -> List[Keyword]:
        """Fetch the targeting keywords of an ad group, sorted by id.

        :param campaign_id: Parent campaign
        :type campaign_id: int
        :param ad_group_id: Ad group
        :type ad_group_id: int
        :return: Keyword snapshots
        :rtype: List[Keyword]
        :raises ExhaustionError: If neither keyword route exists
        """
        keywords = self.invoker.first_path(
            _keyword_paths(campaign_id, ad_group_id, "targetingkeywords"),
            lambda path: self.pages.fetch_all(path, parse_keyword, cancel=cancel),
            f"fetch keywords for ad group {ad_group_id}",
        )
        return sorted(keywords, key=lambda k: k.id)

    def add_keyword(
        self,
        campaign_id: int,
        ad_group_id: int,
        text: str,
        match_type: Optional[str] = None,
        bid_amount: Optional[float] = None,
        currency: Optional[str] = None,
        status: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Add one targeting keyword through the bulk endpoint.

        :param text: Keyword text
        :type text: str
        :param match_type: ``BROAD`` (default) or ``EXACT``
        :type match_type: Optional[str]
        :param bid_amount: Optional keyword-level bid
        :type bid_amount: Optional[float]
        :param currency: Bid currency, USD when omitted
        :type currency: Optional[str]
        :param status: ``ACTIVE``/``ENABLED`` or ``PAUSED``; ACTIVE when omitted
        :type status: Optional[str]
        """
        entry: Dict[str, Any] = {
            "text": text,
            "matchType": (match_type or "").strip().upper() or "BROAD",
            "status": keyword_status_payload(status) or "ACTIVE",
        }
        if bid_amount is not None:
            entry["bidAmount"] = money_payload(
                bid_amount, (currency or "").strip() or DEFAULT_KEYWORD_CURRENCY
            )
        self.invoker.request(
            "POST",
            [f"{path}/bulk" for path in _keyword_paths(campaign_id, ad_group_id, "targetingkeywords")],
            body=[entry],
            description=f"add keyword to ad group {ad_group_id}",
            cancel=cancel,
        )
        logger.info("Added keyword %r to ad group %d", text, ad_group_id)

    def update_keyword(
        self,
        campaign_id: int,
        ad_group_id: int,
        keyword_id: int,
        status: Optional[str] = None,
        bid_amount: Optional[float] = None,
        currency: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Update a keyword's status and/or bid through the bulk endpoint."""
        entry: Dict[str, Any] = {"id": keyword_id}
        normalized = keyword_status_payload(status)
        if normalized:
            entry["status"] = normalized
        if bid_amount is not None:
            entry["bidAmount"] = money_payload(
                bid_amount, (currency or "").strip() or DEFAULT_KEYWORD_CURRENCY
            )
        self.invoker.request(
            "PUT",
            [f"{path}/bulk" for path in _keyword_paths(campaign_id, ad_group_id, "targetingkeywords")],
            body=[entry],
            description=f"update keyword {keyword_id}",
            cancel=cancel,
        )

    def delete_keyword(
        self,
        campaign_id: int,
        ad_group_id: int,
        keyword_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.invoker.request(
            "DELETE",
            [f"{path}/{keyword_id}" for path in _keyword_paths(campaign_id, ad_group_id, "targetingkeywords")],
            description=f"delete keyword {keyword_id}",
            cancel=cancel,
        )
        logger.info("Deleted keyword %d", keyword_id)

    # -------------------------------------------------------------------------
    # Negative keywords, ad group scope
    # -------------------------------------------------------------------------

    def fetch_negative_keywords(
        self, campaign_id: int, ad_group_id: int, cancel: Optional[CancelToken] = None
    ) -> List[NegativeKeyword]:
        negatives = self.invoker.first_path(
            _keyword_paths(campaign_id, ad_group_id, "negativekeywords"),
            lambda path: self._fetch_negative_keywords_from(path, cancel),
            f"fetch negative keywords for ad group {ad_group_id}",
        )
        return sorted(negatives, key=lambda k: k.id)

    def add_negative_keywords(
        self,
        campaign_id: int,
        ad_group_id: int,
        keywords: Iterable[NegativeKeyword],
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Add negative keywords to an ad group.

        Match types other than EXACT are sent as BROAD and every entry is
        created ACTIVE.

        :param keywords: Keywords to add; only text and match type are used
        :type keywords: Iterable[NegativeKeyword]
        """
        entries = [negative_keyword_payload(k.text, k.match_type) for k in keywords]
        self.invoker.request(
            "POST",
            [f"{path}/bulk" for path in _keyword_paths(campaign_id, ad_group_id, "negativekeywords")],
            body=entries,
            description=f"add negative keywords to ad group {ad_group_id}",
            cancel=cancel,
        )
        logger.info("Added %d negative keywords to ad group %d", len(entries), ad_group_id)

    def update_negative_keyword_status(
        self,
        campaign_id: int,
        ad_group_id: int,
        negative_keyword_id: int,
        status: str,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.invoker.first_path(
            _keyword_paths(campaign_id, ad_group_id, "negativekeywords"),
            lambda path: self._update_negative_status_at(path, negative_keyword_id, status, cancel),
            f"update negative keyword {negative_keyword_id}",
        )

    def delete_negative_keyword(
        self,
        campaign_id: int,
        ad_group_id: int,
        negative_keyword_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Remove a negative keyword from an ad group.

        Tries the campaign scoped route, then the org-level route. Within
        a route, see :meth:`_delete_negative_at` for the payload cascade.

        :raises ExhaustionError: If every route and payload was rejected
        """
        self.invoker.first_path(
            _keyword_paths(campaign_id, ad_group_id, "negativekeywords"),
            lambda path: self._delete_negative_at(path, negative_keyword_id, cancel),
            f"delete negative keyword {negative_keyword_id}",
        )
        logger.info("Removed negative keyword %d", negative_keyword_id)

    # -------------------------------------------------------------------------
    # Negative keywords, campaign scope
    # -------------------------------------------------------------------------

    def fetch_campaign_negative_keywords(
        self, campaign_id: int, cancel: Optional[CancelToken] = None
    ) -> List[NegativeKeyword]:
        negatives = self._fetch_negative_keywords_from(
            f"campaigns/{campaign_id}/negativekeywords", cancel
        )
        return sorted(negatives, key=lambda k: k.id)

    def add_campaign_negative_keywords(
        self,
        campaign_id: int,
        keywords: Iterable[NegativeKeyword],
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Add campaign-wide negative keywords; an empty list sends nothing."""
        entries = [negative_keyword_payload(k.text, k.match_type) for k in keywords]
        if not entries:
            return
        self._post(f"campaigns/{campaign_id}/negativekeywords/bulk", entries, cancel=cancel)
        logger.info("Added %d negative keywords to campaign %d", len(entries), campaign_id)

    def update_campaign_negative_keyword_status(
        self,
        campaign_id: int,
        negative_keyword_id: int,
        status: str,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self._update_negative_status_at(
            f"campaigns/{campaign_id}/negativekeywords", negative_keyword_id, status, cancel
        )

    def delete_campaign_negative_keyword(
        self,
        campaign_id: int,
        negative_keyword_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self._delete_negative_at(
            f"campaigns/{campaign_id}/negativekeywords", negative_keyword_id, cancel
        )
        logger.info("Removed campaign negative keyword %d", negative_keyword_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _fetch_negative_keywords_from(
        self, path: str, cancel: Optional[CancelToken]
    ) -> List[NegativeKeyword]:
        return self.pages.fetch_all(path, parse_negative_keyword, cancel=cancel)

    def _delete_negative_at(
        self, base_path: str, negative_keyword_id: int, cancel: Optional[CancelToken]
    ) -> None:
        """Delete a negative keyword under one route.

        Order of attempts:

        1. ``DELETE base/{id}``
        2. ``DELETE base/bulk`` with each supported id body
        3. ``PUT base/bulk`` marking it DELETED, then PAUSED, then INACTIVE,
           each in array, wrapped and bare form

        Only 400, 404 and 405 move on to the next attempt.
        """
        bulk = f"{base_path}/bulk"
        kid = negative_keyword_id
        attempts = [Attempt("DELETE", f"{base_path}/{kid}", label="DELETE item")]
        for body in (
            [{"id": kid}],
            [kid],
            {"negativeKeywords": [{"id": kid}]},
            {"negativeKeywordIds": [kid]},
            {"id": kid},
        ):
            attempts.append(Attempt("DELETE", bulk, body, label=f"DELETE bulk {body!r}"))
        for status in REMOVAL_STATUSES:
            attempts.extend(self._status_attempts(bulk, kid, status))
        self.invoker.invoke_variants(
            attempts,
            f"Unable to remove negative keyword {kid} using supported API payload variants.",
            cancel=cancel,
        )

    def _update_negative_status_at(
        self,
        base_path: str,
        negative_keyword_id: int,
        status: str,
        cancel: Optional[CancelToken],
    ) -> None:
        normalized = keyword_status_payload(status)
        if not normalized:
            raise ValidationError(
                f"Unsupported negative keyword status: {status}", field="status", value=status
            )
        self.invoker.invoke_variants(
            self._status_attempts(f"{base_path}/bulk", negative_keyword_id, normalized),
            f"Unable to update negative keyword {negative_keyword_id} to {normalized} "
            "using supported API payload variants.",
            cancel=cancel,
        )

    @staticmethod
    def _status_attempts(bulk_path: str, negative_keyword_id: int, status: str) -> List[Attempt]:
        entry = {"id": negative_keyword_id, "status": status}
        return [
            Attempt("PUT", bulk_path, [entry], label=f"PUT bulk array {status}"),
            Attempt("PUT", bulk_path, {"negativeKeywords": [entry]}, label=f"PUT bulk wrapped {status}"),
            Attempt("PUT", bulk_path, entry, label=f"PUT bulk bare {status}"),
        ]
