"""Campaign and ad group operations."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from ..models import AdGroup, Campaign, Money
from ..utils.cancellation import CancelToken
from ..utils.coerce import (
    extract_data_object,
    first_id,
    first_string,
    int_from_any,
    map_from_any,
    parse_bid,
    upper,
)
from .normalize import parse_ad_group, parse_campaign

logger = logging.getLogger(__name__)


def format_amount(amount: float) -> str:
    """Render a money amount the way the API expects (four decimals)."""
    return "%.4f" % amount


def money_payload(amount: float, currency: str) -> Dict[str, str]:
    return {"amount": format_amount(amount), "currency": currency}


def rfc3339(value) -> str:
    return value.isoformat().replace("+00:00", "Z")


class CampaignsMixin:
    """Campaign and ad group endpoints."""

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

    def fetch_campaigns(self, cancel: Optional[CancelToken] = None) -> List[Campaign]:
        """Fetch every campaign in the organization, sorted by id.

        :param cancel: Cancellation token
        :type cancel: Optional[CancelToken]
        :return: Campaign snapshots
        :rtype: List[Campaign]
        """
        campaigns = self.pages.fetch_all("campaigns", parse_campaign, cancel=cancel)
        return sorted(campaigns, key=lambda c: c.id)

    def create_campaign(
        self,
        name: str,
        status: str,
        budget_amount: float,
        budget_currency: str,
        budget_type: Optional[str] = None,
        adam_id: Optional[Union[int, str]] = None,
        countries: Optional[Sequence[str]] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Campaign:
        """Create a search results campaign.

        Channel, supply source, billing event and payment model are fixed.
        ``budget_type`` is only sent when it is something other than
        DAILY, and ``start_time`` defaults to now.

        :param name: Campaign name
        :type name: str
        :param status: Initial status, e.g. ``ENABLED`` or ``PAUSED``
        :type status: str
        :param budget_amount: Daily budget amount
        :type budget_amount: float
        :param budget_currency: Currency code of the budget
        :type budget_currency: str
        :param budget_type: Optional budget type
        :type budget_type: Optional[str]
        :param adam_id: App being promoted
        :type adam_id: Optional[Union[int, str]]
        :param countries: Countries or regions to serve in
        :type countries: Optional[Sequence[str]]
        :param start_time: RFC 3339 start time
        :type start_time: Optional[str]
        :param end_time: RFC 3339 end time
        :type end_time: Optional[str]
        :return: The created campaign
        :rtype: Campaign
        """
        context = self.token_manager.authenticate(cancel)
        body: Dict[str, Any] = {
            "orgId": context.org_id,
            "name": name,
            "status": status,
            "adChannelType": "SEARCH",
            "supplySources": ["APPSTORE_SEARCH_RESULTS"],
            "billingEvent": "TAPS",
            "paymentModel": "PAYG",
            "startTime": (start_time or "").strip() or rfc3339(self._now()),
            "dailyBudgetAmount": money_payload(budget_amount, budget_currency),
        }
        normalized_type = (budget_type or "").strip().upper()
        if normalized_type and normalized_type != "DAILY":
            body["budgetType"] = normalized_type
        resolved_adam_id = int_from_any(adam_id)
        if resolved_adam_id > 0:
            body["adamId"] = resolved_adam_id
        if countries:
            body["countriesOrRegions"] = list(countries)
        if (end_time or "").strip():
            body["endTime"] = end_time.strip()

        payload = self._post("campaigns", body, cancel=cancel)
        item = map_from_any(map_from_any(payload).get("data"))
        campaign_id = int_from_any(item.get("id"))
        logger.info("Created campaign %d (%s)", campaign_id, name)
        return Campaign(
            id=campaign_id,
            name=first_string(item, "name") or name,
            status=upper(item.get("status")) or status.strip().upper(),
            adam_id=int_from_any(item.get("adamId")) or max(resolved_adam_id, 0),
            daily_budget=Money(amount=budget_amount, currency=budget_currency),
        )

    def update_campaign_status(
        self, campaign_id: int, status: str, cancel: Optional[CancelToken] = None
    ) -> Campaign:
        """Set a campaign's status.

        :param campaign_id: Campaign to update
        :type campaign_id: int
        :param status: New status
        :type status: str
        :return: The updated campaign
        :rtype: Campaign
        """
        normalized = status.strip().upper()
        payload = self._put(
            f"campaigns/{campaign_id}", {"campaign": {"status": normalized}}, cancel=cancel
        )
        return self._campaign_from_update(payload, campaign_id, fallback_status=normalized)

    def update_campaign_daily_budget(
        self,
        campaign_id: int,
        budget_amount: float,
        budget_currency: str,
        cancel: Optional[CancelToken] = None,
    ) -> Campaign:
        """Set a campaign's daily budget.

        :param campaign_id: Campaign to update
        :type campaign_id: int
        :param budget_amount: New daily budget
        :type budget_amount: float
        :param budget_currency: Currency code
        :type budget_currency: str
        :return: The updated campaign
        :rtype: Campaign
        """
        currency = budget_currency.strip().upper()
        payload = self._put(
            f"campaigns/{campaign_id}",
            {"campaign": {"dailyBudgetAmount": money_payload(budget_amount, currency)}},
            cancel=cancel,
        )
        return self._campaign_from_update(payload, campaign_id)

    def delete_campaign(self, campaign_id: int, cancel: Optional[CancelToken] = None) -> None:
        self._delete(f"campaigns/{campaign_id}", cancel=cancel)
        logger.info("Deleted campaign %d", campaign_id)

    @staticmethod
    def _campaign_from_update(payload: Any, campaign_id: int, fallback_status: str = "") -> Campaign:
        item = extract_data_object(payload)
        resolved_id = int_from_any(item.get("id"))
        if resolved_id <= 0:
            resolved_id = campaign_id
        amount, currency = parse_bid(item.get("dailyBudgetAmount"))
        return Campaign(
            id=resolved_id,
            name=first_string(item, "name") or f"Campaign {resolved_id}",
            status=upper(item.get("status")) or fallback_status,
            adam_id=int_from_any(item.get("adamId")),
            daily_budget=Money(amount=amount, currency=currency) if amount is not None else None,
        )

    # -------------------------------------------------------------------------
    # Ad groups
    # -------------------------------------------------------------------------

    def fetch_ad_groups(self, campaign_id: int, cancel: Optional[CancelToken] = None) -> List[AdGroup]:
        """Fetch every ad group of a campaign, sorted by id."""
        ad_groups = self.pages.fetch_all(
            f"campaigns/{campaign_id}/adgroups", parse_ad_group, cancel=cancel
        )
        return sorted(ad_groups, key=lambda g: g.id)

    def create_ad_group(
        self,
        campaign_id: int,
        name: str,
        status: str,
        default_bid: float,
        currency: str,
        automated_keywords_opt_in: Optional[bool] = None,
        cancel: Optional[CancelToken] = None,
    ) -> AdGroup:
        """Create a CPC ad group starting now.

        :param campaign_id: Parent campaign
        :type campaign_id: int
        :param name: Ad group name
        :type name: str
        :param status: Initial status
        :type status: str
        :param default_bid: Default max CPT bid
        :type default_bid: float
        :param currency: Bid currency
        :type currency: str
        :param automated_keywords_opt_in: Search match opt-in; omitted when None
        :type automated_keywords_opt_in: Optional[bool]
        :return: The created ad group
        :rtype: AdGroup
        """
        context = self.token_manager.authenticate(cancel)
        body: Dict[str, Any] = {
            "orgId": context.org_id,
            "campaignId": campaign_id,
            "name": name,
            "status": status,
            "pricingModel": "CPC",
            "defaultBidAmount": money_payload(default_bid, currency),
            "startTime": rfc3339(self._now()),
        }
        if automated_keywords_opt_in is not None:
            body["automatedKeywordsOptIn"] = automated_keywords_opt_in

        payload = self._post(f"campaigns/{campaign_id}/adgroups", body, cancel=cancel)
        item = map_from_any(map_from_any(payload).get("data"))
        amount, bid_currency = parse_bid(item.get("defaultBidAmount"), item.get("defaultCpcBid"))
        ad_group_id = first_id(item, "id", "adGroupId")
        logger.info("Created ad group %d in campaign %d", ad_group_id, campaign_id)
        return AdGroup(
            id=ad_group_id,
            name=first_string(item, "name") or name,
            status=upper(item.get("status")) or status.strip().upper(),
            default_bid=Money(
                amount=default_bid if amount is None else amount,
                currency=bid_currency or currency,
            ),
        )

    def update_ad_group_status(
        self,
        campaign_id: int,
        ad_group_id: int,
        status: str,
        cancel: Optional[CancelToken] = None,
    ) -> AdGroup:
        """Set an ad group's status."""
        normalized = status.strip().upper()
        payload = self._put(
            f"campaigns/{campaign_id}/adgroups/{ad_group_id}",
            {"status": normalized},
            cancel=cancel,
        )
        item = extract_data_object(payload)
        resolved_id = first_id(item, "id", "adGroupId") or ad_group_id
        amount, currency = parse_bid(item.get("defaultBidAmount"), item.get("defaultCpcBid"))
        return AdGroup(
            id=resolved_id,
            name=first_string(item, "name") or f"Ad Group {resolved_id}",
            status=upper(item.get("status")) or normalized,
            default_bid=Money(amount=amount, currency=currency) if amount is not None else None,
        )

    def delete_ad_group(
        self, campaign_id: int, ad_group_id: int, cancel: Optional[CancelToken] = None
    ) -> None:
        """Delete an ad group, falling back to the org-level route on 404."""
        self.invoker.request(
            "DELETE",
            [f"campaigns/{campaign_id}/adgroups/{ad_group_id}", f"adgroups/{ad_group_id}"],
            description=f"delete ad group {ad_group_id}",
            cancel=cancel,
        )
        logger.info("Deleted ad group %d", ad_group_id)
