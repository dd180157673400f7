"""Ad and creative operations."""

import logging
from typing import Any, Dict, List, Optional

from ..models import Ad, Creative
from ..utils.cancellation import CancelToken
from .normalize import parse_ad, parse_creative

logger = logging.getLogger(__name__)

Selector = Dict[str, Any]


class AdsMixin:
    """Ad and creative endpoints."""

    def fetch_ads(
        self, campaign_id: int, ad_group_id: int, cancel: Optional[CancelToken] = None
    ) -> List[Ad]:
        payload = self._get(f"campaigns/{campaign_id}/adgroups/{ad_group_id}/ads", cancel=cancel)
        return sorted(self._parse_items(payload, parse_ad), key=lambda a: a.id)

    def fetch_ad(
        self,
        campaign_id: int,
        ad_group_id: int,
        ad_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> Ad:
        payload = self._get(
            f"campaigns/{campaign_id}/adgroups/{ad_group_id}/ads/{ad_id}", cancel=cancel
        )
        return self._parse_one(payload, parse_ad, "ad")

    def find_campaign_ads(
        self, campaign_id: int, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[Ad]:
        """Search the ads of one campaign with a selector.

        :param campaign_id: Campaign to search
        :type campaign_id: int
        :param selector: Selector object (conditions, orderBy, pagination)
        :type selector: Optional[Selector]
        :return: Matching ads sorted by id
        :rtype: List[Ad]
        """
        ads = self._find(f"campaigns/{campaign_id}/ads/find", selector, parse_ad, cancel)
        return sorted(ads, key=lambda a: a.id)

    def find_org_ads(
        self, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[Ad]:
        ads = self._find("ads/find", selector, parse_ad, cancel)
        return sorted(ads, key=lambda a: a.id)

    def create_ad(
        self,
        campaign_id: int,
        ad_group_id: int,
        creative_id: int,
        name: Optional[str] = None,
        status: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Ad:
        """Attach a creative to an ad group as a new ad.

        :param creative_id: Creative to serve
        :type creative_id: int
        :param name: Optional ad name
        :type name: Optional[str]
        :param status: Optional initial status
        :type status: Optional[str]
        :return: The created ad
        :rtype: Ad
        """
        body: Dict[str, Any] = {"creativeId": creative_id}
        body.update(self._ad_fields(name, status))
        payload = self._post(
            f"campaigns/{campaign_id}/adgroups/{ad_group_id}/ads", body, cancel=cancel
        )
        ad = self._parse_one(payload, parse_ad, "ad")
        logger.info("Created ad %d in ad group %d", ad.id, ad_group_id)
        return ad

    def update_ad(
        self,
        campaign_id: int,
        ad_group_id: int,
        ad_id: int,
        name: Optional[str] = None,
        status: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Ad:
        payload = self._put(
            f"campaigns/{campaign_id}/adgroups/{ad_group_id}/ads/{ad_id}",
            self._ad_fields(name, status),
            cancel=cancel,
        )
        return self._parse_one(payload, parse_ad, "ad")

    def delete_ad(
        self,
        campaign_id: int,
        ad_group_id: int,
        ad_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self._delete(f"campaigns/{campaign_id}/adgroups/{ad_group_id}/ads/{ad_id}", cancel=cancel)
        logger.info("Deleted ad %d", ad_id)

    @staticmethod
    def _ad_fields(name: Optional[str], status: Optional[str]) -> Dict[str, str]:
        fields = {}
        if (name or "").strip():
            fields["name"] = name.strip()
        if (status or "").strip():
            fields["status"] = status.strip().upper()
        return fields

    # -------------------------------------------------------------------------
    # Creatives
    # -------------------------------------------------------------------------

    def fetch_creatives(self, cancel: Optional[CancelToken] = None) -> List[Creative]:
        creatives = self.pages.fetch_all("creatives", parse_creative, cancel=cancel)
        return sorted(creatives, key=lambda c: c.id)

    def fetch_creative(self, creative_id: int, cancel: Optional[CancelToken] = None) -> Creative:
        payload = self._get(f"creatives/{creative_id}", cancel=cancel)
        return self._parse_one(payload, parse_creative, "creative")

    def find_creatives(
        self, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[Creative]:
        creatives = self._find("creatives/find", selector, parse_creative, cancel)
        return sorted(creatives, key=lambda c: c.id)

    def create_creative(
        self,
        adam_id: int,
        name: str,
        creative_type: str,
        product_page_id: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Creative:
        """Create a creative for an app.

        :param adam_id: App the creative belongs to
        :type adam_id: int
        :param name: Creative name
        :type name: str
        :param creative_type: e.g. ``CUSTOM_PRODUCT_PAGE``
        :type creative_type: str
        :param product_page_id: Custom product page, when the type needs one
        :type product_page_id: Optional[str]
        :return: The created creative
        :rtype: Creative
        """
        body: Dict[str, Any] = {
            "adamId": adam_id,
            "name": name.strip(),
            "type": creative_type.strip().upper(),
        }
        if (product_page_id or "").strip():
            body["productPageId"] = product_page_id.strip()
        payload = self._post("creatives", body, cancel=cancel)
        creative = self._parse_one(payload, parse_creative, "creative")
        logger.info("Created creative %d for app %d", creative.id, adam_id)
        return creative
