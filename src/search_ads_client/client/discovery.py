"""Read-only discovery endpoints: apps, product pages, geo and rejections."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..models import (
    AdRejection,
    App,
    AppAsset,
    AppDetail,
    AppEligibility,
    CountryOrRegion,
    DeviceSizeMapping,
    GeoEntity,
    ProductPage,
    ProductPageLocale,
)
from ..utils.cancellation import CancelToken
from ..utils.coerce import extract_list, map_from_any
from .normalize import (
    parse_ad_rejection,
    parse_app,
    parse_app_asset,
    parse_app_detail,
    parse_app_eligibility,
    parse_country_or_region,
    parse_device_size_mapping,
    parse_geo_entity,
    parse_product_page,
    parse_product_page_locale,
)

Selector = Dict[str, Any]


def _segment(value: str) -> str:
    return quote(value.strip(), safe="")


class DiscoveryMixin:
    """Apps, product pages, geo search, ad rejections and app assets."""

    # -------------------------------------------------------------------------
    # Product pages
    # -------------------------------------------------------------------------

    def fetch_product_pages(self, adam_id: int, cancel: Optional[CancelToken] = None) -> List[ProductPage]:
        payload = self._get(f"apps/{adam_id}/product-pages", cancel=cancel)
        return sorted(self._parse_items(payload, parse_product_page), key=lambda p: p.id)

    def fetch_product_page(
        self, adam_id: int, product_page_id: str, cancel: Optional[CancelToken] = None
    ) -> ProductPage:
        payload = self._get(
            f"apps/{adam_id}/product-pages/{_segment(product_page_id)}", cancel=cancel
        )
        return self._parse_one(payload, parse_product_page, "product-page")

    def fetch_product_page_locales(
        self,
        adam_id: int,
        product_page_id: str,
        expand: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> List[ProductPageLocale]:
        """Fetch the locale details of a product page.

        :param adam_id: App id
        :type adam_id: int
        :param product_page_id: Product page id
        :type product_page_id: str
        :param expand: Request expanded locale fields
        :type expand: bool
        :return: Locales sorted by language code
        :rtype: List[ProductPageLocale]
        """
        params = {"expand": "true"} if expand else None
        payload = self._get(
            f"apps/{adam_id}/product-pages/{_segment(product_page_id)}/locale-details",
            params=params,
            cancel=cancel,
        )
        locales = self._parse_items(payload, parse_product_page_locale)
        return sorted(locales, key=lambda loc: loc.language_code or loc.language)

    # -------------------------------------------------------------------------
    # Reference data
    # -------------------------------------------------------------------------

    def fetch_supported_countries_or_regions(
        self, cancel: Optional[CancelToken] = None
    ) -> List[CountryOrRegion]:
        payload = self._get("countries-or-regions", cancel=cancel)
        return sorted(self._parse_items(payload, parse_country_or_region), key=lambda c: c.code)

    def fetch_creative_app_mapping_devices(
        self, cancel: Optional[CancelToken] = None
    ) -> List[DeviceSizeMapping]:
        """Fetch device classes; this endpoint may answer with a bare array."""
        payload = self._get("creativeappmappings/devices", cancel=cancel)
        devices = self._parse_items(payload, parse_device_size_mapping, extract=extract_list)
        return sorted(devices, key=lambda d: d.device_class or d.display_name)

    # -------------------------------------------------------------------------
    # Apps
    # -------------------------------------------------------------------------

    def search_apps(
        self,
        query: str,
        return_owned_apps: bool = False,
        limit: int = 0,
        offset: int = 0,
        cancel: Optional[CancelToken] = None,
    ) -> List[App]:
        """Search the App Store catalog.

        :param query: Search text
        :type query: str
        :param return_owned_apps: Restrict to apps the organization owns
        :type return_owned_apps: bool
        :param limit: Page size; omitted when not positive
        :type limit: int
        :param offset: Page offset; omitted when not positive
        :type offset: int
        :return: Apps sorted by adam id
        :rtype: List[App]
        """
        params: Dict[str, Any] = {"query": query.strip()}
        if return_owned_apps:
            params["returnOwnedApps"] = "true"
        if limit > 0:
            params["limit"] = limit
        if offset > 0:
            params["offset"] = offset
        payload = self._get("search/apps", params=params, cancel=cancel)
        return sorted(self._parse_items(payload, parse_app), key=lambda a: a.adam_id)

    def fetch_app(self, adam_id: int, cancel: Optional[CancelToken] = None) -> AppDetail:
        payload = self._get(f"apps/{adam_id}", cancel=cancel)
        return self._parse_one(payload, parse_app_detail, "app")

    def fetch_localized_app_details(
        self, adam_id: int, cancel: Optional[CancelToken] = None
    ) -> AppDetail:
        payload = self._get(f"apps/{adam_id}/localized-details", cancel=cancel)
        return self._parse_one(payload, parse_app_detail, "localized app")

    def find_app_eligibility(
        self, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[AppEligibility]:
        records = self._find("app-eligibility/find", selector, parse_app_eligibility, cancel)
        return sorted(records, key=lambda r: r.adam_id)

    def find_app_assets(
        self, adam_id: int, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[AppAsset]:
        assets = self._find(f"apps/{adam_id}/assets/find", selector, parse_app_asset, cancel)
        return sorted(assets, key=lambda a: a.asset_gen_id or a.asset_url or "")

    # -------------------------------------------------------------------------
    # Geo
    # -------------------------------------------------------------------------

    def search_geo(
        self,
        query: str,
        country_code: Optional[str] = None,
        entity: Optional[str] = None,
        limit: int = 0,
        cancel: Optional[CancelToken] = None,
    ) -> List[GeoEntity]:
        params: Dict[str, Any] = {"query": query.strip()}
        if (country_code or "").strip():
            params["countrycode"] = country_code.strip().upper()
        if (entity or "").strip():
            params["entity"] = entity.strip()
        if limit > 0:
            params["limit"] = limit
        payload = self._get("search/geo", params=params, cancel=cancel)
        return sorted(self._parse_items(payload, parse_geo_entity), key=lambda g: g.display_name)

    def fetch_geo_data(self, geo_id: str, cancel: Optional[CancelToken] = None) -> Dict[str, Any]:
        """Fetch raw geo data; non-object payloads are wrapped as ``{"data": ...}``."""
        payload = self._get("geodata", params={"geoId": geo_id.strip()}, cancel=cancel)
        obj = map_from_any(payload)
        if obj:
            return obj
        return {"data": payload}

    # -------------------------------------------------------------------------
    # Ad rejections
    # -------------------------------------------------------------------------

    def find_ad_rejections(
        self, selector: Optional[Selector] = None, cancel: Optional[CancelToken] = None
    ) -> List[AdRejection]:
        rejections = self._find("product-page-reasons/find", selector, parse_ad_rejection, cancel)
        return sorted(rejections, key=lambda r: r.id)

    def fetch_ad_rejection(self, reason_id: int, cancel: Optional[CancelToken] = None) -> AdRejection:
        payload = self._get(f"product-page-reasons/{reason_id}", cancel=cancel)
        return self._parse_one(payload, parse_ad_rejection, "ad-rejection")
