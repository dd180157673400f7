"""Row parsers that turn raw API objects into entity snapshots.

Each parser takes one decoded JSON value and returns a model, or None
when the row lacks the identity that makes it meaningful. Missing
optional fields get deterministic fallbacks (placeholder names,
default statuses) instead of raising.
"""

from typing import Any, Optional

from ..models import (
    Ad,
    AdGroup,
    AdRejection,
    App,
    AppAsset,
    AppDetail,
    AppEligibility,
    Campaign,
    CountryOrRegion,
    Creative,
    CustomReport,
    DeviceSizeMapping,
    GeoEntity,
    Keyword,
    Money,
    NegativeKeyword,
    ProductPage,
    ProductPageLocale,
)
from ..utils.coerce import (
    bool_from_any,
    first_id,
    first_string,
    int_from_any,
    list_from_any,
    map_from_any,
    optional_string,
    parse_bid,
    string_list,
    upper,
)


def _money(*candidates: Any) -> Optional[Money]:
    amount, currency = parse_bid(*candidates)
    if amount is None:
        return None
    return Money(amount=amount, currency=currency)


def parse_campaign(raw: Any) -> Optional[Campaign]:
    row = map_from_any(raw)
    campaign_id = first_id(row, "id", "campaignId")
    if campaign_id <= 0:
        return None
    return Campaign(
        id=campaign_id,
        name=first_string(row, "name", "campaignName") or f"Campaign {campaign_id}",
        status=upper(row.get("status")),
        adam_id=int_from_any(row.get("adamId")),
        daily_budget=_money(row.get("dailyBudgetAmount")),
    )


def parse_ad_group(raw: Any) -> Optional[AdGroup]:
    row = map_from_any(raw)
    ad_group_id = first_id(row, "id", "adGroupId")
    if ad_group_id <= 0:
        return None
    return AdGroup(
        id=ad_group_id,
        name=first_string(row, "name", "adGroupName") or f"Ad Group {ad_group_id}",
        status=upper(row.get("status")),
        default_bid=_money(row.get("defaultCpcBid"), row.get("defaultBidAmount")),
    )


def parse_keyword(raw: Any) -> Optional[Keyword]:
    row = map_from_any(raw)
    keyword_id = first_id(row, "id", "keywordId")
    if keyword_id <= 0:
        return None
    return Keyword(
        id=keyword_id,
        text=first_string(row, "keywordText", "text", "name", "keyword")
        or f"Keyword {keyword_id}",
        match_type=upper(row.get("matchType")) or "BROAD",
        status=upper(row.get("status")) or "ENABLED",
        bid=_money(row.get("bidAmount"), row.get("bid")),
    )


def parse_negative_keyword(raw: Any) -> Optional[NegativeKeyword]:
    """Negative keywords without text are dropped; the id is required too."""
    row = map_from_any(raw)
    keyword_id = first_id(row, "id", "negativeKeywordId")
    if keyword_id <= 0:
        return None
    text = first_string(row, "text", "keywordText", "keyword")
    if not text:
        return None
    return NegativeKeyword(
        id=keyword_id,
        text=text,
        match_type=upper(row.get("matchType")) or "EXACT",
        status=upper(row.get("status")) or "ACTIVE",
    )


def parse_ad(raw: Any) -> Optional[Ad]:
    row = map_from_any(raw)
    ad_id = int_from_any(row.get("id"))
    if ad_id <= 0:
        return None
    return Ad(
        id=ad_id,
        campaign_id=int_from_any(row.get("campaignId")),
        ad_group_id=int_from_any(row.get("adGroupId")),
        creative_id=int_from_any(row.get("creativeId")),
        name=first_string(row, "name") or f"Ad {ad_id}",
        creative_type=upper(row.get("creativeType")),
        status=upper(row.get("status")),
        serving_status=upper(row.get("servingStatus")),
        serving_state_reasons=string_list(row.get("servingStateReasons")),
        deleted=bool_from_any(row.get("deleted")),
        creation_time=optional_string(row.get("creationTime")),
        modification_time=optional_string(row.get("modificationTime")),
    )


def parse_creative(raw: Any) -> Optional[Creative]:
    row = map_from_any(raw)
    creative_id = int_from_any(row.get("id"))
    if creative_id <= 0:
        return None
    return Creative(
        id=creative_id,
        org_id=int_from_any(row.get("orgId")),
        adam_id=int_from_any(row.get("adamId")),
        name=first_string(row, "name") or f"Creative {creative_id}",
        type=upper(row.get("type")),
        state=upper(row.get("state")),
        state_reasons=string_list(row.get("stateReasons")),
        product_page_id=optional_string(row.get("productPageId")),
        language_code=optional_string(row.get("languageCode")),
        creation_time=optional_string(row.get("creationTime")),
        modification_time=optional_string(row.get("modificationTime")),
    )


def parse_product_page(raw: Any) -> Optional[ProductPage]:
    row = map_from_any(raw)
    page_id = first_string(row, "id")
    if not page_id:
        return None
    return ProductPage(
        id=page_id,
        adam_id=int_from_any(row.get("adamId")),
        name=first_string(row, "name") or f"Product Page {page_id}",
        state=upper(row.get("state")),
        deep_link=optional_string(row.get("deepLink")),
        creation_time=optional_string(row.get("creationTime")),
        modification_time=optional_string(row.get("modificationTime")),
    )


def parse_product_page_locale(raw: Any) -> Optional[ProductPageLocale]:
    row = map_from_any(raw)
    language_code = first_string(row, "languageCode")
    language = first_string(row, "language")
    product_page_id = first_string(row, "productPageId")
    if not (language_code or language or product_page_id):
        return None
    return ProductPageLocale(
        adam_id=int_from_any(row.get("adamId")),
        product_page_id=product_page_id,
        language=language,
        language_code=language_code,
        app_name=first_string(row, "appName"),
        sub_title=optional_string(row.get("subTitle")),
        short_description=optional_string(row.get("shortDescription")),
        promotional_text=optional_string(row.get("promotionalText")),
    )


def parse_country_or_region(raw: Any) -> Optional[CountryOrRegion]:
    row = map_from_any(raw)
    code = upper(row.get("code"))
    if not code:
        return None
    return CountryOrRegion(code=code, display_name=first_string(row, "displayName", "name"))


def parse_device_size_mapping(raw: Any) -> Optional[DeviceSizeMapping]:
    row = map_from_any(raw)
    if not row:
        return None
    device_class = first_string(row, "deviceClass", "appPreviewDevice", "id")
    display_name = first_string(row, "displayName", "name") or device_class
    if not (device_class or display_name):
        return None
    return DeviceSizeMapping(device_class=device_class, display_name=display_name)


def parse_app(raw: Any) -> Optional[App]:
    row = map_from_any(raw)
    adam_id = int_from_any(row.get("adamId"))
    if adam_id <= 0:
        return None
    return App(
        adam_id=adam_id,
        app_name=first_string(row, "appName", "name"),
        developer_name=first_string(row, "developerName"),
        country_or_region=first_string(row, "countryOrRegion", "countryCode").upper(),
    )


def parse_app_detail(raw: Any) -> Optional[AppDetail]:
    app = parse_app(raw)
    if app is None:
        return None
    row = map_from_any(raw)
    languages = [
        first_string(map_from_any(detail), "language")
        for detail in list_from_any(row.get("details"))
    ]
    return AppDetail(
        **app.model_dump(),
        primary_genre_id=int_from_any(row.get("primaryGenreId")),
        icon_url=optional_string(row.get("iconUrl")),
        languages=[language for language in languages if language],
    )


def parse_app_eligibility(raw: Any) -> Optional[AppEligibility]:
    row = map_from_any(raw)
    adam_id = int_from_any(row.get("adamId"))
    if adam_id <= 0:
        return None
    return AppEligibility(
        adam_id=adam_id,
        eligible=bool_from_any(row.get("eligible")),
        min_age=int_from_any(row.get("minAge")),
        state=upper(row.get("state")),
        app_name=first_string(row, "appName", "name"),
        supply_source=optional_string(row.get("supplySource")),
    )


def parse_geo_entity(raw: Any) -> Optional[GeoEntity]:
    row = map_from_any(raw)
    geo_id = first_string(row, "id", "geoId")
    display_name = first_string(row, "displayName", "name")
    if not (geo_id or display_name):
        return None
    return GeoEntity(
        id=geo_id,
        display_name=display_name,
        entity=upper(row.get("entity")),
        country_code=first_string(row, "countryCode", "countryOrRegion").upper(),
    )


def parse_ad_rejection(raw: Any) -> Optional[AdRejection]:
    row = map_from_any(raw)
    rejection_id = int_from_any(row.get("id"))
    if rejection_id <= 0:
        return None
    return AdRejection(
        id=rejection_id,
        adam_id=int_from_any(row.get("adamId")),
        product_page_id=optional_string(row.get("productPageId")),
        reason_code=first_string(row, "reasonCode"),
        reason_type=upper(row.get("reasonType")),
        reason_level=upper(row.get("reasonLevel")),
        language_code=first_string(row, "languageCode"),
        country_or_region=upper(row.get("countryOrRegion")),
        comment=optional_string(row.get("comment")),
        asset_gen_id=optional_string(row.get("assetGenId")),
        app_preview_device=optional_string(row.get("appPreviewDevice")),
        supply_source=optional_string(row.get("supplySource")),
    )


def parse_app_asset(raw: Any) -> Optional[AppAsset]:
    row = map_from_any(raw)
    asset_type = upper(row.get("assetType"))
    asset_gen_id = optional_string(row.get("assetGenId"))
    asset_url = optional_string(row.get("assetURL"))
    if not (asset_type or asset_gen_id or asset_url):
        return None
    return AppAsset(
        adam_id=int_from_any(row.get("adamId")),
        asset_type=asset_type,
        asset_gen_id=asset_gen_id,
        app_preview_device=optional_string(row.get("appPreviewDevice")),
        orientation=upper(row.get("orientation")),
        asset_url=asset_url,
        asset_video_url=optional_string(row.get("assetVideoUrl")),
        source_height=int_from_any(row.get("sourceHeight")),
        source_width=int_from_any(row.get("sourceWidth")),
        deleted=bool_from_any(row.get("deleted")),
    )


def parse_custom_report(raw: Any) -> Optional[CustomReport]:
    """Parse a custom report resource; reports without a positive id are dropped."""
    row = map_from_any(raw)
    report_id = int_from_any(row.get("id"))
    if report_id <= 0:
        return None
    return CustomReport(
        id=report_id,
        name=first_string(row, "name") or f"Custom Report {report_id}",
        granularity=upper(row.get("granularity")) or "DAILY",
        state=upper(row.get("state")),
        download_uri=optional_string(row.get("downloadUri")),
        dimensions=string_list(row.get("dimensions")),
        metrics=string_list(row.get("metrics")),
        start_time=optional_string(row.get("startTime")),
        end_time=optional_string(row.get("endTime")),
        date_range=optional_string(row.get("dateRange")),
        creation_time=optional_string(row.get("creationTime")),
        modification_time=optional_string(row.get("modificationTime")),
    )

