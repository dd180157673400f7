"""Pydantic models for Search Ads entity snapshots.

Every model here is an immutable snapshot returned by a fetch. Fields
use snake_case in Python and serialize to the API's camelCase with
``model_dump(by_alias=True)``.

The models cover:
- Campaigns, ad groups, keywords and negative keywords
- Ads and creatives
- Product pages, apps and app eligibility
- Geo search entities, ad rejection reasons and app assets
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Snapshot(BaseModel):
    """Base model for immutable API snapshots.

    Provides frozen instances, camelCase aliases and population by
    field name.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Money(Snapshot):
    """Monetary amount with an optional ISO currency code.

    :param amount: Amount in major currency units
    :type amount: float
    :param currency: Currency code, e.g. ``USD``
    :type currency: Optional[str]
    """

    amount: float
    currency: Optional[str] = None


# Campaign hierarchy
class Campaign(Snapshot):
    """Campaign summary.

    :param id: Campaign identifier
    :type id: int
    :param name: Campaign name, ``"Campaign {id}"`` when absent
    :type name: str
    :param status: Upper-cased status
    :type status: str
    :param adam_id: Promoted app, 0 when unknown
    :type adam_id: int
    :param daily_budget: Daily budget when reported
    :type daily_budget: Optional[Money]
    """

    id: int
    name: str
    status: str = ""
    adam_id: int = 0
    daily_budget: Optional[Money] = None


class AdGroup(Snapshot):
    """Ad group summary.

    :param id: Ad group identifier
    :type id: int
    :param name: Ad group name, ``"Ad Group {id}"`` when absent
    :type name: str
    :param status: Upper-cased status
    :type status: str
    :param default_bid: Default CPC bid when reported
    :type default_bid: Optional[Money]
    """

    id: int
    name: str
    status: str = ""
    default_bid: Optional[Money] = None


class Keyword(Snapshot):
    """Targeting keyword summary.

    :param id: Keyword identifier
    :type id: int
    :param text: Keyword text, ``"Keyword {id}"`` when absent
    :type text: str
    :param match_type: ``BROAD`` or ``EXACT``; defaults to ``BROAD``
    :type match_type: str
    :param status: Upper-cased status; defaults to ``ENABLED``
    :type status: str
    :param bid: Keyword bid when reported
    :type bid: Optional[Money]
    """

    id: int
    text: str
    match_type: str = "BROAD"
    status: str = "ENABLED"
    bid: Optional[Money] = None


class NegativeKeyword(Snapshot):
    """Negative keyword at ad-group or campaign scope.

    Also used as input to the add operations, where ``id`` stays 0.
    """

    id: int = 0
    text: str
    match_type: str = "EXACT"
    status: str = "ACTIVE"


# Ads and creatives
class Ad(Snapshot):
    """Ad summary."""

    id: int
    campaign_id: int = 0
    ad_group_id: int = 0
    creative_id: int = 0
    name: str
    creative_type: str = ""
    status: str = ""
    serving_status: str = ""
    serving_state_reasons: List[str] = Field(default_factory=list)
    deleted: bool = False
    creation_time: Optional[str] = None
    modification_time: Optional[str] = None


class Creative(Snapshot):
    """Creative summary."""

    id: int
    org_id: int = 0
    adam_id: int = 0
    name: str
    type: str = ""
    state: str = ""
    state_reasons: List[str] = Field(default_factory=list)
    product_page_id: Optional[str] = None
    language_code: Optional[str] = None
    creation_time: Optional[str] = None
    modification_time: Optional[str] = None


# Discovery
class ProductPage(Snapshot):
    """Custom product page; identity is a string."""

    id: str
    adam_id: int = 0
    name: str
    state: str = ""
    deep_link: Optional[str] = None
    creation_time: Optional[str] = None
    modification_time: Optional[str] = None


class ProductPageLocale(Snapshot):
    adam_id: int = 0
    product_page_id: str = ""
    language: str = ""
    language_code: str = ""
    app_name: str = ""
    sub_title: Optional[str] = None
    short_description: Optional[str] = None
    promotional_text: Optional[str] = None


class CountryOrRegion(Snapshot):
    code: str
    display_name: str = ""


class DeviceSizeMapping(Snapshot):
    device_class: str = ""
    display_name: str = ""


class App(Snapshot):
    """App returned by app search."""

    adam_id: int
    app_name: str = ""
    developer_name: str = ""
    country_or_region: str = ""


class AppDetail(App):
    """App details with the languages it is localized into."""

    primary_genre_id: int = 0
    icon_url: Optional[str] = None
    languages: List[str] = Field(default_factory=list)


class AppEligibility(Snapshot):
    adam_id: int
    eligible: bool = False
    min_age: int = 0
    state: str = ""
    app_name: str = ""
    supply_source: Optional[str] = None


class GeoEntity(Snapshot):
    """Geo search result; identity is a string geo id."""

    id: str = ""
    display_name: str = ""
    entity: str = ""
    country_code: str = ""


class AdRejection(Snapshot):
    """Product page rejection reason."""

    id: int
    adam_id: int = 0
    product_page_id: Optional[str] = None
    reason_code: str = ""
    reason_type: str = ""
    reason_level: str = ""
    language_code: str = ""
    country_or_region: str = ""
    comment: Optional[str] = None
    asset_gen_id: Optional[str] = None
    app_preview_device: Optional[str] = None
    supply_source: Optional[str] = None


class AppAsset(Snapshot):
    """Screenshot or preview asset of an app."""

    adam_id: int = 0
    asset_type: str = ""
    asset_gen_id: Optional[str] = None
    app_preview_device: Optional[str] = None
    orientation: str = ""
    asset_url: Optional[str] = Field(None, alias="assetURL")
    asset_video_url: Optional[str] = None
    source_height: int = 0
    source_width: int = 0
    deleted: bool = False
