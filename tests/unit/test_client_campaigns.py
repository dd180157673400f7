"""Unit tests for campaign, ad group and ad operations."""

import json

import pytest

from search_ads_client.exceptions import APIError, AuthError
from search_ads_client.models import Money


def body(request):
    return json.loads(request.content)


class TestRequestHeaders:
    """Authenticated requests carry the bearer token and org context."""

    def test_headers(self, client, fake_api):
        fake_api.on("GET", "campaigns", json={"data": []})
        client.fetch_campaigns()
        request = fake_api.calls("GET", "campaigns")[0]
        assert request.headers["Authorization"] == "Bearer test-access-token"
        assert request.headers["X-AP-Context"] == "orgId=4242"

    def test_validate_credentials_returns_org(self, client):
        assert client.validate_credentials() == "4242"

    def test_token_is_reused_across_calls(self, client, fake_api):
        fake_api.on("GET", "campaigns", json={"data": []})
        client.fetch_campaigns()
        client.fetch_campaigns()
        assert len(fake_api.calls("POST", "https://appleid.apple.com/auth/oauth2/token")) == 1

    def test_missing_credentials(self, mock_transport):
        from search_ads_client import SearchAdsClient, Settings, StaticCredentialSource

        c = SearchAdsClient(
            settings=Settings(),
            credential_source=StaticCredentialSource(None),
            transport=mock_transport,
        )
        with pytest.raises(AuthError):
            c.fetch_campaigns()


class TestCampaigns:
    def test_fetch_is_sorted_and_normalized(self, client, fake_api):
        fake_api.on(
            "GET",
            "campaigns",
            json={
                "data": [
                    {"id": 30, "name": "Brand", "status": "enabled", "adamId": "123",
                     "dailyBudgetAmount": {"amount": "50.00", "currency": "USD"}},
                    {"campaignId": "10", "status": "PAUSED"},
                ]
            },
        )
        campaigns = client.fetch_campaigns()
        assert [c.id for c in campaigns] == [10, 30]
        assert campaigns[0].name == "Campaign 10"
        assert campaigns[1].status == "ENABLED"
        assert campaigns[1].adam_id == 123
        assert campaigns[1].daily_budget == Money(amount=50.0, currency="USD")

    def test_create_body(self, client, fake_api):
        fake_api.on("POST", "campaigns", json={"data": {"id": 555, "status": "PAUSED"}})

        campaign = client.create_campaign(
            "Launch", "PAUSED", 25, "USD", budget_type="daily", adam_id="900", countries=["US", "GB"]
        )

        sent = body(fake_api.calls("POST", "campaigns")[0])
        assert sent["orgId"] == "4242"
        assert sent["adChannelType"] == "SEARCH"
        assert sent["supplySources"] == ["APPSTORE_SEARCH_RESULTS"]
        assert sent["billingEvent"] == "TAPS"
        assert sent["paymentModel"] == "PAYG"
        assert sent["dailyBudgetAmount"] == {"amount": "25.0000", "currency": "USD"}
        assert sent["adamId"] == 900
        assert sent["countriesOrRegions"] == ["US", "GB"]
        assert sent["startTime"] == "2025-03-15T12:00:00Z"
        assert "budgetType" not in sent
        assert "endTime" not in sent
        assert campaign.id == 555
        assert campaign.name == "Launch"

    def test_create_non_daily_budget_type(self, client, fake_api):
        fake_api.on("POST", "campaigns", json={"data": {"id": 1}})
        client.create_campaign("x", "ENABLED", 1, "USD", budget_type="lifetime")
        assert body(fake_api.calls("POST", "campaigns")[0])["budgetType"] == "LIFETIME"

    def test_update_status(self, client, fake_api):
        fake_api.on("PUT", "campaigns/7", json={"data": {"id": 7, "name": "n", "status": "PAUSED"}})
        campaign = client.update_campaign_status(7, " paused ")
        assert body(fake_api.calls("PUT", "campaigns/7")[0]) == {"campaign": {"status": "PAUSED"}}
        assert campaign.status == "PAUSED"

    def test_update_daily_budget(self, client, fake_api):
        fake_api.on("PUT", "campaigns/7", json={})
        campaign = client.update_campaign_daily_budget(7, 12.5, "usd")
        assert body(fake_api.calls("PUT", "campaigns/7")[0]) == {
            "campaign": {"dailyBudgetAmount": {"amount": "12.5000", "currency": "USD"}}
        }
        assert campaign.id == 7
        assert campaign.name == "Campaign 7"

    def test_delete(self, client, fake_api):
        fake_api.on("DELETE", "campaigns/7", status=204)
        client.delete_campaign(7)
        assert len(fake_api.calls("DELETE", "campaigns/7")) == 1


class TestAdGroups:
    def test_fetch_falls_back_through_field_names(self, client, fake_api):
        fake_api.on(
            "GET",
            "campaigns/1/adgroups",
            json={"data": [{"adGroupId": 5, "adGroupName": "Exact", "defaultCpcBid": {"amount": "1.2", "currency": "EUR"}}]},
        )
        groups = client.fetch_ad_groups(1)
        assert groups[0].id == 5
        assert groups[0].name == "Exact"
        assert groups[0].default_bid == Money(amount=1.2, currency="EUR")

    def test_create_body(self, client, fake_api):
        fake_api.on("POST", "campaigns/1/adgroups", json={"data": {"id": 8, "name": "G"}})
        group = client.create_ad_group(1, "G", "ENABLED", 0.75, "USD", automated_keywords_opt_in=False)
        sent = body(fake_api.calls("POST", "campaigns/1/adgroups")[0])
        assert sent["pricingModel"] == "CPC"
        assert sent["defaultBidAmount"] == {"amount": "0.7500", "currency": "USD"}
        assert sent["automatedKeywordsOptIn"] is False
        assert sent["campaignId"] == 1
        assert group.id == 8
        assert group.default_bid == Money(amount=0.75, currency="USD")

    def test_update_status(self, client, fake_api):
        fake_api.on("PUT", "campaigns/1/adgroups/8", json={"data": {"id": 8, "status": "PAUSED"}})
        group = client.update_ad_group_status(1, 8, "paused")
        assert body(fake_api.calls("PUT", "campaigns/1/adgroups/8")[0]) == {"status": "PAUSED"}
        assert group.status == "PAUSED"
        assert group.name == "Ad Group 8"

    def test_delete_falls_back_on_404(self, client, fake_api):
        fake_api.on("DELETE", "adgroups/8", status=204)
        client.delete_ad_group(1, 8)
        assert len(fake_api.calls("DELETE", "campaigns/1/adgroups/8")) == 1
        assert len(fake_api.calls("DELETE", "adgroups/8")) == 1

    def test_delete_does_not_fall_back_on_500(self, client, fake_api):
        fake_api.on("DELETE", "campaigns/1/adgroups/8", status=500, json={"error": "x"})
        with pytest.raises(APIError):
            client.delete_ad_group(1, 8)
        assert fake_api.calls("DELETE", "adgroups/8") == []


class TestAdsAndCreatives:
    def test_create_ad(self, client, fake_api):
        fake_api.on("POST", "campaigns/1/adgroups/2/ads", json={"data": {"id": 3, "creativeId": 4}})
        ad = client.create_ad(1, 2, 4, name=" Spring ", status="enabled")
        assert body(fake_api.calls("POST", "campaigns/1/adgroups/2/ads")[0]) == {
            "creativeId": 4,
            "name": "Spring",
            "status": "ENABLED",
        }
        assert ad.id == 3

    def test_find_ads_posts_selector(self, client, fake_api):
        fake_api.on("POST", "campaigns/1/ads/find", json={"data": [{"id": 9}, {"id": 2}]})
        ads = client.find_campaign_ads(1, {"conditions": []})
        assert [a.id for a in ads] == [2, 9]
        assert body(fake_api.calls("POST", "campaigns/1/ads/find")[0]) == {"conditions": []}

    def test_invalid_single_payload(self, client, fake_api):
        fake_api.on("GET", "campaigns/1/adgroups/2/ads/3", json={"data": {"name": "no id"}})
        with pytest.raises(APIError, match="invalid ad response payload"):
            client.fetch_ad(1, 2, 3)

    def test_create_creative(self, client, fake_api):
        fake_api.on("POST", "creatives", json={"data": {"id": 11, "adamId": 900}})
        creative = client.create_creative(900, "CPP", "custom_product_page", product_page_id="pp-1")
        assert body(fake_api.calls("POST", "creatives")[0]) == {
            "adamId": 900,
            "name": "CPP",
            "type": "CUSTOM_PRODUCT_PAGE",
            "productPageId": "pp-1",
        }
        assert creative.id == 11
