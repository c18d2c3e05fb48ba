from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

import storefront.main as main_module
from storefront.storefront_api import StorefrontApiError
from tests.factories import choco_box_data, combined_listing_data, page_content_data, shop_data


@pytest.fixture()
def api_client():
    with TestClient(main_module.app) as client:
        yield client


@pytest.fixture()
def fake_upstreams(monkeypatch):
    state = {
        "product": choco_box_data(),
        "content": page_content_data(),
        "recommended_error": None,
        "content_requests": [],
        "product_requests": [],
    }

    async def fake_query_product(*, handle, selected_options, country, language):
        state["product_requests"].append(
            {"handle": handle, "options": [(o.name, o.value) for o in selected_options], "country": country}
        )
        return {"shop": shop_data(), "product": state["product"]}

    async def fake_query_shop(*, country, language):
        return shop_data()

    async def fake_query_recommended_products(*, product_id, country, language):
        if state["recommended_error"] is not None:
            raise state["recommended_error"]
        return [{"id": "gid://shopify/Product/900", "handle": "gift-card"}]

    async def fake_load_page(*, type, handle=None, locale=None):
        state["content_requests"].append({"type": type, "handle": handle})
        return state["content"]

    monkeypatch.setattr(main_module.storefront_api, "query_product", fake_query_product)
    monkeypatch.setattr(main_module.storefront_api, "query_shop", fake_query_shop)
    monkeypatch.setattr(main_module.storefront_api, "query_recommended_products", fake_query_recommended_products)
    monkeypatch.setattr(main_module.page_content_loader, "load_page", fake_load_page)
    return state


def _ndjson(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_health(api_client):
    assert api_client.get("/health").json() == {"ok": True}


def test_home_index(api_client, fake_upstreams):
    response = api_client.get("/")

    assert response.status_code == 200
    payload = response.json()
    assert payload["analytics"] == {"pageType": "home"}
    assert payload["shop"]["name"] == "Tastee"
    assert response.headers["cache-control"] == "public, max-age=1, stale-while-revalidate=9"
    assert fake_upstreams["content_requests"] == [{"type": "INDEX", "handle": None}]


def test_home_active_locale_is_index(api_client, fake_upstreams):
    response = api_client.get("/fr-ca")

    assert response.status_code == 200
    assert response.json()["analytics"] == {"pageType": "home"}
    assert fake_upstreams["content_requests"] == [{"type": "INDEX", "handle": None}]


def test_home_unknown_segment_is_custom_page(api_client, fake_upstreams):
    response = api_client.get("/fr-custom")

    assert response.status_code == 200
    assert response.json()["analytics"] is None
    assert fake_upstreams["content_requests"] == [{"type": "CUSTOM", "handle": "fr-custom"}]


def test_home_without_content_fails(api_client, fake_upstreams):
    fake_upstreams["content"] = None

    response = api_client.get("/")

    assert response.status_code == 500
    assert "Page content is missing" in response.json()["detail"]


def test_product_page_streams_primary_payload_then_recommended(api_client, fake_upstreams):
    response = api_client.get("/products/choco-box?Size=Large")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    primary, deferred = _ndjson(response)
    assert primary["product"]["handle"] == "choco-box"
    assert primary["selectedOptions"] == [{"name": "Size", "value": "Large"}]
    assert primary["seo"]["url"].endswith("/products/choco-box")
    assert deferred == {"recommended": [{"id": "gid://shopify/Product/900", "handle": "gift-card"}]}
    assert fake_upstreams["product_requests"][0]["options"] == [("Size", "Large")]


def test_product_page_recommended_failure_keeps_primary_payload(api_client, fake_upstreams):
    fake_upstreams["recommended_error"] = StorefrontApiError(message="recommendations unavailable")

    response = api_client.get("/products/choco-box")

    assert response.status_code == 200
    primary, deferred = _ndjson(response)
    assert primary["product"]["title"] == "Choco Box"
    assert deferred == {"recommendedError": "recommendations unavailable"}


def test_product_page_not_found(api_client, fake_upstreams):
    fake_upstreams["product"] = None

    response = api_client.get("/products/missing")

    assert response.status_code == 404


def test_product_page_localized_handle_redirect(api_client, fake_upstreams):
    fake_upstreams["product"] = choco_box_data(handle="boite-choco")

    response = api_client.get("/fr-ca/products/choco-box?Size=Large", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/fr-ca/products/boite-choco?Size=Large"
    assert fake_upstreams["product_requests"][0]["country"] == "CA"


def test_product_page_combined_listing_redirect(api_client, fake_upstreams, monkeypatch):
    fake_upstreams["product"] = combined_listing_data()
    monkeypatch.setattr(
        main_module,
        "combined_listings",
        main_module.CombinedListingConfig(redirect_to_first_variant=True, tag="combined"),
    )

    response = api_client.get("/products/choco-bar", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/products/choco-bar-red"


def test_product_page_upstream_error(api_client, fake_upstreams, monkeypatch):
    async def failing_query_product(**kwargs):
        raise StorefrontApiError(message="Storefront API call failed (500): boom")

    monkeypatch.setattr(main_module.storefront_api, "query_product", failing_query_product)

    response = api_client.get("/products/choco-box")

    assert response.status_code == 502
    assert "boom" in response.json()["detail"]


def test_variant_url_adds_missing_options(api_client, fake_upstreams):
    response = api_client.post(
        "/products/choco-box/variant-url",
        json={"pathname": "/products/choco-box", "search": "?Size=Large"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["url"] == "/products/choco-box?Size=Large&Flavor=Dark"
    assert payload["variant"]["id"] == "gid://shopify/ProductVariant/1"
    assert payload["analytics"]["products"][0]["variantId"] == "gid://shopify/ProductVariant/1"


def test_variant_url_noop_when_already_in_sync(api_client, fake_upstreams):
    response = api_client.post(
        "/products/choco-box/variant-url",
        json={"pathname": "/products/choco-box", "search": "Size=Large&Flavor=Dark"},
    )

    assert response.status_code == 200
    assert response.json()["url"] is None


def test_variant_url_skips_combined_listing(api_client, fake_upstreams):
    fake_upstreams["product"] = combined_listing_data()

    response = api_client.post(
        "/products/choco-bar/variant-url",
        json={"pathname": "/products/choco-bar", "search": ""},
    )

    assert response.status_code == 200
    assert response.json()["url"] is None
