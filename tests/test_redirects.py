from __future__ import annotations

import pytest

from storefront.combined_listings import is_combined_listing
from storefront.errors import RedirectRequired
from storefront.redirects import redirect_if_combined_listing, redirect_if_handle_is_localized
from storefront.schemas import Product
from tests.factories import choco_box_data, combined_listing_data


def test_localized_handle_redirect_keeps_query_and_prefix():
    product = Product.model_validate(choco_box_data(handle="boite-choco"))

    with pytest.raises(RedirectRequired) as exc_info:
        redirect_if_handle_is_localized(
            "https://shop.test/fr-ca/products/choco-box?Size=Large&ref=abc",
            handle="choco-box",
            product=product,
        )

    assert exc_info.value.location == "/fr-ca/products/boite-choco?Size=Large&ref=abc"
    assert exc_info.value.status_code == 302


def test_localized_handle_redirect_noop_when_canonical():
    product = Product.model_validate(choco_box_data())
    redirect_if_handle_is_localized("https://shop.test/products/choco-box", handle="choco-box", product=product)


def test_is_combined_listing_uses_configured_tag():
    product = Product.model_validate(combined_listing_data())
    assert is_combined_listing(product, tag="combined") is True
    assert is_combined_listing(product, tag="parent") is False


def test_combined_listing_redirects_to_first_child():
    product = Product.model_validate(combined_listing_data())

    with pytest.raises(RedirectRequired) as exc_info:
        redirect_if_combined_listing("https://shop.test/products/choco-bar?ref=abc", product=product, tag="combined")

    assert exc_info.value.location == "/products/choco-bar-red?ref=abc"


def test_combined_listing_redirect_ignores_regular_products():
    product = Product.model_validate(choco_box_data())
    redirect_if_combined_listing("https://shop.test/products/choco-box", product=product, tag="combined")
