from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import parse_qsl, urlsplit

from storefront import seo as seo_module
from storefront.concurrency import Deferred, defer, gather_required
from storefront.config import CombinedListingConfig
from storefront.errors import NotFoundError, RouteConfigurationError
from storefront.i18n import I18nLocale
from storefront.page_content import validate_page_content
from storefront.redirects import redirect_if_combined_listing, redirect_if_handle_is_localized
from storefront.schemas import (
    AnalyticsPayload,
    HomePagePayload,
    PageType,
    Product,
    ProductPagePayload,
    SelectedOption,
    Shop,
)

logger = logging.getLogger(__name__)

_NON_OPTION_PARAMS = {"_pos", "_psq", "_ss", "_v", "_sid", "fbclid", "gclid"}


class CatalogQuery(Protocol):
    async def query_product(
        self,
        *,
        handle: str,
        selected_options: list[SelectedOption],
        country: str,
        language: str,
    ) -> dict[str, Any]: ...

    async def query_shop(self, *, country: str, language: str) -> dict[str, Any]: ...

    async def query_recommended_products(
        self,
        *,
        product_id: str,
        country: str,
        language: str,
    ) -> list[dict[str, Any]]: ...


class ContentLoader(Protocol):
    async def load_page(
        self,
        *,
        type: PageType,
        handle: str | None = None,
        locale: I18nLocale | None = None,
    ) -> dict[str, Any] | None: ...


def get_selected_product_options(request_url: str) -> list[SelectedOption]:
    """Query-string name/value pairs that may name product options."""
    selected: list[SelectedOption] = []
    for name, value in parse_qsl(urlsplit(request_url).query, keep_blank_values=True):
        if not name or not value:
            continue
        if name in _NON_OPTION_PARAMS or name.startswith("utm_"):
            continue
        selected.append(SelectedOption(name=name, value=value))
    return selected


@dataclass
class ProductPageResult:
    payload: ProductPagePayload
    recommended: Deferred[list[dict[str, Any]]]


class ProductResolver:
    def __init__(
        self,
        *,
        catalog: CatalogQuery,
        content_loader: ContentLoader,
        combined_listings: CombinedListingConfig,
        seo=seo_module,
    ) -> None:
        self._catalog = catalog
        self._content_loader = content_loader
        self._combined_listings = combined_listings
        self._seo = seo

    async def resolve(
        self,
        *,
        handle: str | None,
        request_url: str,
        locale: I18nLocale,
    ) -> ProductPageResult:
        if not handle:
            raise RouteConfigurationError(message="Missing product handle param, check route configuration")

        selected_options = get_selected_product_options(request_url)
        catalog_data, page_content = await gather_required(
            self._catalog.query_product(
                handle=handle,
                selected_options=selected_options,
                country=locale.country,
                language=locale.language,
            ),
            self._content_loader.load_page(type="PRODUCT", handle=handle, locale=locale),
        )

        raw_product = catalog_data.get("product") or {}
        if not raw_product.get("id"):
            raise NotFoundError(message=f"Product not found: {handle}")
        product = Product.model_validate(raw_product)
        shop = Shop.model_validate(catalog_data.get("shop") or {})

        redirect_if_handle_is_localized(request_url, handle=handle, product=product)
        if self._combined_listings.redirect_to_first_variant:
            redirect_if_combined_listing(request_url, product=product, tag=self._combined_listings.tag)

        # Content was loaded under the requested handle; only meaningful once no redirect applies.
        page_content = validate_page_content(page_content)

        payload = ProductPagePayload(
            shop=shop,
            product=product,
            pageContent=page_content,
            storeDomain=shop.primaryDomain.url if shop.primaryDomain else None,
            seo=self._seo.product(product=product, url=request_url),
            selectedOptions=selected_options,
        )

        # Streamed to the client after the primary payload; never awaited here.
        recommended = defer(
            self._catalog.query_recommended_products(
                product_id=product.id,
                country=locale.country,
                language=locale.language,
            ),
            label=f"recommended products for {product.handle}",
        )
        return ProductPageResult(payload=payload, recommended=recommended)


def resolve_home_page_type(*, locale_param: str | None, active_locale: I18nLocale) -> PageType:
    # A first segment that is not the active locale is treated as a custom page handle.
    if locale_param and locale_param.lower() != active_locale.prefix_segment:
        return "CUSTOM"
    return "INDEX"


class HomeResolver:
    def __init__(self, *, catalog: CatalogQuery, content_loader: ContentLoader, seo=seo_module) -> None:
        self._catalog = catalog
        self._content_loader = content_loader
        self._seo = seo

    async def resolve(self, *, locale_param: str | None, locale: I18nLocale) -> HomePagePayload:
        page_type = resolve_home_page_type(locale_param=locale_param, active_locale=locale)
        seo = self._seo.home()

        handle = locale_param if page_type == "CUSTOM" else None
        page_content, shop = await gather_required(
            self._content_loader.load_page(type=page_type, handle=handle, locale=locale),
            self._catalog.query_shop(country=locale.country, language=locale.language),
        )
        page_content = validate_page_content(page_content)
        logger.debug("Resolved home page type=%s", page_type)

        return HomePagePayload(
            shop=Shop.model_validate(shop),
            pageContent=page_content,
            analytics=AnalyticsPayload(pageType="home") if page_type == "INDEX" else None,
            seo=seo,
        )
