from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import orjson
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse, RedirectResponse, StreamingResponse

from storefront import seo
from storefront.analytics import AnalyticsEmitter, build_product_view_event, log_sink
from storefront.cache import route_headers
from storefront.config import CombinedListingConfig, settings
from storefront.errors import NotFoundError, RedirectRequired, StorefrontError
from storefront.i18n import get_locale_from_request
from storefront.page_content import PageContentError, PageContentLoader
from storefront.resolvers import (
    HomeResolver,
    ProductPageResult,
    ProductResolver,
    get_selected_product_options,
)
from storefront.schemas import Product, VariantUrlRequest, VariantUrlResponse
from storefront.storefront_api import StorefrontApiClient, StorefrontApiError
from storefront.url_sync import InMemoryLocation, sync_variant_url
from storefront.variants import resolve_optimistic_variant

logger = logging.getLogger(__name__)

storefront_api = StorefrontApiClient()
page_content_loader = PageContentLoader()
combined_listings = CombinedListingConfig.from_settings(settings)
analytics = AnalyticsEmitter([log_sink])


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield


app = FastAPI(
    title="Storefront Page Resolver",
    default_response_class=ORJSONResponse,
    lifespan=_app_lifespan,
)


@app.exception_handler(RedirectRequired)
async def redirect_handler(_request: Request, exc: RedirectRequired) -> RedirectResponse:
    return RedirectResponse(url=exc.location, status_code=exc.status_code, headers=route_headers())


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> ORJSONResponse:
    if exc.status_code >= 500:
        logger.error("Failed to resolve %s: %s", request.url.path, exc)
    return ORJSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(StorefrontApiError)
@app.exception_handler(PageContentError)
async def upstream_error_handler(request: Request, exc: StorefrontApiError | PageContentError) -> ORJSONResponse:
    logger.error("Upstream failure while resolving %s: %s", request.url.path, exc)
    return ORJSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled server exception", exc_info=exc)
    return ORJSONResponse(status_code=500, content={"detail": "Internal server error."})


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


def _product_resolver() -> ProductResolver:
    return ProductResolver(
        catalog=storefront_api,
        content_loader=page_content_loader,
        combined_listings=combined_listings,
        seo=seo,
    )


def _home_resolver() -> HomeResolver:
    return HomeResolver(catalog=storefront_api, content_loader=page_content_loader, seo=seo)


async def _home(request: Request, locale_param: str | None) -> ORJSONResponse:
    locale = get_locale_from_request(str(request.url))
    payload = await _home_resolver().resolve(locale_param=locale_param, locale=locale)
    return ORJSONResponse(content=payload.model_dump(mode="json"), headers=route_headers())


@app.get("/")
async def home(request: Request) -> ORJSONResponse:
    return await _home(request, None)


@app.get("/{locale}")
async def localized_home(request: Request, locale: str) -> ORJSONResponse:
    return await _home(request, locale)


def _stream_product_page(result: ProductPageResult) -> StreamingResponse:
    async def ndjson() -> AsyncIterator[bytes]:
        yield orjson.dumps(result.payload.model_dump(mode="json")) + b"\n"
        try:
            recommended = await result.recommended.result()
        except Exception as exc:  # noqa: BLE001
            yield orjson.dumps({"recommendedError": str(exc)}) + b"\n"
        else:
            yield orjson.dumps({"recommended": recommended}) + b"\n"

    return StreamingResponse(ndjson(), media_type="application/x-ndjson", headers=route_headers())


async def _product(request: Request, handle: str | None) -> StreamingResponse:
    locale = get_locale_from_request(str(request.url))
    result = await _product_resolver().resolve(handle=handle, request_url=str(request.url), locale=locale)
    return _stream_product_page(result)


@app.get("/products/{handle}")
async def product_page(request: Request, handle: str) -> StreamingResponse:
    return await _product(request, handle)


@app.get("/{locale}/products/{handle}")
async def localized_product_page(request: Request, locale: str, handle: str) -> StreamingResponse:
    return await _product(request, handle)


@app.post("/products/{handle}/variant-url", response_model=VariantUrlResponse)
async def variant_url(handle: str, payload: VariantUrlRequest) -> VariantUrlResponse:
    search = payload.search
    if search and not search.startswith("?"):
        search = f"?{search}"
    location = InMemoryLocation(f"{payload.pathname}{search}")
    locale = get_locale_from_request(location.href)

    catalog_data = await storefront_api.query_product(
        handle=handle,
        selected_options=get_selected_product_options(location.href),
        country=locale.country,
        language=locale.language,
    )
    raw_product = catalog_data.get("product") or {}
    if not raw_product.get("id"):
        raise NotFoundError(message=f"Product not found: {handle}")
    product = Product.model_validate(raw_product)

    new_url = sync_variant_url(product, location, combined_listing_tag=combined_listings.tag)
    variant = resolve_optimistic_variant(product, location.search)
    event = build_product_view_event(product, variant)
    analytics.emit(event)
    return VariantUrlResponse(variant=variant, url=new_url, analytics=event)
