from __future__ import annotations

import logging
from urllib.parse import quote, unquote, urlsplit

from storefront.combined_listings import is_combined_listing
from storefront.errors import RedirectRequired
from storefront.schemas import Product

logger = logging.getLogger(__name__)


def _relative_url(path: str, query: str) -> str:
    return f"{path}?{query}" if query else path


def _replace_path_segment(path: str, *, old: str, new: str) -> str | None:
    segments = path.split("/")
    for index in range(len(segments) - 1, -1, -1):
        if unquote(segments[index]) == old:
            segments[index] = quote(new)
            return "/".join(segments)
    return None


def redirect_if_handle_is_localized(request_url: str, *, handle: str, product: Product) -> None:
    """Redirect to the product's canonical handle when the requested one differs."""
    if product.handle == handle:
        return
    parts = urlsplit(request_url)
    new_path = _replace_path_segment(parts.path, old=handle, new=product.handle)
    if new_path is None:
        return
    location = _relative_url(new_path, parts.query)
    logger.info("Redirecting localized handle %s -> %s", handle, product.handle)
    raise RedirectRequired(location=location)


def _first_child_handle(product: Product) -> str | None:
    for variant in [product.default_variant, *product.variants]:
        if variant.product is not None and variant.product.handle:
            return variant.product.handle
    return None


def redirect_if_combined_listing(request_url: str, *, product: Product, tag: str) -> None:
    """Send a combined-listing parent to its first child product."""
    if not is_combined_listing(product, tag=tag):
        return
    child_handle = _first_child_handle(product)
    if not child_handle or child_handle == product.handle:
        return
    parts = urlsplit(request_url)
    new_path = _replace_path_segment(parts.path, old=product.handle, new=child_handle)
    if new_path is None:
        new_path = f"/products/{quote(child_handle)}"
    logger.info("Redirecting combined listing %s -> %s", product.handle, child_handle)
    raise RedirectRequired(location=_relative_url(new_path, parts.query))
