from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit

from storefront.combined_listings import is_combined_listing
from storefront.schemas import Product, Variant
from storefront.variants import resolve_optimistic_variant

logger = logging.getLogger(__name__)


class BrowserLocation(Protocol):
    @property
    def pathname(self) -> str: ...

    @property
    def search(self) -> str: ...

    def replace_state(self, url: str) -> None: ...


class InMemoryLocation:
    """Location with a history stack; replace_state swaps the top entry in place."""

    def __init__(self, url: str) -> None:
        self.history: list[str] = [url]

    @property
    def href(self) -> str:
        return self.history[-1]

    @property
    def pathname(self) -> str:
        return urlsplit(self.href).path

    @property
    def search(self) -> str:
        query = urlsplit(self.href).query
        return f"?{query}" if query else ""

    def replace_state(self, url: str) -> None:
        self.history[-1] = url


def _set_param(pairs: list[tuple[str, str]], name: str, value: str) -> list[tuple[str, str]]:
    # Same as URLSearchParams.set: first occurrence updated in place, later ones dropped.
    updated: list[tuple[str, str]] = []
    found = False
    for key, current in pairs:
        if key != name:
            updated.append((key, current))
        elif not found:
            updated.append((key, value))
            found = True
    if not found:
        updated.append((name, value))
    return updated


def compute_variant_search(variant: Variant, current_search: str) -> str | None:
    """Return the query string (without ``?``) the URL should carry, or None if it is already right."""
    if not variant.selectedOptions:
        return None

    current_query = current_search[1:] if current_search.startswith("?") else current_search
    current_pairs = parse_qsl(current_query, keep_blank_values=True)
    current_values: dict[str, str] = {}
    for key, value in current_pairs:
        current_values.setdefault(key, value)

    needs_update = current_query == "" or any(
        current_values.get(option.name) != option.value for option in variant.selectedOptions
    )
    if not needs_update:
        return None

    updated_pairs = current_pairs
    for option in variant.selectedOptions:
        updated_pairs = _set_param(updated_pairs, option.name, option.value)

    new_search = urlencode(updated_pairs, quote_via=quote_plus, safe="*")
    if new_search == current_query:
        return None
    return new_search


def sync_variant_url(product: Product, location: BrowserLocation, *, combined_listing_tag: str) -> str | None:
    """Point the location's query string at the optimistic variant without navigating.

    Returns the URL that was written, or None when nothing changed.
    """
    if is_combined_listing(product, tag=combined_listing_tag):
        return None

    variant = resolve_optimistic_variant(product, location.search)
    new_search = compute_variant_search(variant, location.search)
    if new_search is None:
        return None

    new_url = f"{location.pathname}?{new_search}"
    location.replace_state(new_url)
    logger.debug("Replaced location with %s for variant %s", new_url, variant.id)
    return new_url
