from __future__ import annotations

from storefront.schemas import Product


def is_combined_listing(product: Product, *, tag: str) -> bool:
    """A combined-listing parent groups child products and has no variant URLs of its own."""
    return tag in product.tags
