from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit, urlunsplit

from storefront.schemas import Product, SeoPayload

_DESCRIPTION_MAX_LENGTH = 155


def _truncate(text: str, max_length: int = _DESCRIPTION_MAX_LENGTH) -> str:
    cleaned = " ".join((text or "").split())
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[: max_length - 3].rstrip() + "..."


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def home() -> SeoPayload:
    return SeoPayload(
        title="Home",
        titleTemplate="%s | Storefront",
        description="Shop our latest products.",
        jsonLd={
            "@context": "https://schema.org",
            "@type": "WebPage",
            "name": "Home",
        },
    )


def product(*, product: Product, url: str) -> SeoPayload:
    canonical_url = _strip_query(url)
    title = (product.seo.title if product.seo else None) or product.title
    description = _truncate((product.seo.description if product.seo else None) or product.description)

    offers: list[dict[str, Any]] = []
    for variant in product.known_variants():
        offers.append(
            {
                "@type": "Offer",
                "availability": (
                    "https://schema.org/InStock" if variant.availableForSale else "https://schema.org/OutOfStock"
                ),
                "price": variant.price.amount,
                "priceCurrency": variant.price.currencyCode,
                "sku": variant.sku or "",
                "url": canonical_url,
            }
        )

    default_variant = product.default_variant
    media = None
    if default_variant.image is not None:
        media = {
            "type": "image",
            "url": default_variant.image.url,
            "altText": default_variant.image.altText or title,
        }

    return SeoPayload(
        title=title,
        titleTemplate="%s",
        description=description,
        url=canonical_url,
        media=media,
        jsonLd={
            "@context": "https://schema.org",
            "@type": "Product",
            "brand": {"@type": "Brand", "name": product.vendor},
            "description": description,
            "name": title,
            "offers": offers,
            "url": canonical_url,
        },
    )
