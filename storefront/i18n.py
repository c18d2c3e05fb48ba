from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from storefront.config import settings


@dataclass(frozen=True)
class I18nLocale:
    language: str
    country: str
    path_prefix: str = ""

    @property
    def prefix_segment(self) -> str:
        return self.path_prefix[1:] if self.path_prefix else ""


def default_locale() -> I18nLocale:
    return I18nLocale(
        language=settings.STOREFRONT_DEFAULT_LANGUAGE,
        country=settings.STOREFRONT_DEFAULT_COUNTRY,
    )


def get_locale_from_request(url: str, *, locale_prefixes: list[str] | None = None) -> I18nLocale:
    """Resolve the active locale from the first path segment, e.g. ``/fr-ca/products/x``."""
    prefixes = settings.locale_prefixes if locale_prefixes is None else locale_prefixes
    path = urlsplit(url).path
    first_segment = path.lstrip("/").split("/", 1)[0].lower()
    if first_segment and first_segment in prefixes:
        language, country = first_segment.split("-", 1)
        return I18nLocale(
            language=language.upper(),
            country=country.upper(),
            path_prefix=f"/{first_segment}",
        )
    return default_locale()
