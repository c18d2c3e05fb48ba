from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SHOP_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$")
_LOCALE_PREFIX_RE = re.compile(r"^[a-z]{2}-[a-z]{2}$")


class Settings(BaseSettings):
    STOREFRONT_SHOP_DOMAIN: str
    STOREFRONT_ACCESS_TOKEN: str
    STOREFRONT_API_VERSION: str = "2026-01"
    STOREFRONT_REQUEST_TIMEOUT_SECONDS: float = 20.0
    STOREFRONT_DEFAULT_COUNTRY: str = "US"
    STOREFRONT_DEFAULT_LANGUAGE: str = "EN"
    STOREFRONT_LOCALES: str = ""

    PAGE_CONTENT_BASE_URL: AnyHttpUrl
    PAGE_CONTENT_PROJECT_ID: str

    COMBINED_LISTINGS_REDIRECT_TO_FIRST_VARIANT: bool = False
    COMBINED_LISTINGS_TAG: str = "combined"

    ROUTE_CACHE_CONTROL: str = "public, max-age=1, stale-while-revalidate=9"
    RECOMMENDED_PRODUCTS_LIMIT: int = 12
    LOG_LEVEL: str = "INFO"

    @field_validator("STOREFRONT_SHOP_DOMAIN")
    @classmethod
    def validate_shop_domain(cls, value: str) -> str:
        domain = value.strip().lower()
        if domain.startswith("https://"):
            domain = domain[len("https://") :]
        domain = domain.rstrip("/")
        if not _SHOP_DOMAIN_RE.match(domain):
            raise ValueError("STOREFRONT_SHOP_DOMAIN must be a *.myshopify.com domain")
        return domain

    @field_validator("STOREFRONT_LOCALES")
    @classmethod
    def validate_locales(cls, value: str) -> str:
        locales = [locale.strip().lower() for locale in value.split(",") if locale.strip()]
        for locale in locales:
            if not _LOCALE_PREFIX_RE.match(locale):
                raise ValueError(f"STOREFRONT_LOCALES entry {locale!r} must look like 'fr-ca'")
        return ",".join(locales)

    @field_validator("STOREFRONT_DEFAULT_COUNTRY", "STOREFRONT_DEFAULT_LANGUAGE")
    @classmethod
    def validate_locale_code(cls, value: str) -> str:
        code = value.strip().upper()
        if len(code) != 2:
            raise ValueError("Locale codes must be two letters")
        return code

    @property
    def page_content_base_url(self) -> str:
        return str(self.PAGE_CONTENT_BASE_URL).rstrip("/")

    @property
    def locale_prefixes(self) -> list[str]:
        return [locale for locale in self.STOREFRONT_LOCALES.split(",") if locale]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@dataclass(frozen=True)
class CombinedListingConfig:
    redirect_to_first_variant: bool = False
    tag: str = "combined"

    @classmethod
    def from_settings(cls, source: Settings) -> "CombinedListingConfig":
        return cls(
            redirect_to_first_variant=source.COMBINED_LISTINGS_REDIRECT_TO_FIRST_VARIANT,
            tag=source.COMBINED_LISTINGS_TAG,
        )


settings = Settings()
