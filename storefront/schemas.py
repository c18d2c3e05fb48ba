from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PageType = Literal["INDEX", "CUSTOM", "PRODUCT"]


def _unwrap_nodes(value: Any) -> Any:
    # Storefront API connections arrive as {"nodes": [...]}.
    if isinstance(value, dict) and "nodes" in value:
        return value.get("nodes") or []
    if value is None:
        return []
    return value


class SelectedOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str


class Money(BaseModel):
    amount: str
    currencyCode: str


class VariantProductRef(BaseModel):
    handle: str


class VariantImage(BaseModel):
    url: str
    altText: str | None = None
    width: int | None = None
    height: int | None = None


class Variant(BaseModel):
    id: str = Field(min_length=1)
    title: str
    availableForSale: bool = True
    price: Money
    compareAtPrice: Money | None = None
    sku: str | None = None
    image: VariantImage | None = None
    selectedOptions: list[SelectedOption] = Field(default_factory=list)
    product: VariantProductRef | None = None

    def option_map(self) -> dict[str, str]:
        return {option.name: option.value for option in self.selectedOptions}


class ProductOptionValue(BaseModel):
    name: str
    firstSelectableVariant: Variant | None = None


class ProductOption(BaseModel):
    name: str
    optionValues: list[ProductOptionValue] = Field(default_factory=list)


class ProductSeo(BaseModel):
    title: str | None = None
    description: str | None = None


class Product(BaseModel):
    id: str | None = None
    handle: str
    title: str
    vendor: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    options: list[ProductOption] = Field(default_factory=list)
    selectedOrFirstAvailableVariant: Variant | None = None
    adjacentVariants: list[Variant] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    seo: ProductSeo | None = None

    @field_validator("variants", "adjacentVariants", mode="before")
    @classmethod
    def unwrap_connection(cls, value: Any) -> Any:
        return _unwrap_nodes(value)

    @model_validator(mode="after")
    def validate_has_variant(self) -> "Product":
        if self.selectedOrFirstAvailableVariant is None:
            fallback = self.variants or self.adjacentVariants
            if not fallback:
                raise ValueError("Product must have at least one variant")
            self.selectedOrFirstAvailableVariant = fallback[0]
        return self

    @property
    def default_variant(self) -> Variant:
        assert self.selectedOrFirstAvailableVariant is not None
        return self.selectedOrFirstAvailableVariant

    def option_names(self) -> list[str]:
        if self.options:
            return [option.name for option in self.options]
        return [option.name for option in self.default_variant.selectedOptions]

    def known_variants(self) -> list[Variant]:
        seen: set[str] = set()
        ordered: list[Variant] = []
        for variant in [self.default_variant, *self.adjacentVariants, *self.variants]:
            if variant.id in seen:
                continue
            seen.add(variant.id)
            ordered.append(variant)
        return ordered


class ShopDomain(BaseModel):
    url: str


class Shop(BaseModel):
    name: str
    description: str | None = None
    primaryDomain: ShopDomain | None = None


class SeoPayload(BaseModel):
    title: str
    titleTemplate: str | None = None
    description: str
    url: str | None = None
    media: dict[str, Any] | None = None
    jsonLd: dict[str, Any] = Field(default_factory=dict)


class AnalyticsPayload(BaseModel):
    pageType: str


class ProductViewItem(BaseModel):
    id: str
    title: str
    price: str
    vendor: str
    variantId: str
    variantTitle: str
    quantity: int = 1


class ProductViewEvent(BaseModel):
    products: list[ProductViewItem] = Field(min_length=1)


class HomePagePayload(BaseModel):
    shop: Shop
    pageContent: dict[str, Any]
    analytics: AnalyticsPayload | None = None
    seo: SeoPayload


class ProductPagePayload(BaseModel):
    shop: Shop
    product: Product
    pageContent: dict[str, Any]
    storeDomain: str | None = None
    seo: SeoPayload
    selectedOptions: list[SelectedOption] = Field(default_factory=list)


class VariantUrlRequest(BaseModel):
    pathname: str = Field(min_length=1)
    search: str = ""


class VariantUrlResponse(BaseModel):
    variant: Variant
    url: str | None = None
    analytics: ProductViewEvent
