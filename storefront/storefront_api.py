from __future__ import annotations

import logging
from typing import Any

import httpx

from storefront.config import settings
from storefront.schemas import SelectedOption

logger = logging.getLogger(__name__)

_VARIANT_FRAGMENT = """
fragment ProductVariant on ProductVariant {
    id
    title
    availableForSale
    sku
    price {
        amount
        currencyCode
    }
    compareAtPrice {
        amount
        currencyCode
    }
    image {
        url
        altText
        width
        height
    }
    selectedOptions {
        name
        value
    }
    product {
        handle
    }
}
"""

PRODUCT_QUERY = (
    """
query product(
    $country: CountryCode
    $language: LanguageCode
    $handle: String!
    $selectedOptions: [SelectedOptionInput!]!
) @inContext(country: $country, language: $language) {
    shop {
        name
        description
        primaryDomain {
            url
        }
    }
    product(handle: $handle) {
        id
        handle
        title
        vendor
        description
        tags
        options {
            name
            optionValues {
                name
                firstSelectableVariant {
                    ...ProductVariant
                }
            }
        }
        selectedOrFirstAvailableVariant(
            selectedOptions: $selectedOptions
            ignoreUnknownOptions: true
            caseInsensitiveMatch: true
        ) {
            ...ProductVariant
        }
        adjacentVariants(selectedOptions: $selectedOptions) {
            ...ProductVariant
        }
        variants(first: 250) {
            nodes {
                ...ProductVariant
            }
        }
        seo {
            title
            description
        }
    }
}
"""
    + _VARIANT_FRAGMENT
)

SHOP_QUERY = """
query shop($country: CountryCode, $language: LanguageCode)
@inContext(country: $country, language: $language) {
    shop {
        name
        description
        primaryDomain {
            url
        }
    }
}
"""

RECOMMENDED_PRODUCTS_QUERY = """
query productRecommendations(
    $productId: ID!
    $count: Int
    $country: CountryCode
    $language: LanguageCode
) @inContext(country: $country, language: $language) {
    recommended: productRecommendations(productId: $productId) {
        id
        handle
        title
        vendor
        priceRange {
            minVariantPrice {
                amount
                currencyCode
            }
        }
    }
    additional: products(first: $count, sortKey: BEST_SELLING) {
        nodes {
            id
            handle
            title
            vendor
            priceRange {
                minVariantPrice {
                    amount
                    currencyCode
                }
            }
        }
    }
}
"""


class StorefrontApiError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorefrontApiClient:
    def __init__(
        self,
        *,
        shop_domain: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
    ) -> None:
        self._shop_domain = shop_domain or settings.STOREFRONT_SHOP_DOMAIN
        self._access_token = access_token or settings.STOREFRONT_ACCESS_TOKEN
        self._api_version = api_version or settings.STOREFRONT_API_VERSION
        self._timeout = settings.STOREFRONT_REQUEST_TIMEOUT_SECONDS

    async def query_product(
        self,
        *,
        handle: str,
        selected_options: list[SelectedOption],
        country: str,
        language: str,
    ) -> dict[str, Any]:
        payload = {
            "query": PRODUCT_QUERY,
            "variables": {
                "handle": handle,
                "selectedOptions": [option.model_dump() for option in selected_options],
                "country": country,
                "language": language,
            },
        }
        data = await self._storefront_graphql(payload=payload)
        shop = data.get("shop")
        if not isinstance(shop, dict):
            raise StorefrontApiError(message="Product query response is missing shop")
        product = data.get("product")
        if product is not None and not isinstance(product, dict):
            raise StorefrontApiError(message="Product query response has an invalid product")
        return {"shop": shop, "product": product}

    async def query_shop(self, *, country: str, language: str) -> dict[str, Any]:
        payload = {
            "query": SHOP_QUERY,
            "variables": {"country": country, "language": language},
        }
        data = await self._storefront_graphql(payload=payload)
        shop = data.get("shop")
        if not isinstance(shop, dict):
            raise StorefrontApiError(message="Shop query response is missing shop")
        return shop

    async def query_recommended_products(
        self,
        *,
        product_id: str,
        country: str,
        language: str,
        count: int | None = None,
    ) -> list[dict[str, Any]]:
        limit = count or settings.RECOMMENDED_PRODUCTS_LIMIT
        payload = {
            "query": RECOMMENDED_PRODUCTS_QUERY,
            "variables": {
                "productId": product_id,
                "count": limit,
                "country": country,
                "language": language,
            },
        }
        data = await self._storefront_graphql(payload=payload)
        recommended = data.get("recommended") or []
        additional = (data.get("additional") or {}).get("nodes") or []

        # Recommendations first, topped up with best sellers; never the product itself.
        merged: list[dict[str, Any]] = []
        seen: set[str] = {product_id}
        for node in [*recommended, *additional]:
            if not isinstance(node, dict):
                continue
            node_id = node.get("id")
            if not isinstance(node_id, str) or node_id in seen:
                continue
            seen.add(node_id)
            merged.append(node)
            if len(merged) >= limit:
                break
        return merged

    async def _storefront_graphql(self, *, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"https://{self._shop_domain}/api/{self._api_version}/graphql.json"
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Storefront-Access-Token": self._access_token,
        }
        response = await self._post_json(url=url, payload=payload, headers=headers)
        data = response.get("data")
        errors = response.get("errors")
        if errors:
            raise StorefrontApiError(message=f"Storefront GraphQL errors: {errors}")
        if not isinstance(data, dict):
            raise StorefrontApiError(message="Storefront GraphQL response is missing data")
        return data

    async def _post_json(
        self,
        *,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise StorefrontApiError(
                message=f"Storefront API request timed out after {self._timeout:.1f}s",
                status_code=504,
            ) from exc
        except httpx.RequestError as exc:
            raise StorefrontApiError(message=f"Network error while calling Storefront API: {exc}") from exc

        if response.status_code >= 400:
            logger.warning("Storefront API returned %s for %s", response.status_code, url)
            raise StorefrontApiError(
                message=f"Storefront API call failed ({response.status_code}): {response.text}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise StorefrontApiError(message="Storefront API returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise StorefrontApiError(message="Storefront API response must be a JSON object")
        return body
