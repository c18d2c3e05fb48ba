from __future__ import annotations

from storefront.config import settings


def route_headers() -> dict[str, str]:
    return {"Cache-Control": settings.ROUTE_CACHE_CONTROL}
