from __future__ import annotations

import logging
from typing import Any

import httpx

from storefront.config import settings
from storefront.errors import PageContentMissingError
from storefront.i18n import I18nLocale
from storefront.schemas import PageType

logger = logging.getLogger(__name__)


class PageContentError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


class PageContentLoader:
    """Fetches page-builder content for a (page type, handle) pair."""

    def __init__(self, *, base_url: str | None = None, project_id: str | None = None) -> None:
        self._base_url = (base_url or settings.page_content_base_url).rstrip("/")
        self._project_id = project_id or settings.PAGE_CONTENT_PROJECT_ID
        self._timeout = settings.STOREFRONT_REQUEST_TIMEOUT_SECONDS

    async def load_page(
        self,
        *,
        type: PageType,
        handle: str | None = None,
        locale: I18nLocale | None = None,
    ) -> dict[str, Any] | None:
        payload: dict[str, Any] = {"projectId": self._project_id, "type": type}
        if handle:
            payload["handle"] = handle
        if locale is not None:
            payload["locale"] = f"{locale.language}-{locale.country}".lower()

        url = f"{self._base_url}/api/public/page"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload)
        except httpx.RequestError as exc:
            raise PageContentError(message=f"Network error while loading page content: {exc}") from exc

        if response.status_code == 404:
            logger.info("No page content for type=%s handle=%s", type, handle)
            return None
        if response.status_code >= 400:
            raise PageContentError(
                message=f"Page content request failed ({response.status_code}): {response.text}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise PageContentError(message="Page content service returned invalid JSON") from exc

        if body is None:
            return None
        if not isinstance(body, dict):
            raise PageContentError(message="Page content response must be a JSON object")
        page = body.get("page", body)
        return page if isinstance(page, dict) else None


def validate_page_content(content: dict[str, Any] | None) -> dict[str, Any]:
    if not content:
        raise PageContentMissingError(message="Page content is missing; the page has no layout to render")
    return content
