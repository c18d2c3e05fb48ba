from __future__ import annotations

import logging
from collections.abc import Callable

from storefront.schemas import Product, ProductViewEvent, ProductViewItem, Variant

logger = logging.getLogger(__name__)

EventSink = Callable[[ProductViewEvent], None]


def build_product_view_event(product: Product, variant: Variant) -> ProductViewEvent:
    return ProductViewEvent(
        products=[
            ProductViewItem(
                id=product.id or "",
                title=product.title,
                price=variant.price.amount or "0",
                vendor=product.vendor,
                variantId=variant.id,
                variantTitle=variant.title,
                quantity=1,
            )
        ]
    )


class AnalyticsEmitter:
    """Fire-and-forget delivery of analytics events. Sink failures never reach the caller."""

    def __init__(self, sinks: list[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks or [])

    def emit(self, event: ProductViewEvent) -> None:
        for sink in self._sinks:
            try:
                sink(event)
            except Exception:  # noqa: BLE001
                logger.exception("Analytics sink failed")


def log_sink(event: ProductViewEvent) -> None:
    for item in event.products:
        logger.info("product_view product=%s variant=%s", item.id, item.variantId)
