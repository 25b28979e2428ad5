from __future__ import annotations

from typing import Protocol

EVENTS_CHANNEL = "events:storefront"

ORDER_PLACED = "order.placed"
ORDER_CONFIRMED = "order.confirmed"
ORDER_EDITED = "order.edited"
ORDER_STATUS_CHANGED = "order.status_changed"
STOCK_LOW = "stock.low"


class EventPublisher(Protocol):
    """Delivers a serialized event envelope to subscribers of ``channel``."""

    def publish(self, channel: str, message: str) -> None: ...
