from __future__ import annotations

import logging
from datetime import datetime, timezone

from sop.application.dto.requests import EditOrderRequest
from sop.application.dto.responses import OrderResponse
from sop.application.mappers.event_envelope import serialize_order_event
from sop.application.mappers.order_mapper import to_order_response
from sop.application.metrics.order_lifecycle import record_pricing_errors
from sop.application.ports.publisher import EVENTS_CHANNEL, ORDER_EDITED, EventPublisher
from sop.application.ports.repositories import (
    CatalogRepository,
    OptimisticConcurrencyError,
    OrderRepository,
)
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.get_order import load_order
from sop.application.use_cases.place_order import OrderPricingError
from sop.application.use_cases.pricing import load_pricing_catalog, to_order_lines
from sop.domain.common.ids import OrderId
from sop.domain.order.entities import OrderTransitionError
from sop.domain.pricing.engine import price_order

logger = logging.getLogger(__name__)


class OrderNotEditableError(Exception):
    pass


class OrderConflictError(Exception):
    pass


class EditOrder:
    """Replaces the lines of an unpaid order, re-pricing them against the live menu.

    Prices always come from the menu, never from the caller, and an edit with
    any unpriceable line is rejected whole. Paid orders have had stock
    deducted for their lines and cannot be edited.
    """

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        currency: str,
    ) -> None:
        self._catalog_repository = catalog_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._currency = currency

    def execute(
        self,
        order_id: OrderId,
        request_dto: EditOrderRequest,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        order = load_order(self._order_repository, order_id)

        catalog = load_pricing_catalog(self._catalog_repository, self._currency)
        priced_lines, errors = price_order(to_order_lines(request_dto.lines), catalog)
        if errors:
            record_pricing_errors(errors)
            logger.warning(
                "order_edit_pricing_failed",
                extra={
                    "order_id": str(order_id),
                    "error_kinds": [error.kind for error in errors],
                },
            )
            raise OrderPricingError(errors)

        try:
            edited = order.edit(
                customer_name=request_dto.customer_name or order.customer_name,
                lines=priced_lines,
            )
        except OrderTransitionError as exc:
            raise OrderNotEditableError(str(exc)) from exc

        try:
            persisted = self._order_repository.replace_lines_with_version(
                order=edited,
                expected_version=order.version,
            )
        except OptimisticConcurrencyError as exc:
            raise OrderConflictError(f"order {order_id} changed while it was being edited") from exc

        message = serialize_order_event(
            event_type=ORDER_EDITED,
            occurred_at=datetime.now(timezone.utc),
            order=persisted,
            trace_ctx=trace_ctx,
        )
        try:
            self._publisher.publish(channel=EVENTS_CHANNEL, message=message)
        except Exception:
            logger.exception("order_event_publish_failed")

        return to_order_response(persisted)
