from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone

from sop.application.dto.requests import PlaceOrderRequest
from sop.application.dto.responses import OrderResponse
from sop.application.mappers.event_envelope import serialize_order_event
from sop.application.mappers.order_mapper import to_order_response, to_pricing_error_response
from sop.application.metrics.order_lifecycle import record_order_status, record_pricing_errors
from sop.application.ports.publisher import EVENTS_CHANNEL, ORDER_PLACED, EventPublisher
from sop.application.ports.repositories import (
    IdempotencyReplayMismatchError as RepoIdempotencyReplayMismatchError,
)
from sop.application.ports.repositories import CatalogRepository, OrderRepository
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.pricing import load_pricing_catalog, to_order_lines
from sop.domain.common.ids import new_order_id
from sop.domain.order.entities import create_pending_order
from sop.domain.pricing.engine import price_order
from sop.domain.pricing.errors import PricingError

logger = logging.getLogger(__name__)


class OrderPricingError(Exception):
    """At least one line could not be priced, so the order cannot be charged."""

    def __init__(self, errors: list[PricingError]) -> None:
        self.errors = errors
        self.details = {
            "errors": [to_pricing_error_response(error).model_dump() for error in errors]
        }
        super().__init__("; ".join(error.message for error in errors))


class IdempotencyReplayMismatchError(Exception):
    pass


class PlaceOrder:
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
        request_dto: PlaceOrderRequest,
        trace_ctx: TraceContext,
        idempotency_key: str | None = None,
    ) -> OrderResponse:
        catalog = load_pricing_catalog(self._catalog_repository, self._currency)
        priced_lines, errors = price_order(to_order_lines(request_dto.lines), catalog)
        if errors:
            record_pricing_errors(errors)
            logger.warning(
                "order_pricing_failed",
                extra={"error_kinds": [error.kind for error in errors]},
            )
            raise OrderPricingError(errors)

        now = datetime.now(timezone.utc)
        payload_hash = _request_hash(request_dto)
        order = create_pending_order(
            order_id=new_order_id(),
            customer_name=request_dto.customer_name,
            lines=priced_lines,
            now=now,
            idempotency_key=idempotency_key,
            idempotency_hash=payload_hash if idempotency_key else None,
        )
        created = True
        persisted_order = order
        if idempotency_key:
            try:
                persisted_order = self._order_repository.add_with_idempotency(
                    order=order,
                    key=idempotency_key,
                    payload_hash=payload_hash,
                )
            except RepoIdempotencyReplayMismatchError as exc:
                raise IdempotencyReplayMismatchError(str(exc)) from exc
            created = persisted_order.order_id == order.order_id
        else:
            self._order_repository.add(order)

        if created:
            message = serialize_order_event(
                event_type=ORDER_PLACED,
                occurred_at=persisted_order.created_at,
                order=persisted_order,
                trace_ctx=trace_ctx,
            )
            record_order_status(persisted_order)
            try:
                self._publisher.publish(channel=EVENTS_CHANNEL, message=message)
            except Exception:
                logger.exception("order_event_publish_failed")

        return to_order_response(persisted_order)


def _request_hash(request_dto: PlaceOrderRequest) -> str:
    normalized_payload = request_dto.model_dump(mode="json", by_alias=True, exclude_none=False)
    canonical = json.dumps(normalized_payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
