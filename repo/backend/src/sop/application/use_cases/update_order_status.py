from __future__ import annotations

import logging
from datetime import datetime, timezone

from sop.application.dto.requests import UpdateOrderStatusRequest
from sop.application.dto.responses import OrderResponse
from sop.application.mappers.event_envelope import serialize_order_event
from sop.application.mappers.order_mapper import to_order_response
from sop.application.metrics.order_lifecycle import (
    record_order_status,
    record_time_to_complete,
    record_transition,
)
from sop.application.ports.publisher import EVENTS_CHANNEL, ORDER_STATUS_CHANGED, EventPublisher
from sop.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.get_order import load_order
from sop.domain.common.ids import OrderId
from sop.domain.order.entities import OrderStatus, OrderTransitionError

logger = logging.getLogger(__name__)


class InvalidOrderStatusError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


class OrderConflictError(Exception):
    pass


class UpdateOrderStatus:
    """Moves a confirmed order through the kitchen: preparing, cooking, ready, handed over."""

    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        request_dto: UpdateOrderStatusRequest,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        target = _parse_status(request_dto.status)
        order = load_order(self._order_repository, order_id)
        if order.status == target:
            return to_order_response(order)

        now = datetime.now(timezone.utc)
        try:
            advanced = order.advance(target, now=now)
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        try:
            persisted = self._order_repository.update_status_with_version(
                order_id=order.order_id,
                new_status=target,
                completed_at=advanced.completed_at,
                expected_version=order.version,
            )
        except OptimisticConcurrencyError:
            current = load_order(self._order_repository, order_id)
            if current.status == target:
                return to_order_response(current)
            raise OrderConflictError(f"order {order_id} status update conflict")

        record_transition(from_status=order.status, to_status=target)
        record_order_status(persisted)
        record_time_to_complete(persisted)
        message = serialize_order_event(
            event_type=ORDER_STATUS_CHANGED,
            occurred_at=now,
            order=persisted,
            trace_ctx=trace_ctx,
        )
        try:
            self._publisher.publish(channel=EVENTS_CHANNEL, message=message)
        except Exception:
            logger.exception("order_event_publish_failed")

        return to_order_response(persisted)


def _parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().upper())
    except ValueError as exc:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise InvalidOrderStatusError(
            f"unknown order status {raw!r}; expected one of {allowed}"
        ) from exc
