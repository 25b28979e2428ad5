from __future__ import annotations

import logging
from datetime import datetime, timezone

from sop.application.dto.requests import ConfirmOrderRequest
from sop.application.dto.responses import ConfirmOrderResponse
from sop.application.mappers.event_envelope import serialize_low_stock_event, serialize_order_event
from sop.application.mappers.order_mapper import to_order_response
from sop.application.mappers.stock_mapper import to_stock_application_response
from sop.application.metrics.order_lifecycle import (
    record_ledger_result,
    record_order_status,
    record_transition,
)
from sop.application.ports.publisher import EVENTS_CHANNEL, ORDER_CONFIRMED, EventPublisher
from sop.application.ports.repositories import (
    CatalogRepository,
    CatalogUnavailableError,
    OptimisticConcurrencyError,
    OrderRepository,
)
from sop.application.ports.stock_ledger import (
    LedgerApplyFailure,
    LedgerApplyResult,
    LedgerReplayMismatchError,
    StockLedger,
)
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.get_order import load_order
from sop.domain.common.ids import OrderId
from sop.domain.inventory.entities import StockLocation
from sop.domain.inventory.planner import plan_deductions
from sop.domain.order.entities import Order, OrderStatus, OrderTransitionError

logger = logging.getLogger(__name__)


class InvalidOrderTransitionError(Exception):
    pass


class OrderConflictError(Exception):
    pass


class StockLedgerUnavailableError(Exception):
    pass


class StockReplayMismatchError(Exception):
    pass


class ConfirmOrder:
    """Marks a paid order as confirmed and deducts its stock.

    Stock is deducted before the status changes, keyed by order id. A retry
    after a ledger failure runs the same deduction again and the ledger
    ignores what it already applied. Once the order has left PENDING a
    redelivered payment webhook is answered without planning again, so later
    rule edits cannot turn it into a replay mismatch.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        catalog_repository: CatalogRepository,
        stock_ledger: StockLedger,
        publisher: EventPublisher,
        deduction_location: StockLocation = StockLocation.TRAILER,
    ) -> None:
        self._order_repository = order_repository
        self._catalog_repository = catalog_repository
        self._stock_ledger = stock_ledger
        self._publisher = publisher
        self._deduction_location = deduction_location

    def execute(
        self,
        order_id: OrderId,
        request_dto: ConfirmOrderRequest,
        trace_ctx: TraceContext,
    ) -> ConfirmOrderResponse:
        order = load_order(self._order_repository, order_id)
        if order.status != OrderStatus.PENDING:
            return self._already_confirmed(order)

        result = self._deduct_stock(order)
        confirmed = self._confirm(order, request_dto.payment_id, trace_ctx)

        if result.applied and result.low_stock:
            self._publish(
                serialize_low_stock_event(
                    occurred_at=datetime.now(timezone.utc),
                    items=result.low_stock,
                    trace_ctx=trace_ctx,
                )
            )

        return ConfirmOrderResponse(
            order=to_order_response(confirmed),
            stock=to_stock_application_response(result),
        )

    def _already_confirmed(self, order: Order) -> ConfirmOrderResponse:
        # Stock for this order was deducted before its status left PENDING.
        logger.info("order_already_confirmed", extra={"order_id": str(order.order_id)})
        return ConfirmOrderResponse(
            order=to_order_response(order),
            stock=to_stock_application_response(
                LedgerApplyResult(order_id=order.order_id, applied=False)
            ),
        )

    def _deduct_stock(self, order: Order) -> LedgerApplyResult:
        try:
            config = self._catalog_repository.get_deduction_config()
        except CatalogUnavailableError as exc:
            logger.exception(
                "deduction_rules_unavailable",
                extra={"order_id": str(order.order_id)},
            )
            raise StockLedgerUnavailableError(
                f"deduction rules could not be loaded for order {order.order_id}; "
                "retry confirmation"
            ) from exc
        plan = plan_deductions(
            order.lines,
            config.rule_table,
            config.no_deduct,
            location=self._deduction_location,
        )
        try:
            result = self._stock_ledger.apply(order.order_id, plan)
        except LedgerReplayMismatchError as exc:
            logger.error(
                "stock_deduction_replay_mismatch",
                extra={"order_id": str(order.order_id)},
            )
            raise StockReplayMismatchError(str(exc)) from exc
        except LedgerApplyFailure as exc:
            logger.exception(
                "stock_deduction_failed",
                extra={"order_id": str(order.order_id)},
            )
            raise StockLedgerUnavailableError(
                f"stock could not be deducted for order {order.order_id}; retry confirmation"
            ) from exc

        record_ledger_result(result)
        return result

    def _confirm(self, order: Order, payment_id: str | None, trace_ctx: TraceContext) -> Order:
        now = datetime.now(timezone.utc)
        try:
            order.confirm(payment_id=payment_id, now=now)
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        try:
            persisted = self._order_repository.confirm_with_version(
                order_id=order.order_id,
                payment_id=payment_id,
                confirmed_at=now,
                expected_version=order.version,
            )
        except OptimisticConcurrencyError:
            current = load_order(self._order_repository, order.order_id)
            if current.status != OrderStatus.PENDING:
                return current
            raise OrderConflictError(f"order {order.order_id} status update conflict")

        record_transition(from_status=order.status, to_status=persisted.status)
        record_order_status(persisted)
        self._publish(
            serialize_order_event(
                event_type=ORDER_CONFIRMED,
                occurred_at=now,
                order=persisted,
                trace_ctx=trace_ctx,
            )
        )
        return persisted

    def _publish(self, message: str) -> None:
        try:
            self._publisher.publish(channel=EVENTS_CHANNEL, message=message)
        except Exception:
            logger.exception("order_event_publish_failed")
