from __future__ import annotations

from prometheus_client import Counter, Histogram

from sop.application.ports.stock_ledger import LedgerApplyResult
from sop.domain.order.entities import Order, OrderStatus
from sop.domain.pricing.errors import PricingError

ORDERS_TOTAL = Counter(
    "sop_orders_total",
    "Total number of orders observed by status.",
    ["status"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "sop_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_COMPLETE_SECONDS = Histogram(
    "sop_order_time_to_complete_seconds",
    "Time between order placement and hand-over to the customer.",
)

PRICING_ERRORS_TOTAL = Counter(
    "sop_pricing_errors_total",
    "Total number of order lines that failed to price, by error kind.",
    ["kind"],
)

STOCK_UNITS_DEDUCTED_TOTAL = Counter(
    "sop_stock_units_deducted_total",
    "Total stock units deducted for confirmed orders.",
    ["stock_item", "location"],
)

STOCK_CLAMPED_TOTAL = Counter(
    "sop_stock_clamped_total",
    "Total number of deductions clamped at zero stock.",
    ["stock_item", "location"],
)

STOCK_MISSING_TOTAL = Counter(
    "sop_stock_missing_total",
    "Total number of deductions that referenced a stock row that does not exist.",
    ["stock_item", "location"],
)

STOCK_LEDGER_REPLAYS_TOTAL = Counter(
    "sop_stock_ledger_replays_total",
    "Total number of deduction plans re-applied for an already deducted order.",
)


def record_order_status(order: Order) -> None:
    ORDERS_TOTAL.labels(status=order.status.value).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_complete(order: Order) -> None:
    if order.completed_at is None:
        return
    elapsed = (order.completed_at - order.created_at).total_seconds()
    ORDER_TIME_TO_COMPLETE_SECONDS.observe(max(elapsed, 0.0))


def record_pricing_errors(errors: list[PricingError]) -> None:
    for error in errors:
        PRICING_ERRORS_TOTAL.labels(kind=error.kind).inc()


def record_ledger_result(result: LedgerApplyResult) -> None:
    if not result.applied:
        STOCK_LEDGER_REPLAYS_TOTAL.inc()
        return
    for (name, location), units in result.deducted.items():
        STOCK_UNITS_DEDUCTED_TOTAL.labels(stock_item=name, location=location.value).inc(units)
    for clamp in result.clamped:
        STOCK_CLAMPED_TOTAL.labels(stock_item=clamp.stock_item_name, location=clamp.location).inc()
    for name, location in result.missing:
        STOCK_MISSING_TOTAL.labels(stock_item=name, location=location.value).inc()
