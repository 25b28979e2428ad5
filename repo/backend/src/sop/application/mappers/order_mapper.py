from __future__ import annotations

from sop.application.dto.responses import (
    MoneyResponse,
    OrderResponse,
    PricedLineResponse,
    PricingErrorResponse,
    QuoteResponse,
)
from sop.domain.common.money import Money
from sop.domain.order.entities import Order, PricedLine
from sop.domain.pricing.errors import PricingError


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(
        amountCents=money.amount_cents,
        currency=money.currency,
        amount=f"{money.to_decimal():.2f}",
    )


def to_priced_line_response(line: PricedLine) -> PricedLineResponse:
    return PricedLineResponse(
        itemId=str(line.item_id),
        name=line.item_name,
        quantity=line.quantity,
        addons=list(line.line.addons),
        unitPrice=to_money_response(line.unit_price),
        lineTotal=to_money_response(line.line_total),
        freeAddonsApplied=list(line.free_addons_applied),
    )


def to_pricing_error_response(error: PricingError) -> PricingErrorResponse:
    return PricingErrorResponse(
        lineIndex=error.line_index,
        kind=error.kind,
        key=error.key,
        message=error.message,
    )


def to_quote_response(
    lines: list[PricedLine],
    errors: list[PricingError],
    total: Money,
) -> QuoteResponse:
    return QuoteResponse(
        lines=[to_priced_line_response(line) for line in lines],
        errors=[to_pricing_error_response(error) for error in errors],
        total=to_money_response(total),
        chargeable=not errors,
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        customerName=order.customer_name,
        status=order.status.value,
        lines=[to_priced_line_response(line) for line in order.lines],
        total=to_money_response(order.total),
        createdAt=order.created_at,
        confirmedAt=order.confirmed_at,
        completedAt=order.completed_at,
        paymentId=order.payment_id,
    )
