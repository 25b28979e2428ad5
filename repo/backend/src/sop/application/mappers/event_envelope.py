from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from sop.application.ports.publisher import STOCK_LOW
from sop.application.use_cases.context import TraceContext
from sop.domain.inventory.entities import StockItem
from sop.domain.order.entities import Order


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_ctx: TraceContext,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        **trace_ctx.envelope_fields(),
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    trace_ctx: TraceContext,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        trace_ctx=trace_ctx,
        payload={
            "orderId": str(order.order_id),
            "customerName": order.customer_name,
            "status": order.status.value,
            "totalMoney": {
                "amountCents": order.total.amount_cents,
                "currency": order.total.currency,
            },
            "createdAt": order.created_at.isoformat(),
            "lines": [
                {
                    "itemId": str(line.item_id),
                    "name": line.item_name,
                    "quantity": line.quantity,
                    "addons": list(line.line.addons),
                    "unitPrice": {
                        "amountCents": line.unit_price.amount_cents,
                        "currency": line.unit_price.currency,
                    },
                    "lineTotal": {
                        "amountCents": line.line_total.amount_cents,
                        "currency": line.line_total.currency,
                    },
                }
                for line in order.lines
            ],
        },
    )


def serialize_low_stock_event(
    *,
    occurred_at: datetime,
    items: list[StockItem],
    trace_ctx: TraceContext,
) -> str:
    return _serialize_event(
        event_type=STOCK_LOW,
        occurred_at=occurred_at,
        trace_ctx=trace_ctx,
        payload={
            "items": [
                {
                    "name": item.name,
                    "location": item.location.value,
                    "quantity": item.quantity,
                    "lowStockThreshold": item.low_stock_threshold,
                }
                for item in items
            ],
        },
    )
