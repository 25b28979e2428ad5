from __future__ import annotations

from sop.application.dto.responses import (
    StockApplicationResponse,
    StockClampResponse,
    StockDeductionResponse,
    StockItemResponse,
    StockListResponse,
)
from sop.application.ports.stock_ledger import LedgerApplyResult
from sop.domain.inventory.entities import StockItem, StockLocation


def to_stock_item_response(item: StockItem) -> StockItemResponse:
    return StockItemResponse(
        stockItemId=str(item.stock_item_id),
        name=item.name,
        category=item.category,
        location=item.location.value,
        quantity=item.quantity,
        lowStockThreshold=item.low_stock_threshold,
        isLowStock=item.is_low_stock,
    )


def to_stock_list_response(location: StockLocation, items: list[StockItem]) -> StockListResponse:
    return StockListResponse(
        location=location.value,
        items=[to_stock_item_response(item) for item in items],
    )


def to_stock_application_response(result: LedgerApplyResult) -> StockApplicationResponse:
    return StockApplicationResponse(
        applied=result.applied,
        deductions=[
            StockDeductionResponse(stockItemName=name, location=location.value, units=units)
            for (name, location), units in result.deducted.items()
        ],
        clamped=[
            StockClampResponse(
                stockItemName=clamp.stock_item_name,
                location=clamp.location,
                requested=clamp.requested,
                available=clamp.available,
            )
            for clamp in result.clamped
        ],
        missing=[
            StockDeductionResponse(stockItemName=name, location=location.value, units=0)
            for name, location in result.missing
        ],
        lowStock=[item.name for item in result.low_stock],
    )
