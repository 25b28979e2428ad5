from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from sop.domain.common.ids import OrderId
from sop.domain.inventory.entities import DeductionPlan, StockItem, StockKey


@dataclass(frozen=True)
class StockClamp:
    stock_item_name: str
    location: str
    requested: int
    available: int


@dataclass(frozen=True)
class LedgerApplyResult:
    order_id: OrderId
    applied: bool
    deducted: dict[StockKey, int] = field(default_factory=dict)
    clamped: list[StockClamp] = field(default_factory=list)
    missing: list[StockKey] = field(default_factory=list)
    low_stock: list[StockItem] = field(default_factory=list)


class StockLedger(Protocol):
    """Applies a deduction plan to persisted stock.

    Implementations apply a plan atomically per order, never leave a quantity
    below zero, and treat a repeated ``order_id`` with the same plan as a no-op.
    """

    def apply(self, order_id: OrderId, plan: DeductionPlan) -> LedgerApplyResult: ...


class LedgerApplyFailure(Exception):
    """Stock could not be updated; the order must be retried, not assumed done."""


class LedgerReplayMismatchError(Exception):
    pass
