from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sop.domain.common.ids import OrderId
from sop.domain.inventory.entities import (
    DeductionRuleTable,
    NoDeductList,
    StockItem,
    StockLocation,
)
from sop.domain.menu.entities import Menu
from sop.domain.order.entities import Order, OrderStatus


@dataclass(frozen=True)
class DeductionConfig:
    rule_table: DeductionRuleTable
    no_deduct: NoDeductList


class CatalogRepository(Protocol):
    def get_menu(self) -> Menu | None: ...

    def get_deduction_config(self) -> DeductionConfig: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def get_by_idempotency(self, key: str) -> Order | None: ...

    def add_with_idempotency(
        self,
        order: Order,
        key: str,
        payload_hash: str,
    ) -> Order: ...

    def confirm_with_version(
        self,
        order_id: OrderId,
        payment_id: str | None,
        confirmed_at: datetime,
        expected_version: int,
    ) -> Order: ...

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        completed_at: datetime | None,
        expected_version: int,
    ) -> Order: ...

    def replace_lines_with_version(self, order: Order, expected_version: int) -> Order: ...


class StockRepository(Protocol):
    def list_for_location(self, location: StockLocation) -> list[StockItem]: ...


class IdempotencyReplayMismatchError(Exception):
    pass


class OptimisticConcurrencyError(Exception):
    pass


class CatalogUnavailableError(Exception):
    """The catalog store could not be read. Safe to retry."""
