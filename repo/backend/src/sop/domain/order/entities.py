from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from sop.domain.common.ids import MenuItemId, OrderId
from sop.domain.common.money import Money

_ADDON_TOKEN = re.compile(r"^(?P<name>.*?\S)(?: x(?P<quantity>\d+))?$")


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    COOKING = "COOKING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    DELIVERED = "DELIVERED"


# PENDING only leaves through confirm(); kitchen steps may be skipped but never reversed.
KITCHEN_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PREPARING, OrderStatus.COOKING, OrderStatus.READY}
    ),
    OrderStatus.PREPARING: frozenset({OrderStatus.COOKING, OrderStatus.READY}),
    OrderStatus.COOKING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED}),
}

FINISHED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED})


@dataclass(frozen=True)
class AddonSelection:
    name: str
    quantity: int = 1


def parse_addon_token(token: str) -> AddonSelection | None:
    """Parse a cart add-on token such as ``"Green Sauce"`` or ``"Steak x2"``.

    Returns ``None`` when the token names nothing or asks for zero units.
    """
    match = _ADDON_TOKEN.match(token.strip())
    if match is None:
        return None
    raw_quantity = match.group("quantity")
    quantity = int(raw_quantity) if raw_quantity is not None else 1
    if quantity < 1:
        return None
    return AddonSelection(name=match.group("name"), quantity=quantity)


@dataclass(frozen=True)
class OrderLine:
    item_id: MenuItemId
    quantity: int
    addons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("quantity must be an integer")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if not isinstance(self.addons, tuple):
            object.__setattr__(self, "addons", tuple(self.addons))


@dataclass(frozen=True)
class PricedLine:
    line: OrderLine
    item_name: str
    unit_price: Money
    line_total: Money
    free_addons_applied: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        if self.line_total.amount_cents != self.unit_price.amount_cents * self.line.quantity:
            raise ValueError("line_total must equal unit_price * quantity")

    @property
    def item_id(self) -> MenuItemId:
        return self.line.item_id

    @property
    def quantity(self) -> int:
        return self.line.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    customer_name: str
    status: OrderStatus
    lines: list[PricedLine]
    total: Money
    created_at: datetime
    version: int = 1
    payment_id: str | None = None
    idempotency_key: str | None = None
    idempotency_hash: str | None = None
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")
        line_currency = self.lines[0].line_total.currency
        if self.total.currency != line_currency:
            raise ValueError("order total currency must match line currency")
        expected_total = sum(line.line_total.amount_cents for line in self.lines)
        if self.total.amount_cents != expected_total:
            raise ValueError("order total must equal sum of line totals")
        if self.version < 1:
            raise ValueError("version must be >= 1")

    def confirm(self, payment_id: str | None, now: datetime) -> Order:
        if self.status != OrderStatus.PENDING:
            raise OrderTransitionError(f"cannot confirm order from status={self.status.value}")
        return replace(
            self,
            status=OrderStatus.CONFIRMED,
            payment_id=payment_id or self.payment_id,
            confirmed_at=now,
        )

    def advance(self, status: OrderStatus, now: datetime) -> Order:
        if status not in KITCHEN_TRANSITIONS.get(self.status, frozenset()):
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to status={status.value}"
            )
        completed_at = self.completed_at
        if status in FINISHED_STATUSES and completed_at is None:
            completed_at = now
        return replace(self, status=status, completed_at=completed_at)

    def edit(self, customer_name: str, lines: list[PricedLine]) -> Order:
        if self.status != OrderStatus.PENDING:
            raise OrderTransitionError(f"cannot edit order in status={self.status.value}")
        if not lines:
            raise ValueError("order must contain at least one line")
        return replace(
            self,
            customer_name=customer_name,
            lines=lines,
            total=_sum_lines(lines),
        )


def create_pending_order(
    order_id: OrderId,
    customer_name: str,
    lines: list[PricedLine],
    now: datetime,
    idempotency_key: str | None = None,
    idempotency_hash: str | None = None,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    total = _sum_lines(lines)
    return Order(
        order_id=order_id,
        customer_name=customer_name,
        status=OrderStatus.PENDING,
        lines=lines,
        total=total,
        created_at=now,
        idempotency_key=idempotency_key,
        idempotency_hash=idempotency_hash,
    )


def _sum_lines(lines: list[PricedLine]) -> Money:
    return Money(
        amount_cents=sum(line.line_total.amount_cents for line in lines),
        currency=lines[0].line_total.currency,
    )


class OrderTransitionError(Exception):
    pass
