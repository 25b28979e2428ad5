from __future__ import annotations

import json
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from sop.application.dto.requests import ConfirmOrderRequest
from sop.application.ports.repositories import (
    CatalogUnavailableError,
    DeductionConfig,
    OptimisticConcurrencyError,
)
from sop.application.ports.stock_ledger import (
    LedgerApplyFailure,
    LedgerApplyResult,
    LedgerReplayMismatchError,
    StockClamp,
)
from sop.application.use_cases.confirm_order import (
    ConfirmOrder,
    OrderConflictError,
    StockLedgerUnavailableError,
    StockReplayMismatchError,
)
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.get_order import OrderNotFoundError
from sop.domain.common.ids import MenuItemId, OrderId, StockItemId
from sop.domain.common.money import Money
from sop.domain.inventory.entities import (
    DeductionPlan,
    DeductionRule,
    DeductionRuleTable,
    NoDeductList,
    StockItem,
    StockLocation,
)
from sop.domain.order.entities import (
    Order,
    OrderLine,
    OrderStatus,
    PricedLine,
    create_pending_order,
)

TRAILER = StockLocation.TRAILER


def _pending_order(order_id: str = "ord_001") -> Order:
    unit = Money(3100, "GBP")
    return create_pending_order(
        order_id=OrderId(order_id),
        customer_name="Sam",
        lines=[
            PricedLine(
                line=OrderLine(
                    item_id=MenuItemId("itm_002"),
                    quantity=1,
                    addons=("Lamb", "Ketchup"),
                ),
                item_name="Deluxe Steak & Fries",
                unit_price=unit,
                line_total=unit,
            )
        ],
        now=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
    )


class FakeCatalogRepository:
    steaks_per_deluxe = 2

    def get_menu(self):
        return None

    def get_deduction_config(self) -> DeductionConfig:
        return DeductionConfig(
            rule_table=DeductionRuleTable(
                menu_item_rules={
                    "Deluxe Steak & Fries": [DeductionRule("Steaks", self.steaks_per_deluxe)]
                },
                addon_rules={
                    "Lamb": [DeductionRule("Lamb", 2)],
                    "Ketchup": [DeductionRule("Ketchup", 1)],
                },
            ),
            no_deduct=NoDeductList(frozenset({"Ketchup"})),
        )


class HeavierSteakCatalogRepository(FakeCatalogRepository):
    steaks_per_deluxe = 3


class UnreachableCatalogRepository(FakeCatalogRepository):
    def get_deduction_config(self) -> DeductionConfig:
        raise CatalogUnavailableError("deduction rules could not be loaded")


class FakeOrderRepository:
    def __init__(self, order: Order | None) -> None:
        self.order = order
        self.conflict_with: Order | None = None

    def add(self, order: Order) -> None:
        self.order = order

    def get(self, order_id):
        if self.order is None or str(self.order.order_id) != str(order_id):
            return None
        return self.order

    def get_by_idempotency(self, key: str):
        return None

    def add_with_idempotency(self, order, key, payload_hash):
        raise NotImplementedError

    def confirm_with_version(self, order_id, payment_id, confirmed_at, expected_version):
        if self.conflict_with is not None:
            self.order = self.conflict_with
            raise OptimisticConcurrencyError(f"order {order_id} version conflict")
        assert self.order is not None
        if self.order.version != expected_version:
            raise OptimisticConcurrencyError(f"order {order_id} version conflict")
        self.order = replace(
            self.order,
            status=OrderStatus.CONFIRMED,
            payment_id=payment_id,
            confirmed_at=confirmed_at,
            version=self.order.version + 1,
        )
        return self.order


class FakeStockLedger:
    def __init__(self, error: Exception | None = None) -> None:
        self.applied: dict[str, DeductionPlan] = {}
        self.calls: list[tuple[str, DeductionPlan]] = []
        self.low_stock: list[StockItem] = []
        self.clamped: list[StockClamp] = []
        self._error = error

    def apply(self, order_id, plan: DeductionPlan) -> LedgerApplyResult:
        self.calls.append((str(order_id), plan))
        if self._error is not None:
            raise self._error
        if str(order_id) in self.applied:
            if self.applied[str(order_id)] != plan:
                raise LedgerReplayMismatchError("different plan")
            return LedgerApplyResult(order_id=order_id, applied=False)
        self.applied[str(order_id)] = plan
        return LedgerApplyResult(
            order_id=order_id,
            applied=True,
            deducted=dict(plan),
            clamped=self.clamped,
            low_stock=self.low_stock,
        )


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def publish(self, channel: str, message: str) -> None:
        self.messages.append(message)

    def event_types(self) -> list[str]:
        return [json.loads(message)["event_type"] for message in self.messages]


def _use_case(orders, ledger, publisher, location=TRAILER, catalog=None) -> ConfirmOrder:
    return ConfirmOrder(
        order_repository=orders,
        catalog_repository=catalog or FakeCatalogRepository(),
        stock_ledger=ledger,
        publisher=publisher,
        deduction_location=location,
    )


def _execute(use_case: ConfirmOrder, order_id: str = "ord_001"):
    return use_case.execute(
        order_id=OrderId(order_id),
        request_dto=ConfirmOrderRequest(payment_id="pay_123"),
        trace_ctx=TraceContext(trace_id=None, request_id="req-1"),
    )


def test_confirm_deducts_stock_then_confirms_order() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger()
    publisher = FakePublisher()

    response = _execute(_use_case(orders, ledger, publisher))

    assert ledger.calls == [
        ("ord_001", DeductionPlan({("Steaks", TRAILER): 2, ("Lamb", TRAILER): 2}))
    ]
    assert response.order.status == "CONFIRMED"
    assert response.order.paymentId == "pay_123"
    assert response.stock.applied is True
    assert {(d.stockItemName, d.units) for d in response.stock.deductions} == {
        ("Steaks", 2),
        ("Lamb", 2),
    }
    assert orders.order is not None and orders.order.status == OrderStatus.CONFIRMED
    assert publisher.event_types() == ["order.confirmed"]


def test_redelivered_confirmation_does_not_deduct_twice() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger()
    publisher = FakePublisher()
    use_case = _use_case(orders, ledger, publisher)

    _execute(use_case)
    second = _execute(use_case)

    assert second.order.status == "CONFIRMED"
    assert second.stock.applied is False
    assert second.stock.deductions == []
    assert len(ledger.applied) == 1
    assert len(ledger.calls) == 1
    assert publisher.event_types() == ["order.confirmed"]


def test_ledger_failure_leaves_order_pending_for_retry() -> None:
    orders = FakeOrderRepository(_pending_order())
    publisher = FakePublisher()

    with pytest.raises(StockLedgerUnavailableError):
        _execute(_use_case(orders, FakeStockLedger(error=LedgerApplyFailure("db down")), publisher))

    assert orders.order is not None and orders.order.status == OrderStatus.PENDING
    assert publisher.messages == []

    retried = _execute(_use_case(orders, FakeStockLedger(), publisher))
    assert retried.order.status == "CONFIRMED"


def test_ledger_replay_with_different_plan_is_surfaced() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger(error=LedgerReplayMismatchError("different plan"))

    with pytest.raises(StockReplayMismatchError):
        _execute(_use_case(orders, ledger, FakePublisher()))

    assert orders.order is not None and orders.order.status == OrderStatus.PENDING


def test_unknown_order_is_not_found() -> None:
    ledger = FakeStockLedger()

    with pytest.raises(OrderNotFoundError):
        _execute(_use_case(FakeOrderRepository(None), ledger, FakePublisher()), "ord_404")

    assert ledger.calls == []


def test_low_stock_and_clamps_are_reported() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger()
    ledger.low_stock = [
        StockItem(
            stock_item_id=StockItemId("stk_001"),
            name="Steaks",
            location=TRAILER,
            quantity=0,
            low_stock_threshold=5,
        )
    ]
    ledger.clamped = [StockClamp("Steaks", "Trailer", requested=2, available=1)]
    publisher = FakePublisher()

    response = _execute(_use_case(orders, ledger, publisher))

    assert response.stock.lowStock == ["Steaks"]
    assert response.stock.clamped[0].requested == 2
    assert response.stock.clamped[0].available == 1
    assert publisher.event_types() == ["order.confirmed", "stock.low"]
    low_stock_event = json.loads(publisher.messages[1])
    assert low_stock_event["payload"]["items"][0]["location"] == "Trailer"


def test_concurrent_confirmation_returns_already_confirmed_order() -> None:
    pending = _pending_order()
    orders = FakeOrderRepository(pending)
    orders.conflict_with = replace(pending, status=OrderStatus.CONFIRMED, version=2)
    publisher = FakePublisher()

    response = _execute(_use_case(orders, FakeStockLedger(), publisher))

    assert response.order.status == "CONFIRMED"
    assert publisher.event_types() == []


def test_concurrent_update_that_did_not_confirm_is_a_conflict() -> None:
    pending = _pending_order()
    orders = FakeOrderRepository(pending)
    orders.conflict_with = replace(pending, version=2)

    with pytest.raises(OrderConflictError):
        _execute(_use_case(orders, FakeStockLedger(), FakePublisher()))


def test_deductions_use_configured_location() -> None:
    ledger = FakeStockLedger()

    use_case = _use_case(
        FakeOrderRepository(_pending_order()), ledger, FakePublisher(), StockLocation.LOCKUP
    )

    _execute(use_case)

    _, plan = ledger.calls[0]
    assert set(plan) == {("Steaks", StockLocation.LOCKUP), ("Lamb", StockLocation.LOCKUP)}


def test_redelivery_after_rule_change_leaves_the_ledger_alone() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger()
    publisher = FakePublisher()
    _execute(_use_case(orders, ledger, publisher))

    redelivered = _execute(
        _use_case(orders, ledger, publisher, catalog=HeavierSteakCatalogRepository())
    )

    assert redelivered.order.status == "CONFIRMED"
    assert redelivered.stock.applied is False
    assert len(ledger.calls) == 1
    assert ledger.applied["ord_001"][("Steaks", TRAILER)] == 2


def test_redelivery_after_kitchen_progress_returns_current_order() -> None:
    preparing = replace(_pending_order(), status=OrderStatus.PREPARING, version=3)
    ledger = FakeStockLedger()
    publisher = FakePublisher()

    response = _execute(_use_case(FakeOrderRepository(preparing), ledger, publisher))

    assert response.order.status == "PREPARING"
    assert response.stock.applied is False
    assert ledger.calls == []
    assert publisher.messages == []


def test_unreadable_deduction_rules_are_retryable() -> None:
    orders = FakeOrderRepository(_pending_order())
    ledger = FakeStockLedger()

    with pytest.raises(StockLedgerUnavailableError):
        _execute(
            _use_case(orders, ledger, FakePublisher(), catalog=UnreachableCatalogRepository())
        )

    assert ledger.calls == []
    assert orders.order is not None and orders.order.status == OrderStatus.PENDING
