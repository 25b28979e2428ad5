from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from sop.application.ports.repositories import OptimisticConcurrencyError
from sop.domain.common.ids import MenuItemId, OrderId
from sop.domain.common.money import Money
from sop.domain.order.entities import (
    Order,
    OrderLine,
    OrderStatus,
    PricedLine,
    create_pending_order,
)
from sop.infrastructure.db.models.catalog import Base
from sop.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    Base.metadata.create_all(engine)
    yield SqlAlchemyOrderRepository(engine=engine)
    engine.dispose()


def _line(item_id: str, name: str, quantity: int, unit_cents: int, addons=()) -> PricedLine:
    unit = Money(unit_cents, "GBP")
    return PricedLine(
        line=OrderLine(item_id=MenuItemId(item_id), quantity=quantity, addons=addons),
        item_name=name,
        unit_price=unit,
        line_total=unit.times(quantity),
    )


def _stored_order(repository: SqlAlchemyOrderRepository) -> Order:
    order = create_pending_order(
        order_id=OrderId("ord_001"),
        customer_name="Sam",
        lines=[_line("itm_005", "Kids Meal", 1, 1000)],
        now=NOW,
    )
    repository.add(order)
    return order


def test_status_update_bumps_version_and_stores_completion(repository) -> None:
    _stored_order(repository)
    repository.confirm_with_version(OrderId("ord_001"), "pay_1", NOW, expected_version=1)

    ready = repository.update_status_with_version(
        OrderId("ord_001"), OrderStatus.READY, completed_at=None, expected_version=2
    )
    done = repository.update_status_with_version(
        OrderId("ord_001"), OrderStatus.COMPLETED, completed_at=NOW, expected_version=3
    )

    assert ready.status == OrderStatus.READY
    assert done.status == OrderStatus.COMPLETED
    assert done.version == 4
    assert done.completed_at == NOW


def test_status_update_with_stale_version_is_rejected(repository) -> None:
    _stored_order(repository)
    repository.confirm_with_version(OrderId("ord_001"), "pay_1", NOW, expected_version=1)

    with pytest.raises(OptimisticConcurrencyError):
        repository.update_status_with_version(
            OrderId("ord_001"), OrderStatus.PREPARING, completed_at=None, expected_version=1
        )

    assert repository.get(OrderId("ord_001")).status == OrderStatus.CONFIRMED


def test_replace_lines_rewrites_pending_order(repository) -> None:
    order = _stored_order(repository)
    edited = order.edit(
        customer_name="Alex",
        lines=[
            _line("itm_001", "Steak & Fries", 2, 1200, addons=("Green Sauce",)),
            _line("itm_005", "Kids Meal", 1, 1000),
        ],
    )

    stored = repository.replace_lines_with_version(edited, expected_version=1)

    assert stored.version == 2
    assert stored.customer_name == "Alex"
    assert stored.total == Money(3400, "GBP")
    assert [(line.item_name, line.quantity) for line in stored.lines] == [
        ("Steak & Fries", 2),
        ("Kids Meal", 1),
    ]
    assert stored.lines[0].line.addons == ("Green Sauce",)


def test_replace_lines_refuses_confirmed_order(repository) -> None:
    order = _stored_order(repository)
    repository.confirm_with_version(OrderId("ord_001"), "pay_1", NOW, expected_version=1)
    edited = order.edit(customer_name="Alex", lines=[_line("itm_005", "Kids Meal", 3, 1000)])

    with pytest.raises(OptimisticConcurrencyError):
        repository.replace_lines_with_version(edited, expected_version=2)

    stored = repository.get(OrderId("ord_001"))
    assert stored.total == Money(1000, "GBP")
    assert stored.customer_name == "Sam"
