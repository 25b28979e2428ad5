from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from sop.domain.common.ids import OrderId
from sop.domain.inventory.entities import DeductionPlan, StockLocation
from sop.infrastructure.db.models.stock import StockItemModel
from sop.infrastructure.db.repositories.stock_ledger import SqlAlchemyStockLedger
from sop.infrastructure.db.session import get_engine


def _quantity(name: str, location: StockLocation) -> int:
    with Session(get_engine()) as session:
        return session.execute(
            select(StockItemModel.quantity).where(
                StockItemModel.name == name,
                StockItemModel.location == location.value,
            )
        ).scalar_one()


def test_parallel_orders_do_not_lose_deductions(restocked: int) -> None:
    ledger = SqlAlchemyStockLedger()
    plan = DeductionPlan(
        {("Steaks", StockLocation.TRAILER): 1, ("Coke", StockLocation.TRAILER): 1}
    )
    order_ids = [OrderId(f"ord_{uuid4().hex}") for _ in range(20)]

    with ThreadPoolExecutor(max_workers=10) as executor:
        results = list(executor.map(lambda order_id: ledger.apply(order_id, plan), order_ids))

    assert all(result.applied for result in results)
    assert _quantity("Steaks", StockLocation.TRAILER) == restocked - 20
    assert _quantity("Coke", StockLocation.TRAILER) == restocked - 20


def test_parallel_redelivery_applies_once(restocked: int) -> None:
    ledger = SqlAlchemyStockLedger()
    plan = DeductionPlan({("Lamb", StockLocation.LOCKUP): 2})
    order_id = OrderId(f"ord_{uuid4().hex}")

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: ledger.apply(order_id, plan), range(8)))

    assert sum(1 for result in results if result.applied) == 1
    assert _quantity("Lamb", StockLocation.LOCKUP) == restocked - 2
