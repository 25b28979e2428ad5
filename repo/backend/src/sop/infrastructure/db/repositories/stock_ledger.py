from __future__ import annotations

import hashlib
import json
import logging

from opentelemetry import trace
from sqlalchemy import Engine, and_, case, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sop.application.ports.stock_ledger import (
    LedgerApplyFailure,
    LedgerApplyResult,
    LedgerReplayMismatchError,
    StockClamp,
    StockLedger,
)
from sop.domain.common.ids import OrderId
from sop.domain.inventory.entities import DeductionPlan, StockItem, StockKey
from sop.infrastructure.db.models.stock import StockDeductionModel, StockItemModel
from sop.infrastructure.db.repositories.stock_repo import to_stock_item
from sop.infrastructure.db.session import get_engine

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def plan_fingerprint(plan: DeductionPlan) -> str:
    canonical = json.dumps(
        [[name, location.value, units] for (name, location), units in plan.items()],
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SqlAlchemyStockLedger(StockLedger):
    """Applies deduction plans to ``stock_items`` in one transaction per order.

    A ``stock_deductions`` row keyed by order id is written in the same
    transaction as the decrements, so a plan lands completely or not at all
    and lands at most once. Rows are locked in name/location order before
    being decremented in place.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def apply(self, order_id: OrderId, plan: DeductionPlan) -> LedgerApplyResult:
        with tracer.start_as_current_span("stock_ledger.apply") as span:
            span.set_attribute("sop.order_id", str(order_id))
            span.set_attribute("sop.deduction_entries", len(plan))
            result = self._apply(order_id, plan)
            span.set_attribute("sop.applied", result.applied)
            return result

    def _apply(self, order_id: OrderId, plan: DeductionPlan) -> LedgerApplyResult:
        plan_hash = plan_fingerprint(plan)
        try:
            with Session(self._engine) as session:
                replayed = self._replay_result(session, order_id, plan_hash)
                if replayed is not None:
                    return replayed
                session.add(StockDeductionModel(order_id=str(order_id), plan_hash=plan_hash))
                try:
                    session.flush()
                except IntegrityError:
                    # Another worker recorded this order between our check and insert.
                    session.rollback()
                    replayed = self._replay_result(session, order_id, plan_hash)
                    if replayed is None:
                        raise
                    return replayed

                result = self._decrement(session, order_id, plan)
                session.commit()
        except SQLAlchemyError as exc:
            raise LedgerApplyFailure(f"stock deduction for order {order_id} failed") from exc

        logger.info(
            "stock_deduction_applied",
            extra={"order_id": str(order_id), "deductions": len(result.deducted)},
        )
        return result

    def _replay_result(
        self,
        session: Session,
        order_id: OrderId,
        plan_hash: str,
    ) -> LedgerApplyResult | None:
        marker = session.get(StockDeductionModel, str(order_id))
        if marker is None:
            return None
        if marker.plan_hash != plan_hash:
            raise LedgerReplayMismatchError(
                f"order {order_id} was already deducted with a different plan"
            )
        logger.info("stock_deduction_replayed", extra={"order_id": str(order_id)})
        return LedgerApplyResult(order_id=order_id, applied=False)

    def _decrement(
        self,
        session: Session,
        order_id: OrderId,
        plan: DeductionPlan,
    ) -> LedgerApplyResult:
        deducted: dict[StockKey, int] = {}
        clamped: list[StockClamp] = []
        missing: list[StockKey] = []
        low_stock: list[StockItem] = []
        if not plan:
            return LedgerApplyResult(order_id=order_id, applied=True)

        statement = (
            select(StockItemModel)
            .where(
                or_(
                    *(
                        and_(
                            StockItemModel.name == name,
                            StockItemModel.location == location.value,
                        )
                        for name, location in plan
                    )
                )
            )
            .order_by(StockItemModel.name, StockItemModel.location)
            .with_for_update()
        )
        rows = {
            (row.name, row.location): row for row in session.execute(statement).scalars().all()
        }

        for (name, location), units in plan.items():
            row = rows.get((name, location.value))
            if row is None:
                missing.append((name, location))
                logger.warning(
                    "stock_deduction_missing_row",
                    extra={
                        "order_id": str(order_id),
                        "stock_item": name,
                        "location": location.value,
                        "requested": units,
                    },
                )
                continue

            available = row.quantity
            session.execute(
                update(StockItemModel)
                .where(StockItemModel.id == row.id)
                .values(
                    quantity=case(
                        (StockItemModel.quantity >= units, StockItemModel.quantity - units),
                        else_=0,
                    ),
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            remaining = max(available - units, 0)
            deducted[(name, location)] = available - remaining
            if units > available:
                clamped.append(
                    StockClamp(
                        stock_item_name=name,
                        location=location.value,
                        requested=units,
                        available=available,
                    )
                )
                logger.warning(
                    "stock_deduction_clamped",
                    extra={
                        "order_id": str(order_id),
                        "stock_item": name,
                        "location": location.value,
                        "requested": units,
                        "available": available,
                    },
                )

            item = to_stock_item(row, quantity=remaining)
            if item.is_low_stock:
                low_stock.append(item)

        return LedgerApplyResult(
            order_id=order_id,
            applied=True,
            deducted=deducted,
            clamped=clamped,
            missing=missing,
            low_stock=low_stock,
        )
