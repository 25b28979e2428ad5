from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from sop.application.ports.repositories import (
    IdempotencyReplayMismatchError,
    OptimisticConcurrencyError,
    OrderRepository,
)
from sop.domain.common.ids import MenuItemId, OrderId
from sop.domain.common.money import Money
from sop.domain.order.entities import Order, OrderLine, OrderStatus, PricedLine
from sop.infrastructure.db.models.order import OrderLineModel, OrderModel
from sop.infrastructure.db.session import get_engine


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        order_model = self._to_model(order)
        with Session(self._engine) as session:
            session.add(order_model)
            session.commit()

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.lines))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def get_by_idempotency(self, key: str) -> Order | None:
        with Session(self._engine) as session:
            model = session.execute(self._idempotency_statement(key)).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def add_with_idempotency(
        self,
        order: Order,
        key: str,
        payload_hash: str,
    ) -> Order:
        statement = self._idempotency_statement(key)

        with Session(self._engine) as session:
            existing = session.execute(statement).scalar_one_or_none()
            if existing is not None:
                return self._replayed(existing, key, payload_hash)

            model = self._to_model(order)
            model.idempotency_key = key
            model.idempotency_hash = payload_hash
            session.add(model)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.execute(statement).scalar_one_or_none()
                if existing is None:
                    raise
                return self._replayed(existing, key, payload_hash)

        created = self.get(order.order_id)
        if created is None:
            raise RuntimeError("created order not found")
        return created

    def confirm_with_version(
        self,
        order_id: OrderId,
        payment_id: str | None,
        confirmed_at: datetime,
        expected_version: int,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.version == expected_version,
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .values(
                status=OrderStatus.CONFIRMED.value,
                payment_id=payment_id,
                confirmed_at=confirmed_at,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order_id} version conflict")
            session.commit()

        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after confirmation")
        return updated

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        completed_at: datetime | None,
        expected_version: int,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=new_status.value,
                completed_at=completed_at,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order_id} version conflict")
            session.commit()

        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after status update")
        return updated

    def replace_lines_with_version(self, order: Order, expected_version: int) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .values(
                customer_name=order.customer_name,
                total_cents=order.total.amount_cents,
                currency=order.total.currency,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
            session.execute(
                delete(OrderLineModel).where(OrderLineModel.order_id == str(order.order_id))
            )
            session.add_all(self._to_line_models(order))
            session.commit()

        updated = self.get(order.order_id)
        if updated is None:
            raise RuntimeError(f"order {order.order_id} not found after edit")
        return updated

    def _idempotency_statement(self, key: str):
        return (
            select(OrderModel)
            .options(selectinload(OrderModel.lines))
            .where(OrderModel.idempotency_key == key)
            .limit(1)
        )

    def _replayed(self, existing: OrderModel, key: str, payload_hash: str) -> Order:
        if existing.idempotency_hash != payload_hash:
            raise IdempotencyReplayMismatchError(
                f"idempotency key replay with different payload: {key}"
            )
        return self._to_domain(existing)

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            customer_name=order.customer_name,
            status=order.status.value,
            version=order.version,
            created_at=order.created_at,
            confirmed_at=order.confirmed_at,
            completed_at=order.completed_at,
            payment_id=order.payment_id,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            idempotency_key=order.idempotency_key,
            idempotency_hash=order.idempotency_hash,
        )
        order_model.lines = self._to_line_models(order)
        return order_model

    def _to_line_models(self, order: Order) -> list[OrderLineModel]:
        return [
            OrderLineModel(
                id=f"{order.order_id}-{position}",
                order_id=str(order.order_id),
                position=position,
                item_id=str(priced.item_id),
                name=priced.item_name,
                quantity=priced.quantity,
                addons=list(priced.line.addons),
                free_addons=list(priced.free_addons_applied),
                unit_price_cents=priced.unit_price.amount_cents,
                currency=priced.unit_price.currency,
                line_total_cents=priced.line_total.amount_cents,
            )
            for position, priced in enumerate(order.lines)
        ]

    def _to_domain(self, model: OrderModel) -> Order:
        lines = [
            PricedLine(
                line=OrderLine(
                    item_id=MenuItemId(line.item_id),
                    quantity=line.quantity,
                    addons=tuple(line.addons or ()),
                ),
                item_name=line.name,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                line_total=Money(amount_cents=line.line_total_cents, currency=line.currency),
                free_addons_applied=tuple(line.free_addons or ()),
            )
            for line in model.lines
        ]
        return Order(
            order_id=OrderId(model.id),
            customer_name=model.customer_name,
            status=OrderStatus(model.status),
            lines=lines,
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=_as_utc(model.created_at),
            version=model.version,
            payment_id=model.payment_id,
            idempotency_key=model.idempotency_key,
            idempotency_hash=model.idempotency_hash,
            confirmed_at=_as_utc(model.confirmed_at),
            completed_at=_as_utc(model.completed_at),
        )
