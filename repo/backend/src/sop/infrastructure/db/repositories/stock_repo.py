from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from sop.application.ports.repositories import StockRepository
from sop.domain.common.ids import StockItemId
from sop.domain.inventory.entities import StockItem, StockLocation
from sop.infrastructure.db.models.stock import StockItemModel
from sop.infrastructure.db.session import get_engine


def to_stock_item(model: StockItemModel, quantity: int | None = None) -> StockItem:
    return StockItem(
        stock_item_id=StockItemId(model.id),
        name=model.name,
        location=StockLocation(model.location),
        quantity=model.quantity if quantity is None else quantity,
        low_stock_threshold=model.low_stock_threshold,
        category=model.category,
    )


class SqlAlchemyStockRepository(StockRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_for_location(self, location: StockLocation) -> list[StockItem]:
        statement = (
            select(StockItemModel)
            .where(StockItemModel.location == location.value)
            .order_by(StockItemModel.name)
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [to_stock_item(model) for model in models]
