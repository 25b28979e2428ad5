from __future__ import annotations

from fastapi import APIRouter, Query

from sop.application.dto.responses import StockListResponse
from sop.application.use_cases.list_stock import ListStock
from sop.infrastructure.config import deduction_location
from sop.infrastructure.db.repositories.stock_repo import SqlAlchemyStockRepository

router = APIRouter()


def _list_stock_use_case() -> ListStock:
    return ListStock(stock_repository=SqlAlchemyStockRepository())


@router.get("/v1/stock", response_model=StockListResponse)
def list_stock(location: str | None = Query(default=None)) -> StockListResponse:
    return _list_stock_use_case().execute(location or deduction_location().value)
