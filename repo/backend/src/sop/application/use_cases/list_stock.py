from __future__ import annotations

from sop.application.dto.responses import StockListResponse
from sop.application.mappers.stock_mapper import to_stock_list_response
from sop.application.ports.repositories import StockRepository
from sop.domain.inventory.entities import StockLocation


class InvalidStockLocationError(Exception):
    pass


class ListStock:
    def __init__(self, stock_repository: StockRepository) -> None:
        self._stock_repository = stock_repository

    def execute(self, location: str) -> StockListResponse:
        try:
            parsed_location = StockLocation(location)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in StockLocation)
            raise InvalidStockLocationError(
                f"invalid location={location}; expected one of {allowed}"
            ) from exc

        items = self._stock_repository.list_for_location(parsed_location)
        return to_stock_list_response(parsed_location, items)
