from __future__ import annotations

from sop.application.dto.responses import OrderResponse
from sop.application.mappers.order_mapper import to_order_response
from sop.application.ports.repositories import OrderRepository
from sop.domain.common.ids import OrderId
from sop.domain.order.entities import Order


class OrderNotFoundError(Exception):
    pass


def load_order(repository: OrderRepository, order_id: OrderId) -> Order:
    order = repository.get(order_id)
    if order is None:
        raise OrderNotFoundError(f"order {order_id} not found")
    return order


class GetOrder:
    """Reads back a placed order with its priced lines and payment state."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        return to_order_response(load_order(self._order_repository, order_id))
