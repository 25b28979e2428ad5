from __future__ import annotations

from fastapi import APIRouter, Header, status
from opentelemetry import trace

from sop.api.middleware.request_id import get_request_id
from sop.application.dto.requests import (
    ConfirmOrderRequest,
    EditOrderRequest,
    PlaceOrderRequest,
    QuoteOrderRequest,
    UpdateOrderStatusRequest,
)
from sop.application.dto.responses import ConfirmOrderResponse, OrderResponse, QuoteResponse
from sop.application.use_cases.confirm_order import ConfirmOrder
from sop.application.use_cases.context import TraceContext
from sop.application.use_cases.edit_order import EditOrder
from sop.application.use_cases.get_order import GetOrder
from sop.application.use_cases.place_order import PlaceOrder
from sop.application.use_cases.quote_order import QuoteOrder
from sop.application.use_cases.update_order_status import UpdateOrderStatus
from sop.domain.common.ids import OrderId
from sop.infrastructure.config import deduction_location, store_currency
from sop.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository
from sop.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from sop.infrastructure.db.repositories.stock_ledger import SqlAlchemyStockLedger
from sop.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _current_trace_id() -> str | None:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")


def _trace_context() -> TraceContext:
    return TraceContext(trace_id=_current_trace_id(), request_id=get_request_id())


def _quote_order_use_case() -> QuoteOrder:
    return QuoteOrder(
        catalog_repository=SqlAlchemyCatalogRepository(),
        currency=store_currency(),
    )


def _place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        catalog_repository=SqlAlchemyCatalogRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
        currency=store_currency(),
    )


def _get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


def _confirm_order_use_case() -> ConfirmOrder:
    return ConfirmOrder(
        order_repository=SqlAlchemyOrderRepository(),
        catalog_repository=SqlAlchemyCatalogRepository(),
        stock_ledger=SqlAlchemyStockLedger(),
        publisher=RedisEventPublisher(),
        deduction_location=deduction_location(),
    )


def _edit_order_use_case() -> EditOrder:
    return EditOrder(
        catalog_repository=SqlAlchemyCatalogRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
        currency=store_currency(),
    )


def _update_order_status_use_case() -> UpdateOrderStatus:
    return UpdateOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


@router.post("/v1/orders/quote", response_model=QuoteResponse)
def quote_order(request_dto: QuoteOrderRequest) -> QuoteResponse:
    return _quote_order_use_case().execute(request_dto)


@router.post(
    "/v1/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    request_dto: PlaceOrderRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> OrderResponse:
    return _place_order_use_case().execute(
        request_dto=request_dto,
        trace_ctx=_trace_context(),
        idempotency_key=idempotency_key,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str) -> OrderResponse:
    return _get_order_use_case().execute(order_id=OrderId(order_id))


@router.post("/v1/orders/{order_id}/confirm", response_model=ConfirmOrderResponse)
def confirm_order(
    order_id: str,
    request_dto: ConfirmOrderRequest | None = None,
) -> ConfirmOrderResponse:
    return _confirm_order_use_case().execute(
        order_id=OrderId(order_id),
        request_dto=request_dto or ConfirmOrderRequest(),
        trace_ctx=_trace_context(),
    )


@router.put("/v1/orders/{order_id}", response_model=OrderResponse)
def edit_order(order_id: str, request_dto: EditOrderRequest) -> OrderResponse:
    return _edit_order_use_case().execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        trace_ctx=_trace_context(),
    )


@router.post("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: str, request_dto: UpdateOrderStatusRequest) -> OrderResponse:
    return _update_order_status_use_case().execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        trace_ctx=_trace_context(),
    )
