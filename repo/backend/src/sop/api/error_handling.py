from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sop.api.middleware.request_id import get_request_id
from sop.application.use_cases.confirm_order import (
    InvalidOrderTransitionError,
    OrderConflictError,
    StockLedgerUnavailableError,
    StockReplayMismatchError,
)
from sop.application.use_cases.edit_order import OrderConflictError as EditOrderConflictError
from sop.application.use_cases.edit_order import OrderNotEditableError
from sop.application.use_cases.get_order import OrderNotFoundError
from sop.application.use_cases.list_stock import InvalidStockLocationError
from sop.application.use_cases.place_order import (
    IdempotencyReplayMismatchError,
    OrderPricingError,
)
from sop.application.use_cases.pricing import CatalogConfigurationError, CatalogNotFoundError
from sop.application.use_cases.update_order_status import InvalidOrderStatusError
from sop.application.use_cases.update_order_status import (
    InvalidOrderTransitionError as StatusInvalidOrderTransitionError,
)
from sop.application.use_cases.update_order_status import (
    OrderConflictError as StatusOrderConflictError,
)

logger = logging.getLogger(__name__)

# Use-case error -> (HTTP status, error code).
ERROR_CODES: dict[type[Exception], tuple[int, str]] = {
    OrderPricingError: (422, "ORDER_PRICING_FAILED"),
    OrderNotFoundError: (404, "ORDER_NOT_FOUND"),
    IdempotencyReplayMismatchError: (409, "IDEMPOTENCY_KEY_REPLAY_DIFFERENT_PAYLOAD"),
    InvalidOrderTransitionError: (409, "INVALID_ORDER_TRANSITION"),
    OrderConflictError: (409, "CONFLICT"),
    StatusInvalidOrderTransitionError: (409, "INVALID_ORDER_TRANSITION"),
    StatusOrderConflictError: (409, "CONFLICT"),
    InvalidOrderStatusError: (400, "INVALID_ORDER_STATUS"),
    OrderNotEditableError: (409, "ORDER_NOT_EDITABLE"),
    EditOrderConflictError: (409, "CONFLICT"),
    StockLedgerUnavailableError: (503, "STOCK_LEDGER_UNAVAILABLE"),
    StockReplayMismatchError: (409, "STOCK_LEDGER_REPLAY_MISMATCH"),
    CatalogNotFoundError: (404, "CATALOG_NOT_FOUND"),
    CatalogConfigurationError: (500, "CATALOG_MISCONFIGURED"),
    InvalidStockLocationError: (400, "INVALID_STOCK_LOCATION"),
}

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": jsonable_encoder(details or {}),
        },
        "requestId": get_request_id(),
    }


def _use_case_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        if status_code >= 500:
            logger.error("request_failed", extra={"error_code": code}, exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content=error_body(code, str(exc), details if isinstance(details, dict) else None),
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=error_body(
            HTTP_ERROR_CODES.get(http_exc.status_code, "HTTP_ERROR"),
            str(http_exc.detail) if http_exc.detail else "request failed",
        ),
        headers=getattr(http_exc, "headers", None),
    )


def _field_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # Drop the leading "body"/"query"/"header" segment so paths read like the payload.
    return [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=400,
        content=error_body(
            "INVALID_REQUEST",
            "request validation failed",
            {"errors": _field_errors(validation_exc)},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls, (status_code, code) in ERROR_CODES.items():
        app.add_exception_handler(exc_cls, _use_case_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
