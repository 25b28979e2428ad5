from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sop.api.error_handling import register_exception_handlers
from sop.api.middleware.access_log import AccessLogMiddleware
from sop.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from sop.api.routes.health import router as health_router
from sop.api.routes.menu import router as menu_router
from sop.api.routes.metrics import router as metrics_router
from sop.api.routes.orders import router as orders_router
from sop.api.routes.stock import router as stock_router
from sop.infrastructure.observability.logging_config import configure_logging
from sop.infrastructure.observability.otel import configure_otel


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()
    if env in {"dev", "test"}:
        return ["*"]

    # Storefront and back-office origins must be listed explicitly outside dev.
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="SOP Backend", version="0.1.0")
    register_exception_handlers(app)
    for router in (health_router, metrics_router, menu_router, orders_router, stock_router):
        app.include_router(router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Idempotency-Key", "If-None-Match", REQUEST_ID_HEADER],
        expose_headers=["ETag", REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
