from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("sop.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

# Probes and scrapes log at DEBUG.
QUIET_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})


def _route_path(request: Request) -> str:
    # Label by route template so order ids do not explode metric cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _observe(request: Request, status_code: int, started: float) -> dict[str, object]:
    path = _route_path(request)
    duration_seconds = time.perf_counter() - started
    REQUEST_COUNT.labels(method=request.method, path=path, status_code=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration_seconds)
    return {
        "method": request.method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_seconds * 1000, 2),
    }


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_error", extra=_observe(request, 500, started))
            raise

        fields = _observe(request, response.status_code, started)
        level = logging.DEBUG if fields["path"] in QUIET_PATHS else logging.INFO
        logger.log(level, "request_complete", extra=fields)
        return response
