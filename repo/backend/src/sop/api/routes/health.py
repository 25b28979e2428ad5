from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from sop.infrastructure.cache.redis_client import ping_redis
from sop.infrastructure.config import deduction_location, menu_cache_ttl_seconds
from sop.infrastructure.db.session import ping_database

logger = logging.getLogger(__name__)

router = APIRouter()


def config_valid() -> bool:
    try:
        deduction_location()
        menu_cache_ttl_seconds()
    except RuntimeError:
        logger.warning("config_invalid", exc_info=True)
        return False
    return True


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks = {
        "database": ping_database(timeout_seconds=1.0),
        "redis": ping_redis(timeout_seconds=1.0),
        "config": config_valid(),
    }
    if all(checks.values()):
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
