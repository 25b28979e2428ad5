from __future__ import annotations

import os

from sop.domain.inventory.entities import StockLocation

DEFAULT_STORE_CURRENCY = "GBP"
DEFAULT_MENU_CACHE_TTL_SECONDS = 300


def store_currency() -> str:
    return os.getenv("STORE_CURRENCY", DEFAULT_STORE_CURRENCY).strip().upper()


def deduction_location() -> StockLocation:
    raw_value = os.getenv("STOCK_DEDUCTION_LOCATION", StockLocation.TRAILER.value).strip()
    try:
        return StockLocation(raw_value)
    except ValueError as exc:
        allowed = ", ".join(location.value for location in StockLocation)
        raise RuntimeError(
            f"STOCK_DEDUCTION_LOCATION={raw_value!r} is not one of {allowed}"
        ) from exc


def menu_cache_ttl_seconds() -> int:
    raw_value = os.getenv("MENU_CACHE_TTL_SECONDS")
    if not raw_value:
        return DEFAULT_MENU_CACHE_TTL_SECONDS
    try:
        ttl = int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"MENU_CACHE_TTL_SECONDS={raw_value!r} is not an integer") from exc
    return max(1, ttl)
