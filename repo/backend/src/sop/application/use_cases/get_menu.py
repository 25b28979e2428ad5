from __future__ import annotations

import logging

from pydantic import ValidationError

from sop.application.dto.responses import MenuResponse
from sop.application.mappers.menu_mapper import to_menu_response
from sop.application.ports.cache import CacheStore
from sop.application.ports.repositories import CatalogRepository
from sop.application.use_cases.pricing import load_menu

logger = logging.getLogger(__name__)

MENU_VERSION_CACHE_KEY = "menu:version"


def menu_payload_cache_key(version: int, currency: str) -> str:
    return f"menu:v{version}:{currency}"


class GetMenu:
    def __init__(
        self,
        repository: CatalogRepository,
        cache: CacheStore,
        currency: str,
        ttl_seconds: int = 300,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._currency = currency
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("menu_cache_read_failed", extra={"cache_key": key})
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("menu_cache_write_failed", extra={"cache_key": key})

    def _cached_response(self) -> MenuResponse | None:
        cached_version = self._cache_get(MENU_VERSION_CACHE_KEY)
        if cached_version is None:
            return None
        try:
            version = int(cached_version)
        except ValueError:
            return None

        payload = self._cache_get(menu_payload_cache_key(version, self._currency))
        if not payload:
            return None
        try:
            return MenuResponse.model_validate_json(payload)
        except ValidationError:
            return None

    def execute(self) -> MenuResponse:
        cached = self._cached_response()
        if cached is not None:
            return cached

        menu = load_menu(self._repository)
        response = to_menu_response(menu, self._currency)
        self._cache_set(MENU_VERSION_CACHE_KEY, str(response.menuVersion))
        self._cache_set(
            menu_payload_cache_key(response.menuVersion, self._currency),
            response.model_dump_json(),
        )
        return response
