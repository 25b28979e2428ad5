from __future__ import annotations

from fastapi import APIRouter, Header, Response

from sop.application.dto.responses import MenuResponse
from sop.application.use_cases.get_menu import GetMenu
from sop.infrastructure.cache.cache_store import RedisCacheStore
from sop.infrastructure.config import menu_cache_ttl_seconds, store_currency
from sop.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository

router = APIRouter()

# Item availability changes during service, so clients always revalidate.
MENU_CACHE_CONTROL = "no-cache"


def _get_menu_use_case() -> GetMenu:
    return GetMenu(
        repository=SqlAlchemyCatalogRepository(),
        cache=RedisCacheStore(),
        currency=store_currency(),
        ttl_seconds=menu_cache_ttl_seconds(),
    )


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = {candidate.strip().removeprefix("W/") for candidate in if_none_match.split(",")}
    return "*" in candidates or etag in candidates


@router.get("/v1/menu", response_model=MenuResponse)
def get_menu(
    response: Response,
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
) -> MenuResponse | Response:
    payload = _get_menu_use_case().execute()

    etag = f'"menu-v{payload.menuVersion}"'
    headers = {"ETag": etag, "Cache-Control": MENU_CACHE_CONTROL}
    if etag_matches(if_none_match, etag):
        return Response(status_code=304, headers=headers)

    response.headers.update(headers)
    return payload
