from __future__ import annotations

from sop.application.dto.requests import OrderLineRequest
from sop.application.ports.repositories import CatalogRepository
from sop.domain.common.ids import MenuItemId
from sop.domain.menu.entities import Menu, PolicyConflictError
from sop.domain.order.entities import OrderLine
from sop.domain.pricing.catalog import CatalogIntegrityError, PricingCatalog


class CatalogNotFoundError(Exception):
    pass


class CatalogConfigurationError(Exception):
    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


def load_menu(repository: CatalogRepository) -> Menu:
    try:
        menu = repository.get_menu()
    except PolicyConflictError as exc:
        raise CatalogConfigurationError(str(exc), details=exc.details) from exc
    except CatalogIntegrityError as exc:
        raise CatalogConfigurationError(str(exc)) from exc
    if menu is None:
        raise CatalogNotFoundError("no menu has been published")
    return menu


def load_pricing_catalog(repository: CatalogRepository, currency: str) -> PricingCatalog:
    menu = load_menu(repository)
    try:
        return PricingCatalog.from_menu(menu, currency=currency)
    except CatalogIntegrityError as exc:
        raise CatalogConfigurationError(str(exc)) from exc


def to_order_lines(request_lines: list[OrderLineRequest]) -> list[OrderLine]:
    return [
        OrderLine(
            item_id=MenuItemId(request_line.item_id),
            quantity=request_line.quantity,
            addons=tuple(request_line.addons),
        )
        for request_line in request_lines
    ]
