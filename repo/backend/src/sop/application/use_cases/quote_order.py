from __future__ import annotations

from sop.application.dto.requests import QuoteOrderRequest
from sop.application.dto.responses import QuoteResponse
from sop.application.mappers.order_mapper import to_quote_response
from sop.application.ports.repositories import CatalogRepository
from sop.application.use_cases.pricing import load_pricing_catalog, to_order_lines
from sop.domain.pricing.engine import price_order, total_of


class QuoteOrder:
    """Prices a cart without persisting it.

    Used by the storefront cart and the back-office order editor. Lines that
    fail to price are reported next to the ones that succeeded; the quote is
    only chargeable when every line priced.
    """

    def __init__(self, catalog_repository: CatalogRepository, currency: str) -> None:
        self._catalog_repository = catalog_repository
        self._currency = currency

    def execute(self, request_dto: QuoteOrderRequest) -> QuoteResponse:
        catalog = load_pricing_catalog(self._catalog_repository, self._currency)
        priced, errors = price_order(to_order_lines(request_dto.lines), catalog)
        return to_quote_response(priced, errors, total_of(priced, catalog.currency))
