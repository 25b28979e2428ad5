from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from sop.domain.common.money import Money
from sop.domain.order.entities import OrderLine, PricedLine, parse_addon_token
from sop.domain.pricing.catalog import NotFound, PricingCatalog
from sop.domain.pricing.errors import (
    InvalidAddonToken,
    PricingError,
    UnknownAddon,
    UnknownItem,
)


def price_order_line(line: OrderLine, catalog: PricingCatalog) -> PricedLine | PricingError:
    """Price one order line.

    The unit price is the item's base price plus every chargeable add-on unit.
    The item's free-addon policy frees exactly one unit of the first matching
    drink and one unit of the first matching sauce, in add-on order, no matter
    how many units of that add-on were requested.
    """
    menu_item = catalog.resolve_menu_item(line.item_id)
    if isinstance(menu_item, NotFound):
        return UnknownItem(item_id=str(line.item_id))

    policy = catalog.policy_for(menu_item.name)
    unit_price = menu_item.price_money
    free_applied: list[str] = []
    free_drink_consumed = False
    free_sauce_consumed = False

    for token in line.addons:
        selection = parse_addon_token(token)
        if selection is None:
            return InvalidAddonToken(token=token, item_id=str(line.item_id))

        addon_price = catalog.resolve_addon_price(selection.name)
        if isinstance(addon_price, NotFound):
            return UnknownAddon(name=selection.name, item_id=str(line.item_id))

        chargeable_units = selection.quantity
        if selection.name in policy.free_drinks and not free_drink_consumed:
            free_drink_consumed = True
            chargeable_units -= 1
            free_applied.append(selection.name)
        elif selection.name in policy.free_sauces and not free_sauce_consumed:
            free_sauce_consumed = True
            chargeable_units -= 1
            free_applied.append(selection.name)

        unit_price = unit_price + addon_price.times(chargeable_units)

    return PricedLine(
        line=line,
        item_name=menu_item.name,
        unit_price=unit_price,
        line_total=unit_price.times(line.quantity),
        free_addons_applied=tuple(free_applied),
    )


def price_order(
    lines: Iterable[OrderLine],
    catalog: PricingCatalog,
) -> tuple[list[PricedLine], list[PricingError]]:
    priced: list[PricedLine] = []
    errors: list[PricingError] = []
    for index, line in enumerate(lines):
        result = price_order_line(line, catalog)
        if isinstance(result, PricedLine):
            priced.append(result)
        else:
            errors.append(replace(result, line_index=index))
    return priced, errors


def total_of(lines: Iterable[PricedLine], currency: str) -> Money:
    total = Money.zero(currency)
    for line in lines:
        total = total + line.line_total
    return total
