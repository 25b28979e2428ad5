from __future__ import annotations

from sop.application.dto.responses import (
    AddonPriceResponse,
    FreeAddonPolicyResponse,
    MenuItemResponse,
    MenuResponse,
)
from sop.application.mappers.order_mapper import to_money_response
from sop.domain.menu.entities import Menu


def to_menu_response(menu: Menu, currency: str) -> MenuResponse:
    items = [
        MenuItemResponse(
            itemId=str(item.item_id),
            name=item.name,
            category=item.category.value,
            description=item.description,
            priceMoney=to_money_response(item.price_money),
            isAvailable=item.is_available,
        )
        for item in menu.items
    ]
    addons = [
        AddonPriceResponse(name=entry.name, unitPrice=to_money_response(entry.unit_price))
        for entry in menu.addons
    ]
    policies = [
        FreeAddonPolicyResponse(
            itemName=policy.item_name,
            freeDrinks=sorted(policy.free_drinks),
            freeSauces=sorted(policy.free_sauces),
        )
        for policy in menu.policies
    ]
    return MenuResponse(
        menuVersion=menu.version,
        currency=currency,
        items=items,
        addons=addons,
        freeAddonPolicies=policies,
        updatedAt=menu.updated_at,
    )
