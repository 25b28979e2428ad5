from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from sop.domain.common.ids import MenuItemId
from sop.domain.common.money import Money
from sop.domain.menu.entities import AddonCatalogEntry, FreeAddonPolicy, Menu, MenuItem


class LookupKind(str, Enum):
    MENU_ITEM = "menu_item"
    ADDON = "addon"


@dataclass(frozen=True)
class NotFound:
    kind: LookupKind
    key: str


class CatalogIntegrityError(ValueError):
    pass


class PricingCatalog:
    """Read-only lookups over menu items, add-on prices and free-add-on policies.

    Add-ons are joined by name rather than id: the same product ("Steak") can
    be sold as a menu item at one price and as an add-on at another.
    """

    def __init__(
        self,
        currency: str,
        items: Iterable[MenuItem],
        addons: Iterable[AddonCatalogEntry],
        policies: Iterable[FreeAddonPolicy] = (),
    ) -> None:
        self._currency = currency
        self._items_by_id: dict[str, MenuItem] = {}
        self._items_by_name: dict[str, MenuItem] = {}
        self._addon_prices: dict[str, Money] = {}
        self._policies: dict[str, FreeAddonPolicy] = {}

        for item in items:
            if str(item.item_id) in self._items_by_id:
                raise CatalogIntegrityError(f"duplicate menu item id {item.item_id}")
            self._ensure_currency(item.price_money, f"menu item {item.name!r}")
            self._items_by_id[str(item.item_id)] = item
            self._items_by_name.setdefault(item.name, item)

        for entry in addons:
            if entry.name in self._addon_prices:
                raise CatalogIntegrityError(f"duplicate add-on price for {entry.name!r}")
            self._ensure_currency(entry.unit_price, f"add-on {entry.name!r}")
            self._addon_prices[entry.name] = entry.unit_price

        for policy in policies:
            if policy.item_name in self._policies:
                raise CatalogIntegrityError(f"duplicate free-addon policy for {policy.item_name!r}")
            self._policies[policy.item_name] = policy

    @classmethod
    def from_menu(cls, menu: Menu, currency: str) -> PricingCatalog:
        return cls(
            currency=currency,
            items=menu.items,
            addons=menu.addons,
            policies=menu.policies,
        )

    @property
    def currency(self) -> str:
        return self._currency

    def resolve_menu_item(self, item_id: MenuItemId | str) -> MenuItem | NotFound:
        item = self._items_by_id.get(str(item_id))
        if item is None:
            return NotFound(kind=LookupKind.MENU_ITEM, key=str(item_id))
        return item

    def resolve_menu_item_by_name(self, name: str) -> MenuItem | NotFound:
        item = self._items_by_name.get(name)
        if item is None:
            return NotFound(kind=LookupKind.MENU_ITEM, key=name)
        return item

    def resolve_addon_price(self, name: str) -> Money | NotFound:
        price = self._addon_prices.get(name)
        if price is None:
            return NotFound(kind=LookupKind.ADDON, key=name)
        return price

    def policy_for(self, item_name: str) -> FreeAddonPolicy:
        return self._policies.get(item_name) or FreeAddonPolicy.empty(item_name)

    def _ensure_currency(self, amount: Money, label: str) -> None:
        if amount.currency != self._currency:
            raise CatalogIntegrityError(
                f"{label} is priced in {amount.currency}, catalog currency is {self._currency}"
            )
