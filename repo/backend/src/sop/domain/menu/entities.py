from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sop.domain.common.ids import MenuItemId
from sop.domain.common.money import Money


class MenuCategory(str, Enum):
    MAIN = "Main"
    KIDS = "Kids"
    DRINKS = "Drinks"
    SIDES = "Sides"

    @classmethod
    def parse(cls, value: str) -> MenuCategory:
        # Older menus filed fries portions under their own category.
        if value == "Fries":
            return cls.SIDES
        return cls(value)


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    category: MenuCategory
    price_money: Money
    is_available: bool
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")


@dataclass(frozen=True)
class AddonCatalogEntry:
    name: str
    unit_price: Money

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("add-on name must be non-empty")


class PolicyConflictError(ValueError):
    def __init__(self, item_name: str, addon_names: frozenset[str]) -> None:
        self.item_name = item_name
        self.addon_names = addon_names
        self.details = {"itemName": item_name, "addonNames": sorted(addon_names)}
        super().__init__(
            f"free-addon policy for {item_name!r} lists {sorted(addon_names)} "
            "as both free drink and free sauce"
        )


@dataclass(frozen=True)
class FreeAddonPolicy:
    """One free unit per category per order line for the named menu item."""

    item_name: str
    free_drinks: frozenset[str] = frozenset()
    free_sauces: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        overlap = self.free_drinks & self.free_sauces
        if overlap:
            raise PolicyConflictError(self.item_name, overlap)

    @classmethod
    def empty(cls, item_name: str) -> FreeAddonPolicy:
        return cls(item_name=item_name)

    @property
    def is_empty(self) -> bool:
        return not self.free_drinks and not self.free_sauces


@dataclass(frozen=True)
class Menu:
    """A versioned snapshot of everything a storefront sells and how it is priced."""

    version: int
    items: list[MenuItem] = field(default_factory=list)
    addons: list[AddonCatalogEntry] = field(default_factory=list)
    policies: list[FreeAddonPolicy] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("version must be >= 1")
