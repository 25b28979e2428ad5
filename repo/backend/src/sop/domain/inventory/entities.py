from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from sop.domain.common.ids import StockItemId


class StockLocation(str, Enum):
    TRAILER = "Trailer"
    LOCKUP = "Lockup"


@dataclass(frozen=True)
class StockItem:
    stock_item_id: StockItemId
    name: str
    location: StockLocation
    quantity: int
    low_stock_threshold: int
    category: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if self.quantity < 0:
            raise ValueError("quantity must be >= 0")
        if self.low_stock_threshold < 0:
            raise ValueError("low_stock_threshold must be >= 0")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold


@dataclass(frozen=True)
class DeductionRule:
    stock_item_name: str
    units_per_order_quantity: int

    def __post_init__(self) -> None:
        if not self.stock_item_name.strip():
            raise ValueError("stock_item_name must be non-empty")
        if self.units_per_order_quantity < 1:
            raise ValueError("units_per_order_quantity must be >= 1")


def _freeze_rules(
    rules: Mapping[str, Iterable[DeductionRule]],
) -> Mapping[str, tuple[DeductionRule, ...]]:
    return MappingProxyType({name: tuple(entries) for name, entries in rules.items()})


@dataclass(frozen=True)
class DeductionRuleTable:
    """Exact-name stock consumption rules for menu items and add-ons.

    A name with no entry consumes nothing.
    """

    menu_item_rules: Mapping[str, tuple[DeductionRule, ...]] = field(default_factory=dict)
    addon_rules: Mapping[str, tuple[DeductionRule, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "menu_item_rules", _freeze_rules(self.menu_item_rules))
        object.__setattr__(self, "addon_rules", _freeze_rules(self.addon_rules))

    def for_menu_item(self, name: str) -> tuple[DeductionRule, ...]:
        return self.menu_item_rules.get(name, ())

    def for_addon(self, name: str) -> tuple[DeductionRule, ...]:
        return self.addon_rules.get(name, ())


@dataclass(frozen=True)
class NoDeductList:
    """Names (menu item, add-on or stock item) that never deduct stock."""

    names: frozenset[str] = frozenset()

    def __contains__(self, name: object) -> bool:
        return name in self.names


StockKey = tuple[str, StockLocation]


class DeductionPlan(Mapping[StockKey, int]):
    """Units to decrement per ``(stock item name, location)``.

    Quantities are always positive; zero contributions are not stored.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[StockKey, int] | None = None) -> None:
        cleaned: dict[StockKey, int] = {}
        for key, units in (entries or {}).items():
            if units < 0:
                raise ValueError(f"deduction for {key[0]!r} must be >= 0")
            if units:
                cleaned[key] = units
        self._entries = dict(
            sorted(cleaned.items(), key=lambda entry: (entry[0][0], entry[0][1].value))
        )

    def __getitem__(self, key: StockKey) -> int:
        return self._entries[key]

    def __iter__(self) -> Iterator[StockKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __add__(self, other: DeductionPlan) -> DeductionPlan:
        if not isinstance(other, DeductionPlan):
            return NotImplemented
        merged = dict(self._entries)
        for key, units in other.items():
            merged[key] = merged.get(key, 0) + units
        return DeductionPlan(merged)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DeductionPlan):
            return self._entries == other._entries
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash(tuple(self._entries.items()))

    def __repr__(self) -> str:
        body = ", ".join(
            f"{name}@{location.value}: {units}" for (name, location), units in self.items()
        )
        return f"DeductionPlan({{{body}}})"

    def for_location(self, location: StockLocation) -> dict[str, int]:
        return {name: units for (name, loc), units in self.items() if loc == location}
