from __future__ import annotations

import sys
from itertools import permutations
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from sop.domain.common.ids import MenuItemId
from sop.domain.common.money import Money
from sop.domain.menu.entities import AddonCatalogEntry, FreeAddonPolicy, MenuCategory, MenuItem
from sop.domain.order.entities import OrderLine, PricedLine
from sop.domain.pricing.catalog import PricingCatalog
from sop.domain.pricing.engine import price_order, price_order_line, total_of
from sop.domain.pricing.errors import InvalidAddonToken, UnknownAddon, UnknownItem

ADDON_PRICES = {
    "Steak": 1000,
    "Lamb": 1100,
    "Short Rib": 600,
    "Coke": 150,
    "Sprite": 150,
    "Green Sauce": 50,
    "Red Sauce": 50,
}


def _catalog() -> PricingCatalog:
    items = [
        MenuItem(
            item_id=MenuItemId("itm_001"),
            name="Steak & Fries",
            category=MenuCategory.MAIN,
            price_money=Money(1200, "GBP"),
            is_available=True,
        ),
        MenuItem(
            item_id=MenuItemId("itm_005"),
            name="Kids Meal",
            category=MenuCategory.KIDS,
            price_money=Money(1000, "GBP"),
            is_available=True,
        ),
        MenuItem(
            item_id=MenuItemId("itm_003"),
            name="Steak Only",
            category=MenuCategory.MAIN,
            price_money=Money(1000, "GBP"),
            is_available=False,
        ),
    ]
    addons = [
        AddonCatalogEntry(name=name, unit_price=Money(cents, "GBP"))
        for name, cents in ADDON_PRICES.items()
    ]
    policies = [
        FreeAddonPolicy(
            item_name="Kids Meal",
            free_drinks=frozenset({"Coke", "Sprite"}),
            free_sauces=frozenset({"Green Sauce"}),
        )
    ]
    return PricingCatalog(currency="GBP", items=items, addons=addons, policies=policies)


def test_kids_meal_frees_one_drink_and_one_sauce() -> None:
    line = OrderLine(
        item_id=MenuItemId("itm_005"),
        quantity=1,
        addons=("Coke", "Coke", "Green Sauce"),
    )

    priced = price_order_line(line, _catalog())

    assert isinstance(priced, PricedLine)
    assert priced.unit_price == Money(1150, "GBP")
    assert priced.line_total == Money(1150, "GBP")
    assert priced.free_addons_applied == ("Coke", "Green Sauce")


def test_line_without_policy_charges_every_addon_per_unit() -> None:
    line = OrderLine(item_id=MenuItemId("itm_001"), quantity=2, addons=("Steak",))

    priced = price_order_line(line, _catalog())

    assert isinstance(priced, PricedLine)
    assert priced.unit_price == Money(2200, "GBP")
    assert priced.line_total == Money(4400, "GBP")
    assert priced.free_addons_applied == ()


def test_unknown_addon_is_returned_not_priced_at_zero() -> None:
    line = OrderLine(item_id=MenuItemId("itm_001"), quantity=1, addons=("Truffle Oil",))

    result = price_order_line(line, _catalog())

    assert result == UnknownAddon(name="Truffle Oil", item_id="itm_001")
    assert result.kind == "UNKNOWN_ADDON"
    assert result.key == "Truffle Oil"


def test_unknown_item_is_returned() -> None:
    line = OrderLine(item_id=MenuItemId("itm_404"), quantity=1)

    assert price_order_line(line, _catalog()) == UnknownItem(item_id="itm_404")


@pytest.mark.parametrize("token", ["", "   ", "Coke x0"])
def test_malformed_addon_tokens_are_rejected(token: str) -> None:
    line = OrderLine(item_id=MenuItemId("itm_001"), quantity=1, addons=(token,))

    result = price_order_line(line, _catalog())

    assert isinstance(result, InvalidAddonToken)
    assert result.token == token


def test_counted_token_frees_only_one_unit() -> None:
    line = OrderLine(item_id=MenuItemId("itm_005"), quantity=3, addons=("Coke x3",))

    priced = price_order_line(line, _catalog())

    assert isinstance(priced, PricedLine)
    assert priced.unit_price == Money(1000 + 2 * 150, "GBP")
    assert priced.line_total == Money(3 * 1300, "GBP")


def test_free_drink_goes_to_first_eligible_drink_in_order() -> None:
    line = OrderLine(item_id=MenuItemId("itm_005"), quantity=1, addons=("Sprite", "Coke"))

    priced = price_order_line(line, _catalog())

    assert isinstance(priced, PricedLine)
    assert priced.free_addons_applied == ("Sprite",)
    assert priced.unit_price == Money(1150, "GBP")


@pytest.mark.parametrize("coke_count", [1, 2, 3, 5])
def test_free_unit_cap_holds_regardless_of_interleaving(coke_count: int) -> None:
    addon_lists = {
        tuple(order)
        for order in permutations(["Coke"] * coke_count + ["Steak", "Red Sauce"])
    }
    expected = 1000 + (coke_count - 1) * 150 + 1000 + 50

    for addons in addon_lists:
        line = OrderLine(item_id=MenuItemId("itm_005"), quantity=1, addons=addons)
        priced = price_order_line(line, _catalog())
        assert isinstance(priced, PricedLine)
        assert priced.unit_price.amount_cents == expected
        assert priced.free_addons_applied == ("Coke",)


def test_unavailable_items_are_still_priced() -> None:
    line = OrderLine(item_id=MenuItemId("itm_003"), quantity=1)

    priced = price_order_line(line, _catalog())

    assert isinstance(priced, PricedLine)
    assert priced.unit_price == Money(1000, "GBP")


def test_pricing_is_deterministic() -> None:
    catalog = _catalog()
    line = OrderLine(
        item_id=MenuItemId("itm_005"),
        quantity=2,
        addons=("Coke", "Sprite x2", "Green Sauce", "Lamb"),
    )

    assert price_order_line(line, catalog) == price_order_line(line, catalog)


def test_price_order_reports_every_failing_line_with_index() -> None:
    lines = [
        OrderLine(item_id=MenuItemId("itm_001"), quantity=1),
        OrderLine(item_id=MenuItemId("itm_404"), quantity=1),
        OrderLine(item_id=MenuItemId("itm_005"), quantity=1, addons=("Truffle Oil",)),
    ]

    priced, errors = price_order(lines, _catalog())

    assert [line.item_name for line in priced] == ["Steak & Fries"]
    assert errors == [
        UnknownItem(item_id="itm_404", line_index=1),
        UnknownAddon(name="Truffle Oil", item_id="itm_005", line_index=2),
    ]


def test_total_of_sums_line_totals() -> None:
    lines = [
        OrderLine(item_id=MenuItemId("itm_001"), quantity=2, addons=("Steak",)),
        OrderLine(item_id=MenuItemId("itm_005"), quantity=1, addons=("Coke", "Coke")),
    ]

    priced, errors = price_order(lines, _catalog())

    assert errors == []
    assert total_of(priced, "GBP") == Money(4400 + 1150, "GBP")
    assert total_of([], "GBP") == Money.zero("GBP")
