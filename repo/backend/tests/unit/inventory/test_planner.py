from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from sop.domain.common.ids import MenuItemId
from sop.domain.common.money import Money
from sop.domain.inventory.entities import (
    DeductionPlan,
    DeductionRule,
    DeductionRuleTable,
    NoDeductList,
    StockLocation,
)
from sop.domain.inventory.planner import plan_deductions
from sop.domain.order.entities import OrderLine, PricedLine

TRAILER = StockLocation.TRAILER

RULES = DeductionRuleTable(
    menu_item_rules={
        "Deluxe Steak & Fries": [DeductionRule("Steaks", 2)],
        "Steak & Fries": [DeductionRule("Steaks", 1)],
        "Steak Only": [DeductionRule("Steaks", 1)],
        "Kids Meal": [DeductionRule("Steaks", 1)],
        "Coke": [DeductionRule("Coke", 1)],
    },
    addon_rules={
        "Steak": [DeductionRule("Steaks", 1)],
        "Lamb": [DeductionRule("Lamb", 2)],
        "Short Rib": [DeductionRule("Short Rib", 2)],
        "Coke": [DeductionRule("Coke", 1)],
        "Ketchup": [DeductionRule("Ketchup", 1)],
    },
)
NO_DEDUCT = NoDeductList(frozenset({"Fries", "Chip Seasoning", "Green Sauce", "Mayo", "Ketchup"}))


def _priced(name: str, quantity: int = 1, addons: tuple[str, ...] = ()) -> PricedLine:
    # Deduction only reads names and quantities; prices are placeholders.
    unit = Money(100, "GBP")
    return PricedLine(
        line=OrderLine(item_id=MenuItemId(f"itm_{name}"), quantity=quantity, addons=addons),
        item_name=name,
        unit_price=unit,
        line_total=unit.times(quantity),
    )


def test_deluxe_with_lamb_addon() -> None:
    plan = plan_deductions([_priced("Deluxe Steak & Fries", addons=("Lamb",))], RULES, NO_DEDUCT)

    assert plan == DeductionPlan({("Steaks", TRAILER): 2, ("Lamb", TRAILER): 2})


def test_no_deduct_addon_is_excluded_even_with_a_rule() -> None:
    plan = plan_deductions([_priced("Signature Fries", addons=("Ketchup",))], RULES, NO_DEDUCT)

    assert plan == DeductionPlan()
    assert ("Ketchup", TRAILER) not in plan


def test_item_without_rules_deducts_nothing() -> None:
    plan = plan_deductions([_priced("Kids Fries", quantity=4)], RULES, NO_DEDUCT)

    assert len(plan) == 0


def test_steak_only_and_steak_and_fries_do_not_collide() -> None:
    plan = plan_deductions(
        [_priced("Steak Only", quantity=2), _priced("Steak & Fries", quantity=3)],
        RULES,
        NO_DEDUCT,
    )

    assert plan[("Steaks", TRAILER)] == 5


def test_addon_units_and_line_quantity_multiply() -> None:
    plan = plan_deductions(
        [_priced("Steak & Fries", quantity=2, addons=("Short Rib x2", "Coke"))],
        RULES,
        NO_DEDUCT,
    )

    assert plan == DeductionPlan(
        {
            ("Steaks", TRAILER): 2,
            ("Short Rib", TRAILER): 8,
            ("Coke", TRAILER): 2,
        }
    )


def test_no_deduct_menu_item_and_stock_names_are_excluded() -> None:
    rules = DeductionRuleTable(
        menu_item_rules={
            "Mayo": [DeductionRule("Mayo", 1)],
            "Steak & Fries": [DeductionRule("Steaks", 1), DeductionRule("Fries", 1)],
        }
    )

    plan = plan_deductions(
        [_priced("Mayo", quantity=10), _priced("Steak & Fries", quantity=10)],
        rules,
        NO_DEDUCT,
    )

    assert plan == DeductionPlan({("Steaks", TRAILER): 10})


def test_location_is_configurable() -> None:
    plan = plan_deductions(
        [_priced("Steak Only")],
        RULES,
        NO_DEDUCT,
        location=StockLocation.LOCKUP,
    )

    assert plan == DeductionPlan({("Steaks", StockLocation.LOCKUP): 1})
    assert plan.for_location(TRAILER) == {}


def test_plan_of_many_lines_is_sum_of_single_line_plans() -> None:
    lines = [
        _priced("Deluxe Steak & Fries", quantity=2, addons=("Lamb", "Steak x2")),
        _priced("Kids Meal", addons=("Coke", "Coke", "Green Sauce")),
        _priced("Signature Fries", quantity=3, addons=("Ketchup", "Mayo")),
        _priced("Coke", quantity=4),
    ]

    combined = plan_deductions(lines, RULES, NO_DEDUCT)
    summed = DeductionPlan()
    for line in lines:
        summed = summed + plan_deductions([line], RULES, NO_DEDUCT)

    assert combined == summed
    assert combined == plan_deductions(lines, RULES, NO_DEDUCT)


def test_plan_rejects_negative_units_and_drops_zeros() -> None:
    with pytest.raises(ValueError):
        DeductionPlan({("Steaks", TRAILER): -1})

    plan = DeductionPlan({("Steaks", TRAILER): 0, ("Lamb", TRAILER): 2})

    assert list(plan.items()) == [(("Lamb", TRAILER), 2)]


def test_rule_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        RULES.menu_item_rules["Steak Only"] = ()  # type: ignore[index]
    with pytest.raises(ValueError):
        DeductionRule("Steaks", 0)
