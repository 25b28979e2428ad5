from __future__ import annotations

from collections.abc import Iterable

from sop.domain.inventory.entities import (
    DeductionPlan,
    DeductionRule,
    DeductionRuleTable,
    NoDeductList,
    StockKey,
    StockLocation,
)
from sop.domain.order.entities import PricedLine, parse_addon_token


def plan_deductions(
    confirmed_lines: Iterable[PricedLine],
    rule_table: DeductionRuleTable,
    no_deduct: NoDeductList,
    location: StockLocation = StockLocation.TRAILER,
) -> DeductionPlan:
    """Translate confirmed order lines into stock decrements at ``location``.

    Each line contributes its menu item's rules times the line quantity, and
    each add-on's rules times the add-on units times the line quantity. Lines
    never interact, so the plan for an order is the sum of its line plans.
    """
    totals: dict[StockKey, int] = {}

    for priced in confirmed_lines:
        if priced.item_name not in no_deduct:
            _accumulate(
                totals,
                rule_table.for_menu_item(priced.item_name),
                priced.quantity,
                no_deduct,
                location,
            )

        for token in priced.line.addons:
            selection = parse_addon_token(token)
            # Priced lines only carry tokens the pricing engine accepted.
            if selection is None or selection.name in no_deduct:
                continue
            _accumulate(
                totals,
                rule_table.for_addon(selection.name),
                selection.quantity * priced.quantity,
                no_deduct,
                location,
            )

    return DeductionPlan(totals)


def _accumulate(
    totals: dict[StockKey, int],
    rules: tuple[DeductionRule, ...],
    multiplier: int,
    no_deduct: NoDeductList,
    location: StockLocation,
) -> None:
    for rule in rules:
        if rule.stock_item_name in no_deduct:
            continue
        key = (rule.stock_item_name, location)
        totals[key] = totals.get(key, 0) + rule.units_per_order_quantity * multiplier
