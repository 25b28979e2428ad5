from __future__ import annotations

import sys
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from sop.domain.common.money import Money


def test_money_rejects_negative_and_fractional_amounts() -> None:
    with pytest.raises(ValueError):
        Money(amount_cents=-1, currency="GBP")
    with pytest.raises(ValueError):
        Money(amount_cents=1.5, currency="GBP")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Money(amount_cents=True, currency="GBP")  # type: ignore[arg-type]


def test_money_requires_uppercase_iso_code() -> None:
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="gbp")
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="POUND")


def test_money_addition_requires_same_currency() -> None:
    assert Money(150, "GBP") + Money(50, "GBP") == Money(200, "GBP")
    with pytest.raises(ValueError):
        Money(150, "GBP") + Money(50, "USD")


def test_money_times_rejects_negative_factor() -> None:
    assert Money(150, "GBP").times(3) == Money(450, "GBP")
    assert Money(150, "GBP").times(0) == Money.zero("GBP")
    with pytest.raises(ValueError):
        Money(150, "GBP").times(-1)


def test_from_decimal_rounds_half_up_once() -> None:
    assert Money.from_decimal("1.50", "GBP").amount_cents == 150
    assert Money.from_decimal("0.005", "GBP").amount_cents == 1
    assert Money.from_decimal(Decimal("10.004"), "GBP").amount_cents == 1000
    assert Money.from_decimal("11.00", "GBP").to_decimal() == Decimal("11")


@pytest.mark.parametrize(
    ("base", "addons", "quantity"),
    [
        ("12.00", ["10.00"], 2),
        ("10.00", ["1.50", "1.50", "0.50"], 1),
        ("20.00", ["11.00", "6.00", "0.50"], 7),
        ("0.10", ["0.20"] * 30, 3),
    ],
)
def test_integer_arithmetic_matches_decimal_rounded_once(
    base: str,
    addons: list[str],
    quantity: int,
) -> None:
    unit = Money.from_decimal(base, "GBP")
    for addon in addons:
        unit = unit + Money.from_decimal(addon, "GBP")
    total = unit.times(quantity)

    expected = (Decimal(base) + sum(Decimal(addon) for addon in addons)) * quantity
    expected_minor = (expected * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    assert total.amount_cents == int(expected_minor)
