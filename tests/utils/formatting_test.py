from decimal import Decimal

import pytest

from utils.formatting import format_money, format_percentage, format_quantity


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("0.00001000"), "0.00001"),
        (Decimal("2E+1"), "20"),
        (Decimal("1.50"), "1.5"),
    ],
)
def test_format_quantity(value: Decimal, expected: str) -> None:
    assert format_quantity(value) == expected


def test_format_money_rounds_half_up() -> None:
    assert format_money(Decimal("1234.565")) == "1,234.57"
    assert format_money(Decimal("10"), "USD") == "10.00 USD"


def test_format_percentage_is_signed() -> None:
    assert format_percentage(Decimal("12.345")) == "+12.35%"
    assert format_percentage(Decimal("-3")) == "-3.00%"
