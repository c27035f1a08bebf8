from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def format_quantity(value: Decimal) -> str:
    """Plain notation, trailing zeros dropped: 0.00001000 -> 0.00001, 2E+1 -> 20."""
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return f"{normalized:.0f}"
    return format(normalized, "f")


def format_money(value: Decimal, currency: str | None = None) -> str:
    cents = value.quantize(CENT, rounding=ROUND_HALF_UP)
    text = f"{cents:,.2f}"
    return f"{text} {currency}" if currency else text


def format_percentage(value: Decimal) -> str:
    return f"{value.quantize(CENT, rounding=ROUND_HALF_UP):+.2f}%"
