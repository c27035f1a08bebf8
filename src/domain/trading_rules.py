from __future__ import annotations

from decimal import Decimal

from domain.base_types import Symbol
from domain.errors import InvalidAmountError

DEFAULT_MINIMUM_QUANTITY = Decimal("0.000001")
MINIMUM_QUANTITIES: dict[str, Decimal] = {
    "BTC": Decimal("0.00001"),
    "ETH": Decimal("0.0001"),
    "XRP": Decimal("1"),
    "ADA": Decimal("1"),
    "DOGE": Decimal("1"),
}
MINIMUM_CASH_AMOUNT = Decimal("1")


def minimum_quantity(symbol: Symbol) -> Decimal:
    return MINIMUM_QUANTITIES.get(symbol, DEFAULT_MINIMUM_QUANTITY)


def ensure_positive(value: object, *, name: str) -> Decimal:
    """Return ``value`` as a finite, strictly positive Decimal or raise InvalidAmountError."""
    if not isinstance(value, Decimal) or not value.is_finite():
        raise InvalidAmountError(f"{name} must be a finite decimal number", amount=value)
    if value <= 0:
        raise InvalidAmountError(f"{name} must be > 0", amount=value)
    return value


def validate_trade_quantity(symbol: Symbol, quantity: object) -> Decimal:
    checked = ensure_positive(quantity, name="quantity")
    minimum = minimum_quantity(symbol)
    if checked < minimum:
        raise InvalidAmountError(f"Amount is below minimum for {symbol}", amount=checked, minimum=minimum)
    return checked


def validate_cash_amount(amount: object) -> Decimal:
    checked = ensure_positive(amount, name="amount")
    if checked < MINIMUM_CASH_AMOUNT:
        raise InvalidAmountError(
            f"amount must be at least {MINIMUM_CASH_AMOUNT}", amount=checked, minimum=MINIMUM_CASH_AMOUNT
        )
    return checked
