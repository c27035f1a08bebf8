from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from domain.account import Account, Position
from domain.base_types import Symbol
from domain.errors import InsufficientFundsError, InsufficientHoldingsError, PriceUnavailableError
from domain.trading_rules import ensure_positive
from domain.transaction import PaymentMethod, Transaction, TransactionType

# Remaining quantities at or below this are treated as a fully closed position.
DUST_EPSILON = Decimal("1e-12")


@dataclass(frozen=True)
class Settlement:
    account: Account
    transaction: Transaction
    realized_profit: Decimal | None = None


class LedgerEngine:
    """Apply buy/sell/deposit/withdraw operations to an account snapshot.

    The engine performs no I/O. Every precondition is checked before a new
    snapshot is built, so a rejected operation leaves the caller's account
    untouched; on success a new ``Account`` and the matching ``Transaction``
    are returned together.
    """

    def __init__(
        self,
        *,
        dust_epsilon: Decimal = DUST_EPSILON,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._dust_epsilon = dust_epsilon
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def buy(
        self,
        account: Account,
        *,
        symbol: Symbol,
        quantity: Decimal,
        price: Decimal,
        payment_method: PaymentMethod,
    ) -> Settlement:
        quantity = ensure_positive(quantity, name="quantity")
        price = self._ensure_price(symbol, price)
        cost = quantity * price

        cash_balance = account.cash_balance
        if payment_method == PaymentMethod.BALANCE:
            if cash_balance < cost:
                raise InsufficientFundsError(account_id=account.id, requested=cost, available=cash_balance)
            cash_balance -= cost

        existing = account.position(symbol)
        if existing is None:
            position = Position(symbol=symbol, quantity=quantity, cost_basis=cost)
        else:
            position = Position(
                symbol=symbol,
                quantity=existing.quantity + quantity,
                cost_basis=existing.cost_basis + cost,
            )

        holdings = dict(account.holdings)
        holdings[symbol] = position
        transaction = Transaction(
            account_id=account.id,
            type=TransactionType.BUY,
            symbol=symbol,
            quantity=quantity,
            unit_price=price,
            total_value=cost,
            payment_method=payment_method,
            timestamp=self._clock(),
        )
        updated = account.model_copy(update={"cash_balance": cash_balance, "holdings": holdings})
        return Settlement(account=updated, transaction=transaction)

    def sell(
        self,
        account: Account,
        *,
        symbol: Symbol,
        quantity: Decimal,
        price: Decimal,
    ) -> Settlement:
        quantity = ensure_positive(quantity, name="quantity")
        existing = account.position(symbol)
        if existing is None or existing.quantity < quantity:
            raise InsufficientHoldingsError(
                account_id=account.id,
                symbol=symbol,
                requested=quantity,
                available=existing.quantity if existing is not None else Decimal(0),
            )
        price = self._ensure_price(symbol, price)

        proceeds = quantity * price
        released_basis = quantity / existing.quantity * existing.cost_basis
        realized_profit = proceeds - released_basis
        remaining = existing.quantity - quantity

        holdings = dict(account.holdings)
        if remaining <= self._dust_epsilon:
            # Any residual cost basis goes with the closed position.
            del holdings[symbol]
        else:
            holdings[symbol] = Position(
                symbol=symbol,
                quantity=remaining,
                cost_basis=max(existing.cost_basis - released_basis, Decimal(0)),
            )

        transaction = Transaction(
            account_id=account.id,
            type=TransactionType.SELL,
            symbol=symbol,
            quantity=quantity,
            unit_price=price,
            total_value=proceeds,
            realized_profit=realized_profit,
            timestamp=self._clock(),
        )
        updated = account.model_copy(
            update={"cash_balance": account.cash_balance + proceeds, "holdings": holdings},
        )
        return Settlement(account=updated, transaction=transaction, realized_profit=realized_profit)

    def deposit(
        self,
        account: Account,
        *,
        amount: Decimal,
        payment_method: PaymentMethod | None = None,
    ) -> Settlement:
        amount = ensure_positive(amount, name="amount")
        transaction = Transaction(
            account_id=account.id,
            type=TransactionType.DEPOSIT,
            total_value=amount,
            payment_method=payment_method,
            timestamp=self._clock(),
        )
        updated = account.model_copy(update={"cash_balance": account.cash_balance + amount})
        return Settlement(account=updated, transaction=transaction)

    def withdraw(
        self,
        account: Account,
        *,
        amount: Decimal,
        payment_method: PaymentMethod | None = None,
        details: str | None = None,
    ) -> Settlement:
        amount = ensure_positive(amount, name="amount")
        if account.cash_balance < amount:
            raise InsufficientFundsError(account_id=account.id, requested=amount, available=account.cash_balance)

        transaction = Transaction(
            account_id=account.id,
            type=TransactionType.WITHDRAW,
            total_value=amount,
            payment_method=payment_method,
            details=details,
            timestamp=self._clock(),
        )
        updated = account.model_copy(update={"cash_balance": account.cash_balance - amount})
        return Settlement(account=updated, transaction=transaction)

    @staticmethod
    def _ensure_price(symbol: Symbol, price: Decimal) -> Decimal:
        if not isinstance(price, Decimal) or not price.is_finite() or price <= 0:
            raise PriceUnavailableError(f"No usable price for {symbol}: {price}", symbol=symbol)
        return price


__all__ = ["DUST_EPSILON", "LedgerEngine", "Settlement"]
