from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from pydantic import BaseModel

from domain.account import Account
from domain.base_types import AccountId, Symbol
from domain.errors import PriceUnavailableError


class PositionValuation(BaseModel):
    symbol: Symbol
    quantity: Decimal
    current_price: Decimal
    value: Decimal
    cost_basis: Decimal
    average_price: Decimal
    profit: Decimal
    profit_percentage: Decimal


class PortfolioValuation(BaseModel):
    account_id: AccountId
    cash_balance: Decimal
    positions: list[PositionValuation]
    total_value: Decimal
    total_cost_basis: Decimal
    total_profit: Decimal
    net_worth: Decimal


def profit_percentage(profit: Decimal, cost_basis: Decimal) -> Decimal:
    # Zero cost basis has no meaningful return, report 0 instead of failing.
    if cost_basis == 0:
        return Decimal(0)
    return profit / cost_basis * 100


def value_portfolio(account: Account, prices: Mapping[Symbol, Decimal]) -> PortfolioValuation:
    """Mark every held position to the supplied prices."""
    positions: list[PositionValuation] = []
    for symbol in sorted(account.holdings):
        position = account.holdings[symbol]
        price = prices.get(symbol)
        if price is None:
            raise PriceUnavailableError(f"No price supplied for {symbol}", symbol=symbol)

        value = position.quantity * price
        profit = value - position.cost_basis
        positions.append(
            PositionValuation(
                symbol=symbol,
                quantity=position.quantity,
                current_price=price,
                value=value,
                cost_basis=position.cost_basis,
                average_price=position.average_price,
                profit=profit,
                profit_percentage=profit_percentage(profit, position.cost_basis),
            )
        )

    total_value = sum((p.value for p in positions), start=Decimal(0))
    total_cost_basis = sum((p.cost_basis for p in positions), start=Decimal(0))
    return PortfolioValuation(
        account_id=account.id,
        cash_balance=account.cash_balance,
        positions=positions,
        total_value=total_value,
        total_cost_basis=total_cost_basis,
        total_profit=total_value - total_cost_basis,
        net_worth=account.cash_balance + total_value,
    )
