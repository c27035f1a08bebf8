from __future__ import annotations

from decimal import Decimal

import pytest

from domain.errors import PriceUnavailableError
from domain.portfolio import profit_percentage, value_portfolio
from tests.constants import BTC, ETH
from tests.helpers.accounts import make_account


def test_value_portfolio_marks_positions_to_market() -> None:
    account = make_account(
        cash_balance=Decimal("50"),
        holdings={
            BTC: (Decimal("2"), Decimal("150")),
            ETH: (Decimal("10"), Decimal("250")),
        },
    )

    valuation = value_portfolio(account, {BTC: Decimal("100"), ETH: Decimal("20")})

    assert [position.symbol for position in valuation.positions] == [BTC, ETH]
    btc, eth = valuation.positions
    assert btc.value == Decimal("200")
    assert btc.profit == Decimal("50")
    assert btc.average_price == Decimal("75")
    assert btc.profit_percentage == Decimal("50") / Decimal("150") * 100
    assert eth.value == Decimal("200")
    assert eth.profit == Decimal("-50")
    assert eth.profit_percentage == Decimal("-20")

    assert valuation.total_value == Decimal("400")
    assert valuation.total_cost_basis == Decimal("400")
    assert valuation.total_profit == Decimal("0")
    assert valuation.net_worth == Decimal("450")


def test_zero_cost_basis_reports_zero_percentage() -> None:
    account = make_account(holdings={BTC: (Decimal("1"), Decimal("0"))})

    valuation = value_portfolio(account, {BTC: Decimal("100")})

    assert valuation.positions[0].profit == Decimal("100")
    assert valuation.positions[0].profit_percentage == Decimal("0")
    assert profit_percentage(Decimal("5"), Decimal("0")) == Decimal("0")


def test_empty_portfolio() -> None:
    valuation = value_portfolio(make_account(cash_balance=Decimal("10")), {})

    assert valuation.positions == []
    assert valuation.total_value == Decimal("0")
    assert valuation.net_worth == Decimal("10")


def test_missing_price_raises() -> None:
    account = make_account(holdings={BTC: (Decimal("1"), Decimal("100"))})

    with pytest.raises(PriceUnavailableError):
        value_portfolio(account, {ETH: Decimal("1")})
