from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from domain.account import Account, Position
from domain.base_types import AccountId, Symbol


def make_account(
    *,
    cash_balance: Decimal = Decimal("1000"),
    holdings: dict[str, tuple[Decimal, Decimal]] | None = None,
    username: str = "alice",
    email: str = "alice@example.com",
    version: int = 0,
) -> Account:
    """Build an account; ``holdings`` maps symbol to (quantity, cost_basis)."""
    positions = {
        Symbol(symbol): Position(symbol=Symbol(symbol), quantity=quantity, cost_basis=cost_basis)
        for symbol, (quantity, cost_basis) in (holdings or {}).items()
    }
    return Account(
        id=AccountId(uuid4()),
        username=username,
        email=email,
        cash_balance=cash_balance,
        holdings=positions,
        version=version,
    )
