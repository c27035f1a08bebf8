from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from domain.base_types import AccountId, Symbol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Position(BaseModel):
    """Current holding of one symbol.

    ``cost_basis`` is the total cash paid for the quantity still held, so the
    average entry price is always ``cost_basis / quantity``.
    """

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    quantity: Decimal
    cost_basis: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average_price(self) -> Decimal:
        return self.cost_basis / self.quantity

    @model_validator(mode="after")
    def _validate_fields(self) -> Position:
        # Empty positions are dropped from holdings, never stored.
        if self.quantity <= 0:
            raise ValueError("Position.quantity must be > 0")
        if self.cost_basis < 0:
            raise ValueError("Position.cost_basis must be >= 0")
        return self


class Account(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: AccountId
    username: str
    email: str
    cash_balance: Decimal
    holdings: dict[Symbol, Position] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    # Row version the snapshot was read at; 0 until first persisted.
    version: int = 0

    @model_validator(mode="after")
    def _validate_fields(self) -> Account:
        if self.cash_balance < 0:
            raise ValueError("Account.cash_balance must be >= 0")
        if not self.username:
            raise ValueError("Account.username must be non-empty")
        if not self.email:
            raise ValueError("Account.email must be non-empty")
        for symbol, position in self.holdings.items():
            if symbol != position.symbol:
                raise ValueError(f"holdings key {symbol} does not match position symbol {position.symbol}")
        return self

    def position(self, symbol: Symbol) -> Position | None:
        return self.holdings.get(symbol)
