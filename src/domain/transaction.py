from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.base_types import AccountId, Symbol, TransactionId


class TransactionType(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class PaymentMethod(StrEnum):
    BALANCE = "balance"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    CRYPTO = "crypto"


TRADE_TYPES = frozenset({TransactionType.BUY, TransactionType.SELL})


class Transaction(BaseModel):
    """Immutable record of one settled operation."""

    model_config = ConfigDict(frozen=True)

    id: TransactionId = TransactionId(Field(default_factory=uuid4))
    account_id: AccountId
    type: TransactionType
    symbol: Symbol | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    total_value: Decimal
    payment_method: PaymentMethod | None = None
    details: str | None = None
    realized_profit: Decimal | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _validate_fields(self) -> Transaction:
        if self.total_value < 0:
            raise ValueError("Transaction.total_value must be >= 0")
        if self.type in TRADE_TYPES:
            if self.symbol is None or self.quantity is None or self.unit_price is None:
                raise ValueError(f"{self.type} transaction requires symbol, quantity and unit_price")
        elif self.symbol is not None or self.quantity is not None or self.unit_price is not None:
            raise ValueError(f"{self.type} transaction must not carry symbol, quantity or unit_price")
        if self.realized_profit is not None and self.type != TransactionType.SELL:
            raise ValueError("realized_profit is only reported for sell transactions")
        return self
