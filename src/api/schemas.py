from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from domain.account import Account
from domain.transaction import Transaction

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RegisterAccountRequest(_Request):
    username: NonEmptyStr
    email: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]


class UpdateProfileRequest(_Request):
    username: NonEmptyStr | None = None
    email: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")] | None = (
        None
    )


class BuyRequest(_Request):
    symbol: NonEmptyStr
    amount: Decimal = Field(gt=0, allow_inf_nan=False)
    payment_method: Literal["balance", "credit_card", "bank_transfer"]


class SellRequest(_Request):
    symbol: NonEmptyStr
    amount: Decimal = Field(gt=0, allow_inf_nan=False)


class DepositRequest(_Request):
    amount: Decimal = Field(ge=1, allow_inf_nan=False)
    payment_method: Literal["credit_card", "bank_transfer", "paypal"]


class WithdrawRequest(_Request):
    amount: Decimal = Field(ge=1, allow_inf_nan=False)
    withdraw_method: Literal["bank_transfer", "paypal", "crypto"]
    account_details: NonEmptyStr


class SettlementResponse(BaseModel):
    message: str
    account: Account
    transaction: Transaction
    realized_profit: Decimal | None = None


class MessageResponse(BaseModel):
    message: str
