from __future__ import annotations

from decimal import Decimal
from uuid import UUID


class WalletError(Exception):
    """Base class for every rejection a settlement or account operation can produce."""


class InvalidAmountError(WalletError):
    def __init__(self, message: str, *, amount: object = None, minimum: Decimal | None = None) -> None:
        super().__init__(message)
        self.amount = amount
        self.minimum = minimum


class InsufficientFundsError(WalletError):
    def __init__(self, *, account_id: UUID, requested: Decimal, available: Decimal) -> None:
        self.account_id = account_id
        self.requested = requested
        self.available = available
        message = f"Insufficient funds for account={account_id} requested={requested} available={available}"
        super().__init__(message)


class InsufficientHoldingsError(WalletError):
    def __init__(self, *, account_id: UUID, symbol: str, requested: Decimal, available: Decimal) -> None:
        self.account_id = account_id
        self.symbol = symbol
        self.requested = requested
        self.available = available
        message = (
            f"Insufficient holdings for account={account_id} symbol={symbol} "
            f"requested={requested} available={available}"
        )
        super().__init__(message)


class InvalidSymbolError(WalletError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Invalid symbol {symbol!r}")
        self.symbol = symbol


class PriceUnavailableError(WalletError):
    def __init__(self, message: str, *, symbol: str) -> None:
        super().__init__(message)
        self.symbol = symbol


class SymbolNotFoundError(PriceUnavailableError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Unknown symbol {symbol}", symbol=symbol)


class AccountNotFoundError(WalletError):
    def __init__(self, account_id: UUID) -> None:
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class AccountNotEmptyError(WalletError):
    def __init__(self, *, account_id: UUID, symbols: list[str]) -> None:
        self.account_id = account_id
        self.symbols = symbols
        super().__init__(
            f"Account {account_id} still holds {', '.join(symbols)}; sell all assets before deleting the account"
        )


class AccountConflictError(WalletError):
    def __init__(self, *, field: str, value: str) -> None:
        super().__init__(f"An account with {field}={value} already exists")
        self.field = field
        self.value = value


class TransactionNotFoundError(WalletError):
    def __init__(self, transaction_id: UUID) -> None:
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class ConcurrentModificationError(WalletError):
    def __init__(self, *, account_id: UUID, attempts: int) -> None:
        super().__init__(f"Account {account_id} was modified concurrently; gave up after {attempts} attempts")
        self.account_id = account_id
        self.attempts = attempts


__all__ = [
    "AccountConflictError",
    "AccountNotEmptyError",
    "AccountNotFoundError",
    "ConcurrentModificationError",
    "InsufficientFundsError",
    "InsufficientHoldingsError",
    "InvalidAmountError",
    "InvalidSymbolError",
    "PriceUnavailableError",
    "SymbolNotFoundError",
    "TransactionNotFoundError",
    "WalletError",
]
