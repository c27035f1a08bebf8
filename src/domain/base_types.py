from __future__ import annotations

from typing import NewType
from uuid import UUID

from domain.errors import InvalidSymbolError

AccountId = NewType("AccountId", UUID)
TransactionId = NewType("TransactionId", UUID)
Symbol = NewType("Symbol", str)


def normalize_symbol(raw: str) -> Symbol:
    symbol = raw.strip().upper()
    if not symbol:
        raise InvalidSymbolError(raw)
    return Symbol(symbol)
