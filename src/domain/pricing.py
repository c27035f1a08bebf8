from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol

from domain.base_types import Symbol


class PriceProvider(Protocol):
    """Lookup interface for the current unit price of a symbol in the reference currency.

    Implementations raise ``PriceUnavailableError`` (or ``SymbolNotFoundError``)
    instead of returning a sentinel.
    """

    def price(self, symbol: Symbol) -> Decimal: ...

    def prices(self, symbols: Iterable[Symbol]) -> dict[Symbol, Decimal]: ...
