from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class CoinQuote:
    """Latest market quote for one coin in a single convert currency."""

    symbol: str
    name: str
    quote_currency: str
    price: Decimal
    percent_change_24h: Decimal | None
    market_cap: Decimal | None
    volume_24h: Decimal | None
    last_updated: datetime | None


__all__ = ["CoinQuote"]
