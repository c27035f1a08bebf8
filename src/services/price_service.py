from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from domain.base_types import Symbol, normalize_symbol
from domain.errors import PriceUnavailableError, SymbolNotFoundError
from domain.pricing import PriceProvider

from .coinmarketcap_client import CoinMarketCapAPIError, CoinMarketCapClient
from .price_types import CoinQuote

logger = logging.getLogger(__name__)


class PriceService(PriceProvider):
    """Price oracle over CoinMarketCap latest quotes.

    Every call goes to the API; quotes are treated as current and never cached.
    """

    def __init__(self, client: CoinMarketCapClient, *, quote_currency: str = "USD") -> None:
        self.client = client
        self.quote_currency = quote_currency.upper()

    def price(self, symbol: Symbol) -> Decimal:
        return self.prices([symbol])[symbol]

    def prices(self, symbols: Iterable[Symbol]) -> dict[Symbol, Decimal]:
        return {symbol: quote.price for symbol, quote in self.quotes(symbols).items()}

    def quote(self, symbol: str) -> CoinQuote:
        normalized = normalize_symbol(symbol)
        return self.quotes([normalized])[normalized]

    def quotes(self, symbols: Iterable[Symbol]) -> dict[Symbol, CoinQuote]:
        wanted = list(dict.fromkeys(symbols))
        if not wanted:
            return {}

        try:
            fetched = self.client.get_latest_quotes(wanted, convert=self.quote_currency)
        except CoinMarketCapAPIError as exc:
            if exc.status_code == 400 and "symbol" in str(exc).lower():
                raise SymbolNotFoundError(",".join(wanted)) from exc
            logger.warning("Price lookup failed for %s: %s", ",".join(wanted), exc)
            raise PriceUnavailableError(f"Price lookup failed: {exc}", symbol=",".join(wanted)) from exc

        result: dict[Symbol, CoinQuote] = {}
        for symbol in wanted:
            quote = fetched.get(symbol)
            if quote is None:
                raise SymbolNotFoundError(symbol)
            if quote.price <= 0:
                raise PriceUnavailableError(f"Non-positive price {quote.price} for {symbol}", symbol=symbol)
            result[symbol] = quote
        return result

    def listings(self, *, limit: int = 100) -> list[CoinQuote]:
        try:
            return self.client.get_listings(limit=limit, convert=self.quote_currency)
        except CoinMarketCapAPIError as exc:
            logger.warning("Market listings lookup failed: %s", exc)
            raise PriceUnavailableError(f"Market listings unavailable: {exc}", symbol="*") from exc


def build_price_service(
    *, api_key: str, base_url: str, quote_currency: str, timeout: float
) -> PriceService:
    client = CoinMarketCapClient(api_key=api_key, base_url=base_url, timeout=timeout)
    return PriceService(client, quote_currency=quote_currency)


__all__ = ["PriceService", "build_price_service"]
