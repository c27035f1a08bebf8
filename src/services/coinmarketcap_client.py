from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from .price_types import CoinQuote

logger = logging.getLogger(__name__)


class CoinMarketCapAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class CoinMarketCapClient:
    """Minimal CoinMarketCap Pro API client covering the latest-quote endpoints."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://pro-api.coinmarketcap.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1,
    ) -> None:
        if not api_key:
            msg = "api_key must be provided"
            raise ValueError(msg)

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            retry = Retry(
                total=retry_attempts,
                backoff_factor=retry_backoff_seconds,
                status_forcelist={429},
                allowed_methods={"GET"},
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    def get_latest_quotes(self, symbols: Iterable[str], *, convert: str = "USD") -> dict[str, CoinQuote]:
        """Return quotes keyed by upper-cased symbol; unknown symbols are simply absent."""
        wanted = sorted({symbol.upper() for symbol in symbols})
        if not wanted:
            return {}

        payload = self._request(
            "GET",
            "/v1/cryptocurrency/quotes/latest",
            params={"symbol": ",".join(wanted), "convert": convert.upper()},
        )
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise CoinMarketCapAPIError("CoinMarketCap quotes payload has unexpected shape", payload=payload)

        quotes: dict[str, CoinQuote] = {}
        for symbol, entry in data.items():
            # Ambiguous symbols come back as a list of candidates; take the top-ranked one.
            if isinstance(entry, list):
                if not entry:
                    continue
                entry = entry[0]
            quotes[symbol.upper()] = self._parse_entry(entry, convert=convert.upper())
        return quotes

    def get_listings(self, *, start: int = 1, limit: int = 100, convert: str = "USD") -> list[CoinQuote]:
        if start <= 0:
            msg = "start must be > 0"
            raise ValueError(msg)
        if limit <= 0:
            msg = "limit must be > 0"
            raise ValueError(msg)

        payload = self._request(
            "GET",
            "/v1/cryptocurrency/listings/latest",
            params={"start": start, "limit": limit, "convert": convert.upper()},
        )
        entries = payload.get("data") or []
        return [self._parse_entry(entry, convert=convert.upper()) for entry in entries]

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("CoinMarketCap %s %s params=%s", method, path, params)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                timeout=self.timeout,
                headers={"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            error_payload: Any | None = None
            message = "CoinMarketCap API request failed"
            if resp is not None:
                try:
                    error_payload = resp.json()
                    status = error_payload.get("status") if isinstance(error_payload, dict) else None
                    if isinstance(status, dict) and status.get("error_message"):
                        message = status["error_message"]
                except ValueError:
                    error_payload = resp.text
            raise CoinMarketCapAPIError(message, status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise CoinMarketCapAPIError("CoinMarketCap API request failed", status_code=status_code) from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise CoinMarketCapAPIError("CoinMarketCap API returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise CoinMarketCapAPIError("CoinMarketCap API returned unexpected payload type", payload=payload_raw)

        payload: dict[str, Any] = payload_raw
        status = payload.get("status")
        if isinstance(status, dict) and status.get("error_code") not in (None, 0, "0"):
            raise CoinMarketCapAPIError(
                status.get("error_message") or "CoinMarketCap API returned an error",
                status_code=response.status_code,
                payload=payload,
            )

        return payload

    def _parse_entry(self, entry: dict[str, Any], *, convert: str) -> CoinQuote:
        symbol = entry.get("symbol")
        quote = (entry.get("quote") or {}).get(convert)
        if not symbol or not isinstance(quote, dict):
            raise CoinMarketCapAPIError(f"CoinMarketCap entry missing symbol or {convert} quote", payload=entry)

        price = self._to_decimal(quote.get("price"))
        if price is None:
            raise CoinMarketCapAPIError(f"CoinMarketCap entry for {symbol} has no price", payload=entry)

        last_updated_raw = quote.get("last_updated")
        return CoinQuote(
            symbol=str(symbol).upper(),
            name=str(entry.get("name", symbol)),
            quote_currency=convert,
            price=price,
            percent_change_24h=self._to_decimal(quote.get("percent_change_24h")),
            market_cap=self._to_decimal(quote.get("market_cap")),
            volume_24h=self._to_decimal(quote.get("volume_24h")),
            last_updated=self._to_datetime(last_updated_raw) if last_updated_raw else None,
        )

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        if value is None:
            return None
        return Decimal(str(value))

    @staticmethod
    def _to_datetime(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))


__all__ = ["CoinMarketCapAPIError", "CoinMarketCapClient"]
