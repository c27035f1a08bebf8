from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from services.coinmarketcap_client import CoinMarketCapAPIError, CoinMarketCapClient


def _mock_response(payload: object, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def _coin_entry(symbol: str, name: str, price: float) -> dict:
    return {
        "id": 1,
        "name": name,
        "symbol": symbol,
        "quote": {
            "USD": {
                "price": price,
                "percent_change_24h": -1.25,
                "market_cap": 1_000_000,
                "volume_24h": 5_000,
                "last_updated": "2024-05-01T12:00:00.000Z",
            }
        },
    }


OK_STATUS = {"error_code": 0, "error_message": None}


def test_get_latest_quotes_parses_response() -> None:
    session = Mock()
    payload = {
        "status": OK_STATUS,
        "data": {
            "BTC": _coin_entry("BTC", "Bitcoin", 64250.5),
            "ETH": _coin_entry("ETH", "Ethereum", 3100.25),
        },
    }
    session.request.return_value = _mock_response(payload)

    client = CoinMarketCapClient(api_key="token", session=session)
    quotes = client.get_latest_quotes(["eth", "BTC"])

    assert set(quotes) == {"BTC", "ETH"}
    btc = quotes["BTC"]
    assert btc.name == "Bitcoin"
    assert btc.price == Decimal("64250.5")
    assert btc.percent_change_24h == Decimal("-1.25")
    assert btc.quote_currency == "USD"
    assert btc.last_updated == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://pro-api.coinmarketcap.com/v1/cryptocurrency/quotes/latest")
    assert kwargs["params"] == {"symbol": "BTC,ETH", "convert": "USD"}
    assert kwargs["headers"]["X-CMC_PRO_API_KEY"] == "token"
    assert kwargs["timeout"] == 10.0


def test_get_latest_quotes_takes_first_candidate_for_list_entries() -> None:
    session = Mock()
    payload = {"status": OK_STATUS, "data": {"BTC": [_coin_entry("BTC", "Bitcoin", 1.0), _coin_entry("BTC", "Fake", 2.0)]}}
    session.request.return_value = _mock_response(payload)

    quotes = CoinMarketCapClient(api_key="token", session=session).get_latest_quotes(["BTC"])

    assert quotes["BTC"].name == "Bitcoin"


def test_get_latest_quotes_without_symbols_skips_request() -> None:
    session = Mock()

    assert CoinMarketCapClient(api_key="token", session=session).get_latest_quotes([]) == {}
    session.request.assert_not_called()


def test_get_listings_parses_entries() -> None:
    session = Mock()
    payload = {"status": OK_STATUS, "data": [_coin_entry("BTC", "Bitcoin", 1.5), _coin_entry("DOGE", "Dogecoin", 0.1)]}
    session.request.return_value = _mock_response(payload)

    listings = CoinMarketCapClient(api_key="token", session=session).get_listings(limit=2, convert="usd")

    assert [quote.symbol for quote in listings] == ["BTC", "DOGE"]
    assert listings[1].price == Decimal("0.1")
    kwargs = session.request.call_args.kwargs
    assert kwargs["params"] == {"start": 1, "limit": 2, "convert": "USD"}


def test_http_error_carries_status_message() -> None:
    session = Mock()
    response = Mock()
    response.status_code = 400
    response.json.return_value = {"status": {"error_code": 400, "error_message": 'Invalid value for "symbol": "NOPE"'}}
    http_error = requests.HTTPError(response=response)
    response.raise_for_status.side_effect = http_error
    session.request.return_value = response

    client = CoinMarketCapClient(api_key="token", session=session)
    with pytest.raises(CoinMarketCapAPIError) as exc_info:
        client.get_latest_quotes(["NOPE"])

    assert exc_info.value.status_code == 400
    assert "symbol" in str(exc_info.value)


def test_network_error_is_wrapped() -> None:
    session = Mock()
    session.request.side_effect = requests.ConnectionError("boom")

    client = CoinMarketCapClient(api_key="token", session=session)
    with pytest.raises(CoinMarketCapAPIError) as exc_info:
        client.get_latest_quotes(["BTC"])

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


def test_error_status_in_successful_response() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"status": {"error_code": 1002, "error_message": "API key missing."}})

    client = CoinMarketCapClient(api_key="token", session=session)
    with pytest.raises(CoinMarketCapAPIError, match="API key missing"):
        client.get_latest_quotes(["BTC"])


def test_invalid_json_raises() -> None:
    session = Mock()
    response = _mock_response(None)
    response.json.side_effect = ValueError("not json")
    session.request.return_value = response

    client = CoinMarketCapClient(api_key="token", session=session)
    with pytest.raises(CoinMarketCapAPIError, match="invalid JSON"):
        client.get_listings()


def test_entry_without_price_raises() -> None:
    session = Mock()
    entry = _coin_entry("BTC", "Bitcoin", 1.0)
    entry["quote"]["USD"]["price"] = None
    session.request.return_value = _mock_response({"status": OK_STATUS, "data": {"BTC": entry}})

    client = CoinMarketCapClient(api_key="token", session=session)
    with pytest.raises(CoinMarketCapAPIError, match="no price"):
        client.get_latest_quotes(["BTC"])


def test_requires_api_key() -> None:
    with pytest.raises(ValueError):
        CoinMarketCapClient(api_key="")
