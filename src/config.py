from __future__ import annotations

from decimal import Decimal
from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "crypto_wallet.db"


class AppSettings(BaseSettings):
    coinmarketcap_api_key: str
    coinmarketcap_base_url: str = "https://pro-api.coinmarketcap.com"
    quote_currency: str = "USD"
    starting_balance: Decimal = Decimal("1000")
    db_file: Path = DB_FILE
    settlement_retries: int = 3
    price_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()  # type: ignore[call-arg]
