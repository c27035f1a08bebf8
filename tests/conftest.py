from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from domain.ledger import LedgerEngine
from services.account_locks import AccountLocks
from services.wallet_service import WalletService
from tests.constants import BTC, BTC_PRICE, DOGE, DOGE_PRICE, ETH, ETH_PRICE
from tests.helpers.static_price_provider import StaticPriceProvider
from tests.helpers.time_utils import DEFAULT_TIME_GEN

engine: Engine = create_engine(
    "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def second_session() -> Generator[Session, None, None]:
    """Independent session on the same database, standing in for another process."""
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_default_time_gen() -> None:
    DEFAULT_TIME_GEN.reset()


@pytest.fixture(scope="function")
def price_provider() -> StaticPriceProvider:
    return StaticPriceProvider({BTC: BTC_PRICE, ETH: ETH_PRICE, DOGE: DOGE_PRICE})


@pytest.fixture(scope="function")
def ledger_engine() -> LedgerEngine:
    return LedgerEngine(clock=DEFAULT_TIME_GEN)


@pytest.fixture(scope="function")
def wallet_service(
    test_session: Session, price_provider: StaticPriceProvider, ledger_engine: LedgerEngine
) -> WalletService:
    return WalletService(
        test_session,
        price_provider=price_provider,
        locks=AccountLocks(),
        engine=ledger_engine,
        starting_balance=Decimal("1000"),
    )
