from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from services.price_service import PriceService
from services.wallet_service import WalletService


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_price_service(request: Request) -> PriceService:
    return request.app.state.price_service


def get_wallet_service(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
    price_service: Annotated[PriceService, Depends(get_price_service)],
) -> WalletService:
    settings = request.app.state.settings
    return WalletService(
        session,
        price_provider=price_service,
        locks=request.app.state.account_locks,
        starting_balance=settings.starting_balance,
        settlement_retries=settings.settlement_retries,
    )
