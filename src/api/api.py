import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, AsyncGenerator, Awaitable, Callable
from uuid import UUID

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_price_service, get_wallet_service
from api.schemas import (
    BuyRequest,
    DepositRequest,
    MessageResponse,
    RegisterAccountRequest,
    SellRequest,
    SettlementResponse,
    UpdateProfileRequest,
    WithdrawRequest,
)
from config import config
from db.db import create_db_engine
from domain.account import Account
from domain.base_types import AccountId, TransactionId
from domain.errors import (
    AccountConflictError,
    AccountNotEmptyError,
    AccountNotFoundError,
    ConcurrentModificationError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidAmountError,
    InvalidSymbolError,
    PriceUnavailableError,
    SymbolNotFoundError,
    TransactionNotFoundError,
    WalletError,
)
from domain.ledger import Settlement
from domain.portfolio import PortfolioValuation
from domain.transaction import PaymentMethod, Transaction
from services.account_locks import AccountLocks
from services.price_service import PriceService, build_price_service
from services.price_types import CoinQuote
from services.wallet_service import AccountSummary, WalletService
from utils.transaction_summary import TransactionStats

logger = logging.getLogger(__name__)

# Checked in order, so subclasses must come before their bases.
ERROR_STATUS_CODES: list[tuple[type[WalletError], int]] = [
    (InvalidAmountError, status.HTTP_400_BAD_REQUEST),
    (InvalidSymbolError, status.HTTP_400_BAD_REQUEST),
    (InsufficientFundsError, status.HTTP_400_BAD_REQUEST),
    (InsufficientHoldingsError, status.HTTP_400_BAD_REQUEST),
    (AccountNotEmptyError, status.HTTP_400_BAD_REQUEST),
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
    (TransactionNotFoundError, status.HTTP_404_NOT_FOUND),
    (SymbolNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccountConflictError, status.HTTP_409_CONFLICT),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (PriceUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = config()
    engine = create_db_engine(db_file=settings.db_file)
    fastapi_app.state.settings = settings
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    fastapi_app.state.account_locks = AccountLocks()
    fastapi_app.state.price_service = build_price_service(
        api_key=settings.coinmarketcap_api_key,
        base_url=settings.coinmarketcap_base_url,
        quote_currency=settings.quote_currency,
        timeout=settings.price_timeout_seconds,
    )
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)

Wallet = Annotated[WalletService, Depends(get_wallet_service)]


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s -> %d: %.4fs", request.method, request.url, response.status_code, process_time)
    return response


@app.exception_handler(WalletError)
async def wallet_error_handler(request: Request, exc: WalletError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": type(exc).__name__, "message": str(exc), "details": jsonable_encoder(vars(exc))}},
    )


def _settlement_response(message: str, settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        message=message,
        account=settlement.account,
        transaction=settlement.transaction,
        realized_profit=settlement.realized_profit,
    )


@app.post("/accounts", status_code=status.HTTP_201_CREATED)
def register_account(body: RegisterAccountRequest, wallet: Wallet) -> Account:
    return wallet.register_account(username=body.username, email=body.email)


@app.get("/accounts/{account_id}")
def get_account(account_id: UUID, wallet: Wallet) -> Account:
    return wallet.get_account(AccountId(account_id))


@app.patch("/accounts/{account_id}")
def update_profile(account_id: UUID, body: UpdateProfileRequest, wallet: Wallet) -> Account:
    return wallet.update_profile(AccountId(account_id), username=body.username, email=body.email)


@app.delete("/accounts/{account_id}")
def delete_account(account_id: UUID, wallet: Wallet) -> MessageResponse:
    wallet.delete_account(AccountId(account_id))
    return MessageResponse(message="Account deleted successfully")


@app.get("/accounts/{account_id}/summary")
def get_account_summary(account_id: UUID, wallet: Wallet) -> AccountSummary:
    return wallet.account_summary(AccountId(account_id))


@app.post("/accounts/{account_id}/buy")
def buy(account_id: UUID, body: BuyRequest, wallet: Wallet) -> SettlementResponse:
    settlement = wallet.buy(
        AccountId(account_id),
        symbol=body.symbol,
        quantity=body.amount,
        payment_method=PaymentMethod(body.payment_method),
    )
    return _settlement_response("Purchase successful", settlement)


@app.post("/accounts/{account_id}/sell")
def sell(account_id: UUID, body: SellRequest, wallet: Wallet) -> SettlementResponse:
    settlement = wallet.sell(AccountId(account_id), symbol=body.symbol, quantity=body.amount)
    return _settlement_response("Sale successful", settlement)


@app.post("/accounts/{account_id}/deposit")
def deposit(account_id: UUID, body: DepositRequest, wallet: Wallet) -> SettlementResponse:
    settlement = wallet.deposit(
        AccountId(account_id),
        amount=body.amount,
        payment_method=PaymentMethod(body.payment_method),
    )
    return _settlement_response("Deposit successful", settlement)


@app.post("/accounts/{account_id}/withdraw")
def withdraw(account_id: UUID, body: WithdrawRequest, wallet: Wallet) -> SettlementResponse:
    settlement = wallet.withdraw(
        AccountId(account_id),
        amount=body.amount,
        payment_method=PaymentMethod(body.withdraw_method),
        details=body.account_details,
    )
    return _settlement_response("Withdrawal initiated", settlement)


@app.get("/accounts/{account_id}/portfolio")
def get_portfolio(account_id: UUID, wallet: Wallet) -> PortfolioValuation:
    return wallet.portfolio(AccountId(account_id))


@app.get("/accounts/{account_id}/transactions")
def get_transactions(account_id: UUID, wallet: Wallet) -> list[Transaction]:
    return wallet.transactions(AccountId(account_id))


@app.get("/accounts/{account_id}/transactions/stats")
def get_transaction_stats(account_id: UUID, wallet: Wallet) -> TransactionStats:
    return wallet.transaction_stats(AccountId(account_id))


@app.get("/accounts/{account_id}/transactions/{transaction_id}")
def get_transaction(account_id: UUID, transaction_id: UUID, wallet: Wallet) -> Transaction:
    return wallet.transaction(AccountId(account_id), TransactionId(transaction_id))


@app.get("/market")
def get_market(
    prices: Annotated[PriceService, Depends(get_price_service)],
    limit: Annotated[int, Query(ge=1, le=5000)] = 100,
) -> list[CoinQuote]:
    return prices.listings(limit=limit)


@app.get("/market/{symbol}")
def get_coin(symbol: str, prices: Annotated[PriceService, Depends(get_price_service)]) -> CoinQuote:
    return prices.quote(symbol)
