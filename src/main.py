from __future__ import annotations

import argparse
import logging
from decimal import Decimal, InvalidOperation
from typing import Sequence
from uuid import UUID

from config import AppSettings, config
from db.db import init_db
from domain.base_types import AccountId
from domain.errors import WalletError
from domain.ledger import Settlement
from domain.transaction import PaymentMethod
from services.price_service import build_price_service
from services.wallet_service import WalletService
from utils.formatting import format_money, format_quantity
from utils.portfolio_summary import render_portfolio
from utils.transaction_summary import render_transaction_stats

logger = logging.getLogger(__name__)

BUY_PAYMENT_METHODS = ("balance", "credit_card", "bank_transfer")
DEPOSIT_METHODS = ("credit_card", "bank_transfer", "paypal")
WITHDRAW_METHODS = ("bank_transfer", "paypal", "crypto")


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid decimal value: {value!r}") from exc


def build_wallet_service(settings: AppSettings) -> WalletService:
    logger.info("Opening DB at %s", settings.db_file)
    session = init_db(db_file=settings.db_file)
    price_service = build_price_service(
        api_key=settings.coinmarketcap_api_key,
        base_url=settings.coinmarketcap_base_url,
        quote_currency=settings.quote_currency,
        timeout=settings.price_timeout_seconds,
    )
    return WalletService(
        session,
        price_provider=price_service,
        starting_balance=settings.starting_balance,
        settlement_retries=settings.settlement_retries,
    )


def print_settlement(settlement: Settlement) -> None:
    transaction = settlement.transaction
    print(f"Transaction {transaction.id}: {transaction.type} total={format_money(transaction.total_value)}")
    if transaction.symbol is not None and transaction.quantity is not None and transaction.unit_price is not None:
        print(f"  {format_quantity(transaction.quantity)} {transaction.symbol} @ {format_money(transaction.unit_price)}")
    if settlement.realized_profit is not None:
        print(f"  Realized profit: {format_money(settlement.realized_profit)}")
    print(f"Cash balance: {format_money(settlement.account.cash_balance)}")


def run(args: argparse.Namespace) -> None:
    settings = config()

    if args.command == "init-db":
        init_db(db_file=settings.db_file, reset=args.reset).close()
        logger.info("Initialized DB at %s", settings.db_file)
        return

    if args.command == "serve":
        import uvicorn

        uvicorn.run("api.api:app", host=args.host, port=args.port)
        return

    wallet = build_wallet_service(settings)

    if args.command == "register":
        account = wallet.register_account(username=args.username, email=args.email)
        print(f"Account {account.id} created with balance {format_money(account.cash_balance)}")
        return

    account_id = AccountId(args.account_id)
    if args.command == "deposit":
        print_settlement(wallet.deposit(account_id, amount=args.amount, payment_method=PaymentMethod(args.method)))
    elif args.command == "withdraw":
        print_settlement(
            wallet.withdraw(
                account_id, amount=args.amount, payment_method=PaymentMethod(args.method), details=args.details
            )
        )
    elif args.command == "buy":
        print_settlement(
            wallet.buy(
                account_id,
                symbol=args.symbol,
                quantity=args.amount,
                payment_method=PaymentMethod(args.payment_method),
            )
        )
    elif args.command == "sell":
        print_settlement(wallet.sell(account_id, symbol=args.symbol, quantity=args.amount))
    elif args.command == "portfolio":
        render_portfolio(wallet.portfolio(account_id), quote_currency=settings.quote_currency)
    elif args.command == "stats":
        render_transaction_stats(wallet.transaction_stats(account_id))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulated crypto wallet: accounts, trades and history.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create the database schema.")
    init_parser.add_argument("--reset", action="store_true", help="Delete the existing database first.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    register_parser = subparsers.add_parser("register", help="Create an account with the starting balance.")
    register_parser.add_argument("--username", required=True)
    register_parser.add_argument("--email", required=True)

    deposit_parser = subparsers.add_parser("deposit")
    deposit_parser.add_argument("account_id", type=UUID)
    deposit_parser.add_argument("amount", type=_decimal)
    deposit_parser.add_argument("--method", choices=DEPOSIT_METHODS, default="bank_transfer")

    withdraw_parser = subparsers.add_parser("withdraw")
    withdraw_parser.add_argument("account_id", type=UUID)
    withdraw_parser.add_argument("amount", type=_decimal)
    withdraw_parser.add_argument("--method", choices=WITHDRAW_METHODS, default="bank_transfer")
    withdraw_parser.add_argument("--details", required=True)

    buy_parser = subparsers.add_parser("buy")
    buy_parser.add_argument("account_id", type=UUID)
    buy_parser.add_argument("symbol")
    buy_parser.add_argument("amount", type=_decimal)
    buy_parser.add_argument("--payment-method", choices=BUY_PAYMENT_METHODS, default="balance")

    sell_parser = subparsers.add_parser("sell")
    sell_parser.add_argument("account_id", type=UUID)
    sell_parser.add_argument("symbol")
    sell_parser.add_argument("amount", type=_decimal)

    portfolio_parser = subparsers.add_parser("portfolio")
    portfolio_parser.add_argument("account_id", type=UUID)

    stats_parser = subparsers.add_parser("stats")
    stats_parser.add_argument("account_id", type=UUID)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except WalletError as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main()
