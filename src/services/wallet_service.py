from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from db.repositories import AccountRepository, TransactionRepository
from domain.account import Account
from domain.base_types import AccountId, TransactionId, normalize_symbol
from domain.errors import (
    AccountConflictError,
    AccountNotEmptyError,
    AccountNotFoundError,
    ConcurrentModificationError,
    InsufficientHoldingsError,
    TransactionNotFoundError,
    WalletError,
)
from domain.ledger import LedgerEngine, Settlement
from domain.portfolio import PortfolioValuation, value_portfolio
from domain.pricing import PriceProvider
from domain.trading_rules import validate_cash_amount, validate_trade_quantity
from domain.transaction import PaymentMethod, Transaction, TransactionType
from utils.transaction_summary import TransactionStats, compute_transaction_stats, count_by_type

from .account_locks import AccountLocks

logger = logging.getLogger(__name__)

DEFAULT_STARTING_BALANCE = Decimal("1000")
RECENT_TRANSACTIONS_LIMIT = 5


@dataclass
class AccountSummary:
    account: Account
    position_count: int
    recent_transactions: list[Transaction]
    transaction_counts: dict[TransactionType, int]


class WalletService:
    """Runs account operations end to end: validate, price, lock, load, settle, persist."""

    def __init__(
        self,
        session: Session,
        *,
        price_provider: PriceProvider,
        locks: AccountLocks | None = None,
        engine: LedgerEngine | None = None,
        starting_balance: Decimal = DEFAULT_STARTING_BALANCE,
        settlement_retries: int = 3,
    ) -> None:
        if settlement_retries <= 0:
            msg = "settlement_retries must be > 0"
            raise ValueError(msg)

        self._session = session
        self._accounts = AccountRepository(session)
        self._transactions = TransactionRepository(session)
        self._price_provider = price_provider
        self._locks = locks or AccountLocks()
        self._engine = engine or LedgerEngine()
        self._starting_balance = starting_balance
        self._settlement_retries = settlement_retries

    # Accounts

    def register_account(self, *, username: str, email: str) -> Account:
        username = username.strip()
        email = email.strip().lower()
        self._ensure_available(username=username, email=email)

        account = Account(
            id=AccountId(uuid4()),
            username=username,
            email=email,
            cash_balance=self._starting_balance,
        )
        try:
            created = self._accounts.create(account)
        except IntegrityError as exc:
            self._session.rollback()
            raise AccountConflictError(field="username/email", value=f"{username}/{email}") from exc

        logger.info("Registered account %s (%s) with starting balance %s", created.id, username, created.cash_balance)
        return created

    def get_account(self, account_id: AccountId) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def update_profile(
        self,
        account_id: AccountId,
        *,
        username: str | None = None,
        email: str | None = None,
    ) -> Account:
        with self._locks.for_account(account_id):
            account = self.get_account(account_id)
            update: dict[str, str] = {}
            if username is not None and username.strip() != account.username:
                update["username"] = username.strip()
            if email is not None and email.strip().lower() != account.email:
                update["email"] = email.strip().lower()
            if not update:
                return account

            self._ensure_available(username=update.get("username"), email=update.get("email"))
            try:
                updated = self._accounts.save(account.model_copy(update=update))
            except IntegrityError as exc:
                self._session.rollback()
                raise AccountConflictError(field="username/email", value=str(update)) from exc
            except StaleDataError as exc:
                self._session.rollback()
                raise ConcurrentModificationError(account_id=account_id, attempts=1) from exc
            return updated

    def delete_account(self, account_id: AccountId) -> None:
        """Remove an account and its transaction log; only allowed with no open positions."""
        with self._locks.for_account(account_id):
            account = self.get_account(account_id)
            if account.holdings:
                raise AccountNotEmptyError(account_id=account_id, symbols=sorted(account.holdings))

            deleted = self._transactions.delete_for_account(account_id, commit=False)
            self._accounts.delete(account_id, commit=False)
            self._session.commit()
        self._locks.discard(account_id)
        logger.info("Deleted account %s and %d transactions", account_id, deleted)

    def account_summary(self, account_id: AccountId) -> AccountSummary:
        account = self.get_account(account_id)
        transactions = self._transactions.list_for_account(account_id)
        return AccountSummary(
            account=account,
            position_count=len(account.holdings),
            recent_transactions=transactions[:RECENT_TRANSACTIONS_LIMIT],
            transaction_counts=count_by_type(transactions),
        )

    # Settlements

    def buy(
        self,
        account_id: AccountId,
        *,
        symbol: str,
        quantity: Decimal,
        payment_method: PaymentMethod,
    ) -> Settlement:
        normalized = normalize_symbol(symbol)
        quantity = validate_trade_quantity(normalized, quantity)
        price = self._price_provider.price(normalized)
        return self._settle(
            account_id,
            TransactionType.BUY,
            lambda account: self._engine.buy(
                account, symbol=normalized, quantity=quantity, price=price, payment_method=payment_method
            ),
        )

    def sell(self, account_id: AccountId, *, symbol: str, quantity: Decimal) -> Settlement:
        normalized = normalize_symbol(symbol)
        quantity = validate_trade_quantity(normalized, quantity)
        # Unheld or short positions fail here, without a price lookup; the
        # engine re-checks against the locked snapshot.
        position = self.get_account(account_id).position(normalized)
        available = position.quantity if position is not None else Decimal(0)
        if available < quantity:
            raise InsufficientHoldingsError(
                account_id=account_id, symbol=normalized, requested=quantity, available=available
            )
        price = self._price_provider.price(normalized)
        return self._settle(
            account_id,
            TransactionType.SELL,
            lambda account: self._engine.sell(account, symbol=normalized, quantity=quantity, price=price),
        )

    def deposit(
        self,
        account_id: AccountId,
        *,
        amount: Decimal,
        payment_method: PaymentMethod | None = None,
    ) -> Settlement:
        amount = validate_cash_amount(amount)
        return self._settle(
            account_id,
            TransactionType.DEPOSIT,
            lambda account: self._engine.deposit(account, amount=amount, payment_method=payment_method),
        )

    def withdraw(
        self,
        account_id: AccountId,
        *,
        amount: Decimal,
        payment_method: PaymentMethod | None = None,
        details: str | None = None,
    ) -> Settlement:
        amount = validate_cash_amount(amount)
        return self._settle(
            account_id,
            TransactionType.WITHDRAW,
            lambda account: self._engine.withdraw(
                account, amount=amount, payment_method=payment_method, details=details
            ),
        )

    # Read models

    def portfolio(self, account_id: AccountId) -> PortfolioValuation:
        account = self.get_account(account_id)
        prices = self._price_provider.prices(list(account.holdings)) if account.holdings else {}
        return value_portfolio(account, prices)

    def transactions(self, account_id: AccountId) -> list[Transaction]:
        self.get_account(account_id)
        return self._transactions.list_for_account(account_id)

    def transaction(self, account_id: AccountId, transaction_id: TransactionId) -> Transaction:
        transaction = self._transactions.get(transaction_id)
        # Another account's transaction is reported exactly like a missing one.
        if transaction is None or transaction.account_id != account_id:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def transaction_stats(self, account_id: AccountId) -> TransactionStats:
        return compute_transaction_stats(self.transactions(account_id))

    def _settle(
        self,
        account_id: AccountId,
        kind: TransactionType,
        apply: Callable[[Account], Settlement],
    ) -> Settlement:
        with self._locks.for_account(account_id):
            for attempt in range(1, self._settlement_retries + 1):
                account = self.get_account(account_id)
                try:
                    settlement = apply(account)
                except WalletError as exc:
                    logger.info("Rejected %s for account %s: %s", kind, account_id, exc)
                    raise

                try:
                    saved = self._accounts.save(settlement.account, commit=False)
                    self._transactions.append(settlement.transaction, commit=False)
                    self._session.commit()
                except StaleDataError:
                    self._session.rollback()
                    logger.warning(
                        "Account %s changed during %s (attempt %d/%d), retrying",
                        account_id,
                        kind,
                        attempt,
                        self._settlement_retries,
                    )
                    continue

                logger.info(
                    "Settled %s for account %s: total=%s cash_balance=%s",
                    kind,
                    account_id,
                    settlement.transaction.total_value,
                    settlement.account.cash_balance,
                )
                return replace(settlement, account=saved)

        raise ConcurrentModificationError(account_id=account_id, attempts=self._settlement_retries)

    def _ensure_available(self, *, username: str | None, email: str | None) -> None:
        if username is not None and self._accounts.get_by_username(username) is not None:
            raise AccountConflictError(field="username", value=username)
        if email is not None and self._accounts.get_by_email(email) is not None:
            raise AccountConflictError(field="email", value=email)


__all__ = ["AccountSummary", "WalletService"]
