from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from db import models
from domain.account import Account, Position
from domain.base_types import AccountId, Symbol, TransactionId
from domain.errors import AccountNotFoundError
from domain.transaction import PaymentMethod, Transaction, TransactionType


def _as_utc(timestamp: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


class AccountRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, account: Account) -> Account:
        orm_account = models.AccountOrm(
            id=account.id,
            username=account.username,
            email=account.email,
            cash_balance=account.cash_balance,
            created_at=account.created_at,
        )
        orm_account.positions = [
            models.PositionOrm(symbol=position.symbol, quantity=position.quantity, cost_basis=position.cost_basis)
            for position in account.holdings.values()
        ]

        self._session.add(orm_account)
        self._session.commit()
        self._session.refresh(orm_account)
        return self._to_domain(orm_account)

    def get(self, account_id: AccountId) -> Account | None:
        orm_account = self._session.get(models.AccountOrm, account_id)
        if orm_account is None:
            return None
        return self._to_domain(orm_account)

    def get_by_username(self, username: str) -> Account | None:
        orm_account = self._session.query(models.AccountOrm).filter(models.AccountOrm.username == username).first()
        if orm_account is None:
            return None
        return self._to_domain(orm_account)

    def get_by_email(self, email: str) -> Account | None:
        orm_account = self._session.query(models.AccountOrm).filter(models.AccountOrm.email == email).first()
        if orm_account is None:
            return None
        return self._to_domain(orm_account)

    def list(self) -> list[Account]:
        orm_accounts = self._session.query(models.AccountOrm).order_by(models.AccountOrm.created_at.asc()).all()
        return [self._to_domain(orm_account) for orm_account in orm_accounts]

    def save(self, account: Account, *, commit: bool = True) -> Account:
        """Write the snapshot back, replacing holdings wholesale.

        The snapshot must carry the row version it was read at. A row that
        moved on since then raises StaleDataError before anything is written,
        and the flush itself is guarded by ``UPDATE ... WHERE version = ?``.
        Returns the snapshot with its bumped version.
        """
        orm_account = self._session.get(models.AccountOrm, account.id)
        if orm_account is None:
            raise AccountNotFoundError(account.id)
        if orm_account.version != account.version:
            raise StaleDataError(
                f"Account {account.id} is at version {orm_account.version}, snapshot was read at {account.version}"
            )

        orm_account.username = account.username
        orm_account.email = account.email
        orm_account.cash_balance = account.cash_balance
        flag_modified(orm_account, "cash_balance")

        existing = {orm_position.symbol: orm_position for orm_position in orm_account.positions}
        for symbol, position in account.holdings.items():
            orm_position = existing.pop(symbol, None)
            if orm_position is None:
                orm_account.positions.append(
                    models.PositionOrm(symbol=symbol, quantity=position.quantity, cost_basis=position.cost_basis)
                )
            else:
                orm_position.quantity = position.quantity
                orm_position.cost_basis = position.cost_basis
        for closed in existing.values():
            orm_account.positions.remove(closed)

        if commit:
            self._session.commit()
        return account.model_copy(update={"version": account.version + 1})

    def delete(self, account_id: AccountId, *, commit: bool = True) -> None:
        orm_account = self._session.get(models.AccountOrm, account_id)
        if orm_account is None:
            raise AccountNotFoundError(account_id)
        self._session.delete(orm_account)
        if commit:
            self._session.commit()

    @staticmethod
    def _to_domain(orm_account: models.AccountOrm) -> Account:
        holdings = {
            Symbol(orm_position.symbol): Position(
                symbol=Symbol(orm_position.symbol),
                quantity=orm_position.quantity,
                cost_basis=orm_position.cost_basis,
            )
            for orm_position in orm_account.positions
        }
        return Account(
            id=AccountId(orm_account.id),
            username=orm_account.username,
            email=orm_account.email,
            cash_balance=orm_account.cash_balance,
            holdings=holdings,
            created_at=_as_utc(orm_account.created_at),
            version=orm_account.version,
        )


class TransactionRepository:
    """Append-only log of settled operations."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, transaction: Transaction, *, commit: bool = True) -> Transaction:
        self._session.add(
            models.TransactionOrm(
                id=transaction.id,
                account_id=transaction.account_id,
                type=transaction.type.value,
                symbol=transaction.symbol,
                quantity=transaction.quantity,
                unit_price=transaction.unit_price,
                total_value=transaction.total_value,
                payment_method=transaction.payment_method.value if transaction.payment_method else None,
                details=transaction.details,
                realized_profit=transaction.realized_profit,
                timestamp=transaction.timestamp,
            )
        )
        if commit:
            self._session.commit()
        return transaction

    def get(self, transaction_id: TransactionId) -> Transaction | None:
        orm_transaction = self._session.get(models.TransactionOrm, transaction_id)
        if orm_transaction is None:
            return None
        return self._to_domain(orm_transaction)

    def list_for_account(self, account_id: AccountId, *, limit: int | None = None) -> list[Transaction]:
        """Newest first."""
        query = (
            self._session.query(models.TransactionOrm)
            .filter(models.TransactionOrm.account_id == account_id)
            .order_by(models.TransactionOrm.timestamp.desc(), models.TransactionOrm.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(orm_transaction) for orm_transaction in query.all()]

    def delete_for_account(self, account_id: AccountId, *, commit: bool = True) -> int:
        deleted = (
            self._session.query(models.TransactionOrm)
            .filter(models.TransactionOrm.account_id == account_id)
            .delete(synchronize_session=False)
        )
        if commit:
            self._session.commit()
        return deleted

    @staticmethod
    def _to_domain(orm_transaction: models.TransactionOrm) -> Transaction:
        return Transaction(
            id=TransactionId(orm_transaction.id),
            account_id=AccountId(orm_transaction.account_id),
            type=TransactionType(orm_transaction.type),
            symbol=Symbol(orm_transaction.symbol) if orm_transaction.symbol is not None else None,
            quantity=orm_transaction.quantity,
            unit_price=orm_transaction.unit_price,
            total_value=orm_transaction.total_value,
            payment_method=PaymentMethod(orm_transaction.payment_method) if orm_transaction.payment_method else None,
            details=orm_transaction.details,
            realized_profit=orm_transaction.realized_profit,
            timestamp=_as_utc(orm_transaction.timestamp),
        )
