from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class AccountOrm(Base):
    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    cash_balance: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    positions: Mapped[list["PositionOrm"]] = relationship(
        cascade="all, delete-orphan", back_populates="account", lazy="joined"
    )

    # Concurrent writers from another session fail with StaleDataError instead of overwriting.
    __mapper_args__ = {"version_id_col": version}


class PositionOrm(Base):
    __tablename__ = "positions"

    account_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("accounts.id"), primary_key=True)
    symbol: Mapped[str] = mapped_column(String, primary_key=True)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cost_basis: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)

    account: Mapped[AccountOrm] = relationship(back_populates="positions")


class TransactionOrm(Base):
    __tablename__ = "transactions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    account_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("accounts.id"), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    symbol: Mapped[str | None] = mapped_column(String, nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    total_value: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    details: Mapped[str | None] = mapped_column(String, nullable=True)
    realized_profit: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_transactions_account_timestamp", "account_id", "timestamp"),)
