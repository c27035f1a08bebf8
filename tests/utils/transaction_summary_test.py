from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.base_types import AccountId
from domain.transaction import Transaction, TransactionType
from tests.constants import BTC
from utils.transaction_summary import compute_transaction_stats, count_by_type, render_transaction_stats

ACCOUNT_ID = AccountId(uuid4())


def _cash(kind: TransactionType, amount: str, timestamp: datetime) -> Transaction:
    return Transaction(account_id=ACCOUNT_ID, type=kind, total_value=Decimal(amount), timestamp=timestamp)


def _trade(kind: TransactionType, total: str, timestamp: datetime, profit: str | None = None) -> Transaction:
    return Transaction(
        account_id=ACCOUNT_ID,
        type=kind,
        symbol=BTC,
        quantity=Decimal("1"),
        unit_price=Decimal(total),
        total_value=Decimal(total),
        realized_profit=Decimal(profit) if profit is not None else None,
        timestamp=timestamp,
    )


@pytest.fixture()
def transactions() -> list[Transaction]:
    return [
        _trade(TransactionType.SELL, "120", datetime(2024, 3, 2, tzinfo=timezone.utc), profit="20"),
        _trade(TransactionType.BUY, "100", datetime(2024, 2, 10, tzinfo=timezone.utc)),
        _cash(TransactionType.WITHDRAW, "30", datetime(2024, 2, 5, tzinfo=timezone.utc)),
        _cash(TransactionType.DEPOSIT, "50", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        _cash(TransactionType.DEPOSIT, "25", datetime(2023, 12, 31, 23, 59, tzinfo=timezone.utc)),
    ]


def test_compute_transaction_stats(transactions: list[Transaction]) -> None:
    stats = compute_transaction_stats(transactions)

    assert stats.total_deposits == Decimal("75")
    assert stats.total_withdrawals == Decimal("30")
    assert stats.total_purchases == Decimal("100")
    assert stats.total_sales == Decimal("120")
    assert stats.realized_profit == Decimal("20")
    assert [(a.year, a.month, a.count, a.value) for a in stats.monthly] == [
        (2023, 12, 1, Decimal("25")),
        (2024, 1, 1, Decimal("50")),
        (2024, 2, 2, Decimal("130")),
        (2024, 3, 1, Decimal("120")),
    ]


def test_empty_log_has_zero_totals() -> None:
    stats = compute_transaction_stats([])

    assert stats.total_deposits == Decimal(0)
    assert stats.realized_profit == Decimal(0)
    assert stats.monthly == []


def test_count_by_type_skips_missing_types(transactions: list[Transaction]) -> None:
    assert count_by_type(transactions) == {
        TransactionType.BUY: 1,
        TransactionType.SELL: 1,
        TransactionType.DEPOSIT: 2,
        TransactionType.WITHDRAW: 1,
    }
    assert count_by_type(transactions[:1]) == {TransactionType.SELL: 1}


def test_render_transaction_stats(transactions: list[Transaction], capsys: pytest.CaptureFixture[str]) -> None:
    render_transaction_stats(compute_transaction_stats(transactions))

    out = capsys.readouterr().out
    assert "Transaction totals:" in out
    assert "2024-02" in out
    assert "(empty)" not in out

    render_transaction_stats(compute_transaction_stats([]))
    assert "(empty)" in capsys.readouterr().out
