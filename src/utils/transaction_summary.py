from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from domain.transaction import Transaction, TransactionType

from .formatting import format_money


@dataclass
class MonthlyActivity:
    year: int
    month: int
    count: int
    value: Decimal


@dataclass
class TransactionStats:
    total_deposits: Decimal = Decimal(0)
    total_withdrawals: Decimal = Decimal(0)
    total_purchases: Decimal = Decimal(0)
    total_sales: Decimal = Decimal(0)
    realized_profit: Decimal = Decimal(0)
    monthly: list[MonthlyActivity] = field(default_factory=list)


def count_by_type(transactions: Iterable[Transaction]) -> dict[TransactionType, int]:
    counts = Counter(transaction.type for transaction in transactions)
    return {kind: counts[kind] for kind in TransactionType if counts[kind]}


def compute_transaction_stats(transactions: Iterable[Transaction]) -> TransactionStats:
    """Fold the log into per-type totals and per-month (UTC) activity."""
    totals: dict[TransactionType, Decimal] = defaultdict(lambda: Decimal(0))
    monthly_count: dict[tuple[int, int], int] = defaultdict(int)
    monthly_value: dict[tuple[int, int], Decimal] = defaultdict(lambda: Decimal(0))
    realized_profit = Decimal(0)

    for transaction in transactions:
        totals[transaction.type] += transaction.total_value
        if transaction.realized_profit is not None:
            realized_profit += transaction.realized_profit
        key = (transaction.timestamp.year, transaction.timestamp.month)
        monthly_count[key] += 1
        monthly_value[key] += transaction.total_value

    return TransactionStats(
        total_deposits=totals[TransactionType.DEPOSIT],
        total_withdrawals=totals[TransactionType.WITHDRAW],
        total_purchases=totals[TransactionType.BUY],
        total_sales=totals[TransactionType.SELL],
        realized_profit=realized_profit,
        monthly=[
            MonthlyActivity(year=year, month=month, count=monthly_count[(year, month)], value=monthly_value[(year, month)])
            for year, month in sorted(monthly_count)
        ],
    )


def render_transaction_stats(stats: TransactionStats) -> None:
    print("Transaction totals:")
    print(f"  Deposits:        {format_money(stats.total_deposits)}")
    print(f"  Withdrawals:     {format_money(stats.total_withdrawals)}")
    print(f"  Purchases:       {format_money(stats.total_purchases)}")
    print(f"  Sales:           {format_money(stats.total_sales)}")
    print(f"  Realized profit: {format_money(stats.realized_profit)}")

    print("Monthly activity:")
    if not stats.monthly:
        print("  (empty)")
        return
    for activity in stats.monthly:
        print(f"  {activity.year:04d}-{activity.month:02d}  {activity.count:>4}  {format_money(activity.value):>14}")
