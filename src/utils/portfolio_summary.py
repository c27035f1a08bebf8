from __future__ import annotations

from domain.portfolio import PortfolioValuation

from .formatting import format_money, format_percentage, format_quantity


def render_portfolio(valuation: PortfolioValuation, *, quote_currency: str = "USD") -> None:
    print(f"Cash balance: {format_money(valuation.cash_balance, quote_currency)}")
    print("Holdings:")
    if not valuation.positions:
        print("  (empty)")
        return

    value_label = f"Value {quote_currency}"
    rows: list[tuple[str, str, str, str, str]] = []
    for position in valuation.positions:
        rows.append(
            (
                position.symbol,
                format_quantity(position.quantity),
                format_money(position.average_price),
                format_money(position.value),
                f"{format_money(position.profit)} ({format_percentage(position.profit_percentage)})",
            )
        )

    headers = ("Symbol", "Quantity", "Avg price", value_label, "Profit")
    widths = [max(len(header), max(len(row[idx]) for row in rows)) for idx, header in enumerate(headers)]
    header = " ".join(
        f"{title:<{widths[idx]}}" if idx == 0 else f"{title:>{widths[idx]}}" for idx, title in enumerate(headers)
    )

    lines = [header, "-" * len(header)]
    for row in rows:
        lines.append(
            " ".join(f"{cell:<{widths[idx]}}" if idx == 0 else f"{cell:>{widths[idx]}}" for idx, cell in enumerate(row))
        )
    lines.append("-" * len(header))
    lines.append(f"Total value: {format_money(valuation.total_value)}  Profit: {format_money(valuation.total_profit)}")
    lines.append(f"Net worth:   {format_money(valuation.net_worth, quote_currency)}")
    print("\n".join(lines))
