"""Domain models and settlement rules for the crypto wallet simulator.

This package contains in-memory (Pydantic) models describing accounts,
positions and transactions, plus the pure ledger engine that settles
operations against them. They are independent from persistence models so
that business logic and testing can evolve without DB coupling.
"""

__all__ = [
    "account",
    "base_types",
    "errors",
    "ledger",
    "portfolio",
    "pricing",
    "trading_rules",
    "transaction",
]
