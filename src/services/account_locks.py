from __future__ import annotations

import threading

from domain.base_types import AccountId


class AccountLocks:
    """Registry of one in-process lock per account.

    Settlements on the same account run one at a time; different accounts
    never wait on each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[AccountId, threading.Lock] = {}

    def for_account(self, account_id: AccountId) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[account_id] = lock
            return lock

    def discard(self, account_id: AccountId) -> None:
        with self._guard:
            self._locks.pop(account_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
