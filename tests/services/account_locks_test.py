from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

from domain.base_types import AccountId
from services.account_locks import AccountLocks


def test_same_account_gets_same_lock() -> None:
    locks = AccountLocks()
    account_id = AccountId(uuid4())

    assert locks.for_account(account_id) is locks.for_account(account_id)
    assert locks.for_account(account_id) is not locks.for_account(AccountId(uuid4()))
    assert len(locks) == 2


def test_discard_forgets_lock() -> None:
    locks = AccountLocks()
    account_id = AccountId(uuid4())
    first = locks.for_account(account_id)

    locks.discard(account_id)
    locks.discard(account_id)

    assert locks.for_account(account_id) is not first


def test_concurrent_lookups_share_one_lock() -> None:
    locks = AccountLocks()
    account_id = AccountId(uuid4())

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: locks.for_account(account_id), range(64)))

    assert all(lock is results[0] for lock in results)
