"""Storage abstractions for per-account quota state."""
from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import ContextManager, Dict, Iterator, Protocol

from .models import AccountQuotaState


class QuotaSession(Protocol):
    """Read/write handle valid while an account lock is held."""

    def load(self, account: str) -> AccountQuotaState:
        ...

    def save(self, state: AccountQuotaState) -> AccountQuotaState:
        ...


class QuotaStore(Protocol):
    """Protocol describing quota persistence used by the ledger."""

    def get(self, account: str) -> AccountQuotaState:
        ...

    def lock(self, account: str) -> ContextManager[QuotaSession]:
        ...


class InMemoryQuotaStore:
    """Process-local store with one lock per account.

    Suitable for tests, local development and single-process deployments.
    One lock is kept for every account ever seen and none are evicted, so
    the lock map grows with the number of distinct accounts.
    """

    def __init__(self) -> None:
        self._states: Dict[str, AccountQuotaState] = {}
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _account_lock(self, account: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(account)
            if lock is None:
                lock = self._locks[account] = Lock()
            return lock

    def get(self, account: str) -> AccountQuotaState:
        return self._states.get(account) or AccountQuotaState(account=account)

    load = get

    def save(self, state: AccountQuotaState) -> AccountQuotaState:
        self._states[state.account] = state
        return state

    @contextmanager
    def lock(self, account: str) -> Iterator["InMemoryQuotaStore"]:
        with self._account_lock(account):
            yield self
