from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional, Tuple

import pytest

from withdrawal_gate import app_context
from withdrawal_gate.app.quota import AccountQuotaState
from withdrawal_gate.app.quota.repository import (
    PostgresQuotaStore,
    PostgresReleaseParametersRepository,
)
from withdrawal_gate.app.release import ReleaseParameters


class FakeCursor:
    def __init__(self, rows: List[Optional[dict]]) -> None:
        self._rows = list(rows)
        self.executed: List[Tuple[str, Any]] = []
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        self.executed.append((" ".join(sql.split()), params))

    def fetchone(self) -> Optional[dict]:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, rows: List[Optional[dict]]) -> None:
        self.cursor_obj = FakeCursor(rows)
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, cursor_factory=None) -> FakeCursor:
        return self.cursor_obj

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_context():
    yield
    app_context.reset()


def test_get_returns_default_state_for_unknown_account():
    conn = FakeConnection([None])
    store = PostgresQuotaStore(conn=conn)

    state = store.get("alice")

    assert state == AccountQuotaState(account="alice")
    assert conn.cursor_obj.executed[0][1] == ("alice",)
    assert conn.cursor_obj.closed is True


def test_lock_takes_advisory_lock_and_persists_state():
    saved_row = {
        "account": "alice",
        "total_withdrawn_amount": Decimal("500000"),
        "period": None,
        "period_allowance": None,
        "period_withdrawn": 0,
    }
    conn = FakeConnection([None, saved_row])
    store = PostgresQuotaStore(conn=conn)

    with store.lock("alice") as session:
        state = session.load("alice")
        persisted = session.save(state.model_copy(update={"total_withdrawn_amount": 500_000}))

    statements = [sql for sql, _ in conn.cursor_obj.executed]
    assert statements[0].startswith("SELECT pg_advisory_xact_lock")
    assert statements[2].startswith("INSERT INTO withdrawal_quota_accounts")
    assert persisted.total_withdrawn_amount == 500_000
    assert isinstance(persisted.total_withdrawn_amount, int)


def test_managed_connection_commits_and_closes():
    conn = FakeConnection([None])
    app_context.configure(get_conn=lambda: conn)
    store = PostgresQuotaStore()

    store.get("alice")

    assert conn.commits == 1
    assert conn.closed is True


def test_managed_connection_rolls_back_on_failure():
    conn = FakeConnection([None])
    app_context.configure(get_conn=lambda: conn)
    store = PostgresQuotaStore()

    with pytest.raises(RuntimeError):
        with store.lock("alice"):
            raise RuntimeError("boom")

    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert conn.closed is True


def test_unconfigured_context_raises():
    with pytest.raises(RuntimeError):
        PostgresQuotaStore().get("alice")


def test_release_parameters_repository_round_trip():
    row = {
        "assets_available_for_withdrawal": Decimal("5000000"),
        "total_supplied_assets": Decimal("10000000"),
        "version": 3,
        "updated_by": "admin",
        "updated_at": None,
    }
    conn = FakeConnection([row, row])
    repository = PostgresReleaseParametersRepository(conn=conn)

    saved = repository.save(
        ReleaseParameters(
            assets_available_for_withdrawal=5_000_000,
            total_supplied_assets=10_000_000,
            version=1,
            updated_by="admin",
        )
    )
    latest = repository.get_latest()

    lock_sql, lock_params = conn.cursor_obj.executed[0]
    insert_sql, insert_params = conn.cursor_obj.executed[1]
    assert lock_sql.startswith("SELECT pg_advisory_xact_lock")
    assert lock_params == ("withdrawal_release_parameters",)
    assert "COALESCE(MAX(version), 0) + 1" in insert_sql
    assert "version" not in insert_params
    assert saved == latest
    assert latest.is_initialized is True
    assert latest.version == 3


def test_release_parameters_repository_without_rows():
    repository = PostgresReleaseParametersRepository(conn=FakeConnection([]))

    assert repository.get_latest() is None
