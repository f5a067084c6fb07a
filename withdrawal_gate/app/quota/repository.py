"""PostgreSQL persistence for quota counters and release parameters."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2.extras
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from ...app_context import get_conn
from ..release.models import ReleaseParameters
from .models import AccountQuotaState


@contextmanager
def managed_connection(conn: Optional[PgConnection] = None):
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    connection = get_conn()
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


@contextmanager
def _dict_cursor(conn: Optional[PgConnection]) -> Iterator[PgCursor]:
    with managed_connection(conn) as (connection, _managed):
        cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        try:
            yield cursor
        finally:
            cursor.close()


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _row_to_quota_state(row: dict) -> AccountQuotaState:
    return AccountQuotaState(
        account=row["account"],
        total_withdrawn_amount=int(row["total_withdrawn_amount"]),
        period=_optional_int(row.get("period")),
        period_allowance=_optional_int(row.get("period_allowance")),
        period_withdrawn=int(row.get("period_withdrawn") or 0),
    )


def _row_to_release_parameters(row: dict) -> ReleaseParameters:
    return ReleaseParameters(
        assets_available_for_withdrawal=int(row["assets_available_for_withdrawal"]),
        total_supplied_assets=int(row["total_supplied_assets"]),
        version=int(row["version"]),
        updated_by=row.get("updated_by"),
        updated_at=row.get("updated_at"),
    )


_SELECT_QUOTA_STATE = """
    SELECT account, total_withdrawn_amount, period, period_allowance, period_withdrawn
    FROM withdrawal_quota_accounts
    WHERE account = %s
    LIMIT 1
"""


class _PostgresQuotaSession:
    """Session bound to a cursor whose transaction holds the account lock."""

    def __init__(self, cursor: PgCursor) -> None:
        self._cursor = cursor

    def load(self, account: str) -> AccountQuotaState:
        self._cursor.execute(_SELECT_QUOTA_STATE, (account,))
        row = self._cursor.fetchone()
        if not row:
            return AccountQuotaState(account=account)
        return _row_to_quota_state(row)

    def save(self, state: AccountQuotaState) -> AccountQuotaState:
        self._cursor.execute(
            """
            INSERT INTO withdrawal_quota_accounts (
                account,
                total_withdrawn_amount,
                period,
                period_allowance,
                period_withdrawn
            )
            VALUES (%(account)s, %(total_withdrawn_amount)s, %(period)s,
                    %(period_allowance)s, %(period_withdrawn)s)
            ON CONFLICT (account) DO UPDATE SET
                total_withdrawn_amount = EXCLUDED.total_withdrawn_amount,
                period = EXCLUDED.period,
                period_allowance = EXCLUDED.period_allowance,
                period_withdrawn = EXCLUDED.period_withdrawn,
                updated_at = NOW()
            RETURNING account, total_withdrawn_amount, period, period_allowance, period_withdrawn
            """,
            {
                "account": state.account,
                "total_withdrawn_amount": state.total_withdrawn_amount,
                "period": state.period,
                "period_allowance": state.period_allowance,
                "period_withdrawn": state.period_withdrawn,
            },
        )
        row = self._cursor.fetchone()
        if not row:
            raise RuntimeError("Failed to persist quota state")
        return _row_to_quota_state(row)


class PostgresQuotaStore:
    """Quota store persisting counters in PostgreSQL.

    Per-account serialization uses a transaction-scoped advisory lock, which
    also serializes writers running in other processes.
    """

    def __init__(self, *, conn: Optional[PgConnection] = None) -> None:
        self._conn = conn

    def get(self, account: str) -> AccountQuotaState:
        with _dict_cursor(self._conn) as cursor:
            return _PostgresQuotaSession(cursor).load(account)

    @contextmanager
    def lock(self, account: str) -> Iterator[_PostgresQuotaSession]:
        with _dict_cursor(self._conn) as cursor:
            cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (account,))
            yield _PostgresQuotaSession(cursor)


class PostgresReleaseParametersRepository:
    """Append-only history of release parameters keyed by version.

    Versions are assigned in the INSERT under a transaction-scoped advisory
    lock, so writers in different processes never reuse a version.
    """

    def __init__(self, *, conn: Optional[PgConnection] = None) -> None:
        self._conn = conn

    def get_latest(self) -> Optional[ReleaseParameters]:
        with _dict_cursor(self._conn) as cursor:
            cursor.execute(
                """
                SELECT assets_available_for_withdrawal, total_supplied_assets,
                       version, updated_by, updated_at
                FROM withdrawal_release_parameters
                ORDER BY version DESC
                LIMIT 1
                """
            )
            row = cursor.fetchone()
            return _row_to_release_parameters(row) if row else None

    def save(self, parameters: ReleaseParameters) -> ReleaseParameters:
        with _dict_cursor(self._conn) as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s))",
                ("withdrawal_release_parameters",),
            )
            cursor.execute(
                """
                INSERT INTO withdrawal_release_parameters (
                    assets_available_for_withdrawal,
                    total_supplied_assets,
                    version,
                    updated_by,
                    updated_at
                )
                SELECT %(assets_available_for_withdrawal)s, %(total_supplied_assets)s,
                       COALESCE(MAX(version), 0) + 1, %(updated_by)s,
                       COALESCE(%(updated_at)s, NOW())
                FROM withdrawal_release_parameters
                RETURNING assets_available_for_withdrawal, total_supplied_assets,
                          version, updated_by, updated_at
                """,
                {
                    "assets_available_for_withdrawal": parameters.assets_available_for_withdrawal,
                    "total_supplied_assets": parameters.total_supplied_assets,
                    "updated_by": parameters.updated_by,
                    "updated_at": parameters.updated_at,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist release parameters")
            return _row_to_release_parameters(row)
