"""Application wiring for the withdrawal gate."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

import psycopg2

from ... import app_context
from ...config import GateConfig, load_gate_config
from ..gates import CredentialGate, StaticCapabilityProvider, StaticProxyRegistry
from ..hooks import (
    HookDispatcher,
    TransferLock,
    WithdrawalAuditEvent,
    WithdrawalAuditEventType,
    WithdrawalAuditLogger,
    WithdrawalGateService,
    WithdrawalInterceptor,
)
from ..quota import BalanceOracle, InMemoryQuotaStore, QuotaLedger, QuotaStore, get_entitlement_rule
from ..quota.repository import PostgresQuotaStore, PostgresReleaseParametersRepository
from ..release import (
    ReleaseEventPublisher,
    ReleaseParametersController,
    ReleaseParametersRepository,
    ReleaseParametersUpdated,
)


logger = logging.getLogger("withdrawal_gate")


class LoggingReleaseEventPublisher(ReleaseEventPublisher):
    """Publisher that records parameter updates to the application logger."""

    def publish(self, event: ReleaseParametersUpdated) -> None:
        logger.info(
            "Release parameters updated version=%s available=%s total_supplied=%s actor=%s",
            event.version,
            event.assets_available_for_withdrawal,
            event.total_supplied_assets,
            event.actor_id,
        )


class LoggingWithdrawalAuditLogger(WithdrawalAuditLogger):
    """Forwards hook audit events to logging."""

    def log(self, event: WithdrawalAuditEvent) -> None:
        if event.event_type == WithdrawalAuditEventType.WITHDRAWAL_AUTHORIZED:
            logger.info(
                "Withdrawal authorized operation=%s account=%s amount=%s metadata=%s",
                event.operation.value,
                event.account,
                event.amount,
                event.metadata,
            )
            return
        logger.warning(
            "Hook rejected event=%s operation=%s account=%s amount=%s error=%s metadata=%s",
            event.event_type.value,
            event.operation.value,
            event.account,
            event.amount,
            event.error_code,
            event.metadata,
        )


class LocalSandboxBalanceOracle(BalanceOracle):
    """In-memory balance oracle for local development and tests.

    Shares convert to assets at ``total_assets / total_shares``, rounding down.
    """

    def __init__(
        self,
        balances: Optional[Mapping[str, int]] = None,
        *,
        total_assets: int = 1,
        total_shares: int = 1,
    ) -> None:
        self._balances: Dict[str, int] = dict(balances or {})
        self.set_exchange_rate(total_assets, total_shares)

    def set_balance(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be >= 0")
        self._balances[account] = amount

    def set_exchange_rate(self, total_assets: int, total_shares: int) -> None:
        if total_assets < 0 or total_shares < 1:
            raise ValueError("total_assets must be >= 0 and total_shares >= 1")
        self._total_assets = total_assets
        self._total_shares = total_shares

    def value_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def convert_shares_to_assets(self, shares: int) -> int:
        return shares * self._total_assets // self._total_shares


class AllowListCredentialGate(CredentialGate):
    """Credential gate answering from an in-memory allow list per policy."""

    def __init__(self, grants: Iterable[Tuple[str, str]] = ()) -> None:
        self._grants: Set[Tuple[str, str]] = set(grants)

    def grant(self, account: str, policy_id: str) -> None:
        self._grants.add((account, policy_id))

    def revoke(self, account: str, policy_id: str) -> None:
        self._grants.discard((account, policy_id))

    def verify(self, account: str, policy_id: str) -> bool:
        return (account, policy_id) in self._grants


def _build_storage(
    config: GateConfig,
) -> Tuple[QuotaStore, Optional[ReleaseParametersRepository]]:
    if config.storage_backend == "postgres":
        db_config = dict(config.db_config)
        app_context.configure(get_conn=lambda: psycopg2.connect(**db_config))
        return PostgresQuotaStore(), PostgresReleaseParametersRepository()
    return InMemoryQuotaStore(), None


def build_withdrawal_gate(
    config: GateConfig,
    *,
    balances: Optional[BalanceOracle] = None,
    credentials: Optional[CredentialGate] = None,
    store: Optional[QuotaStore] = None,
    audit_logger: Optional[WithdrawalAuditLogger] = None,
) -> WithdrawalGateService:
    """Assemble a :class:`WithdrawalGateService` from configuration."""

    default_store, repository = _build_storage(config)
    audit = audit_logger or LoggingWithdrawalAuditLogger()

    controller = ReleaseParametersController(
        capabilities=StaticCapabilityProvider.administrators(config.admin_ids),
        publisher=LoggingReleaseEventPublisher(),
        repository=repository,
    )
    controller.load()

    ledger = QuotaLedger(
        parameters=controller,
        balances=balances or LocalSandboxBalanceOracle(),
        store=store or default_store,
        rule=get_entitlement_rule(config.entitlement_rule),
    )
    interceptor = WithdrawalInterceptor(
        ledger=ledger,
        credentials=credentials or AllowListCredentialGate(),
        audit_logger=audit,
        policy_id=config.policy_id,
        atomic_authorization=config.atomic_authorization,
    )
    dispatcher = HookDispatcher(
        proxies=StaticProxyRegistry(config.recognized_proxies),
        interceptor=interceptor,
        transfers=TransferLock(audit_logger=audit),
    )
    logger.debug(
        "Withdrawal gate built rule=%s storage=%s atomic=%s",
        config.entitlement_rule,
        config.storage_backend,
        config.atomic_authorization,
    )
    return WithdrawalGateService(parameters=controller, ledger=ledger, dispatcher=dispatcher)


@lru_cache(maxsize=1)
def get_withdrawal_gate() -> WithdrawalGateService:
    return build_withdrawal_gate(load_gate_config())


__all__ = [
    "AllowListCredentialGate",
    "LocalSandboxBalanceOracle",
    "LoggingReleaseEventPublisher",
    "LoggingWithdrawalAuditLogger",
    "build_withdrawal_gate",
    "get_withdrawal_gate",
]
