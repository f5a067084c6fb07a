from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from withdrawal_gate.app.gates import (
    AuthorizationError,
    CredentialRejected,
    ExceedsEntitlement,
    NotInitialized,
    QuotaError,
    StaticCapabilityProvider,
    StaticProxyRegistry,
    TransfersDisabled,
    UnrecognizedCaller,
)
from withdrawal_gate.app.hooks import (
    HookDispatcher,
    HookOperation,
    TransferLock,
    WithdrawalAuditEvent,
    WithdrawalAuditEventType,
    WithdrawalInterceptor,
)
from withdrawal_gate.app.quota import InMemoryQuotaStore, QuotaLedger
from withdrawal_gate.app.release import ReleaseParametersController


class FakeVault:
    """Balance oracle with a fixed share price of ``assets_per_share``."""

    def __init__(self, assets_per_share: int = 2) -> None:
        self.balances: Dict[str, int] = {}
        self.assets_per_share = assets_per_share

    def value_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def convert_shares_to_assets(self, shares: int) -> int:
        return shares * self.assets_per_share


class RecordingCredentialGate:
    def __init__(self, allowed: bool = True) -> None:
        self.allowed = allowed
        self.calls: List[Tuple[str, str]] = []

    def verify(self, account: str, policy_id: str) -> bool:
        self.calls.append((account, policy_id))
        return self.allowed


class ExplodingCredentialGate:
    def verify(self, account: str, policy_id: str) -> bool:
        raise ConnectionError("credential backend unavailable")


class RecordingAuditLogger:
    def __init__(self) -> None:
        self.events: List[WithdrawalAuditEvent] = []

    def log(self, event: WithdrawalAuditEvent) -> None:
        self.events.append(event)


class NullPublisher:
    def publish(self, event) -> None:
        return None


POLICY_ID = "kyc-tier-1"


@pytest.fixture
def controller() -> ReleaseParametersController:
    return ReleaseParametersController(
        capabilities=StaticCapabilityProvider.administrators(["admin"]),
        publisher=NullPublisher(),
    )


@pytest.fixture
def vault() -> FakeVault:
    vault = FakeVault()
    vault.balances["alice"] = 1_000_000
    return vault


@pytest.fixture
def ledger(controller, vault) -> QuotaLedger:
    controller.set_release_parameters(5_000_000, 10_000_000, actor="admin")
    return QuotaLedger(parameters=controller, balances=vault, store=InMemoryQuotaStore())


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def gate() -> RecordingCredentialGate:
    return RecordingCredentialGate()


def _interceptor(ledger, gate, audit_logger, *, atomic: bool = False) -> WithdrawalInterceptor:
    return WithdrawalInterceptor(
        ledger=ledger,
        credentials=gate,
        audit_logger=audit_logger,
        policy_id=POLICY_ID,
        atomic_authorization=atomic,
    )


def test_withdraw_checks_quota_then_credential(ledger, gate, audit_logger):
    interceptor = _interceptor(ledger, gate, audit_logger)

    authorization = interceptor.on_withdraw(200_000, "alice")

    assert authorization.amount == 200_000
    assert authorization.remaining_after == 300_000
    assert gate.calls == [("alice", POLICY_ID)]
    assert audit_logger.events[-1].event_type == WithdrawalAuditEventType.WITHDRAWAL_AUTHORIZED
    assert audit_logger.events[-1].operation == HookOperation.WITHDRAW


def test_redeem_converts_shares_before_checking_quota(ledger, gate, audit_logger):
    interceptor = _interceptor(ledger, gate, audit_logger)

    authorization = interceptor.on_redeem(100_000, "alice")

    assert authorization.shares == 100_000
    assert authorization.amount == 200_000
    assert ledger.account_state("alice").total_withdrawn_amount == 200_000
    assert audit_logger.events[-1].operation == HookOperation.REDEEM


def test_redeem_rejects_share_amount_worth_more_than_entitlement(ledger, gate, audit_logger):
    interceptor = _interceptor(ledger, gate, audit_logger)

    with pytest.raises(ExceedsEntitlement) as exc:
        interceptor.on_redeem(250_001, "alice")

    assert exc.value.requested == 500_002
    assert exc.value.allowed == 500_000
    assert gate.calls == []


def test_quota_rejection_skips_credential_check(ledger, gate, audit_logger):
    interceptor = _interceptor(ledger, gate, audit_logger)

    with pytest.raises(ExceedsEntitlement) as exc:
        interceptor.on_withdraw(500_001, "alice")

    assert isinstance(exc.value, QuotaError)
    assert not isinstance(exc.value, AuthorizationError)
    assert gate.calls == []
    rejected = audit_logger.events[-1]
    assert rejected.event_type == WithdrawalAuditEventType.WITHDRAWAL_REJECTED
    assert rejected.error_code == "exceeds_entitlement"
    assert rejected.metadata == {"quota_committed": "false"}


def test_uninitialized_parameters_reject_withdrawals(controller, vault, gate, audit_logger):
    ledger = QuotaLedger(parameters=controller, balances=vault, store=InMemoryQuotaStore())
    interceptor = _interceptor(ledger, gate, audit_logger)

    with pytest.raises(NotInitialized):
        interceptor.on_withdraw(1, "alice")
    with pytest.raises(NotInitialized):
        interceptor.on_redeem(1, "alice")


def test_reference_order_keeps_committed_quota_when_credential_rejected(ledger, audit_logger):
    gate = RecordingCredentialGate(allowed=False)
    interceptor = _interceptor(ledger, gate, audit_logger)

    with pytest.raises(CredentialRejected) as exc:
        interceptor.on_withdraw(200_000, "alice")

    assert isinstance(exc.value, AuthorizationError)
    assert exc.value.status_code == 401
    assert ledger.account_state("alice").total_withdrawn_amount == 200_000
    assert audit_logger.events[-1].metadata == {"quota_committed": "true"}


def test_atomic_mode_discards_quota_when_credential_rejected(ledger, audit_logger):
    gate = RecordingCredentialGate(allowed=False)
    interceptor = _interceptor(ledger, gate, audit_logger, atomic=True)

    with pytest.raises(CredentialRejected):
        interceptor.on_withdraw(200_000, "alice")

    assert ledger.account_state("alice").total_withdrawn_amount == 0
    assert audit_logger.events[-1].metadata == {"quota_committed": "false"}

    gate.allowed = True
    interceptor.on_withdraw(500_000, "alice")
    assert ledger.account_state("alice").total_withdrawn_amount == 500_000


def test_atomic_mode_skips_credential_when_quota_exceeded(ledger, gate, audit_logger):
    interceptor = _interceptor(ledger, gate, audit_logger, atomic=True)

    with pytest.raises(ExceedsEntitlement):
        interceptor.on_withdraw(600_000, "alice")

    assert gate.calls == []


def test_credential_backend_error_is_reported_as_rejection(ledger, audit_logger):
    interceptor = _interceptor(ledger, ExplodingCredentialGate(), audit_logger)

    with pytest.raises(CredentialRejected) as exc:
        interceptor.on_withdraw(1, "alice")

    assert isinstance(exc.value.__cause__, ConnectionError)
    assert exc.value.payload["reason"] == "credential backend unavailable"


@pytest.fixture
def dispatcher(ledger, gate, audit_logger) -> HookDispatcher:
    return HookDispatcher(
        proxies=StaticProxyRegistry(["vault-proxy"]),
        interceptor=_interceptor(ledger, gate, audit_logger),
        transfers=TransferLock(audit_logger=audit_logger),
    )


def test_dispatcher_verifies_credential_for_account_not_caller(dispatcher, gate):
    dispatcher.withdraw("vault-proxy", 10, "alice")

    assert gate.calls == [("alice", POLICY_ID)]


def test_dispatcher_rejects_unrecognized_caller_before_touching_quota(dispatcher, ledger, gate):
    with pytest.raises(UnrecognizedCaller) as exc:
        dispatcher.withdraw("impostor", 10, "alice")
    with pytest.raises(UnrecognizedCaller):
        dispatcher.redeem("impostor", 10, "alice")

    assert exc.value.payload["caller"] == "impostor"
    assert ledger.account_state("alice").total_withdrawn_amount == 0
    assert gate.calls == []


@pytest.mark.parametrize("caller", ["vault-proxy", "impostor", ""])
def test_transfers_are_always_disabled(dispatcher, audit_logger, caller):
    with pytest.raises(TransfersDisabled) as transfer_exc:
        dispatcher.transfer(caller, "bob", 1)
    with pytest.raises(TransfersDisabled):
        dispatcher.transfer_from(caller, "alice", "bob", 0)
    with pytest.raises(TransfersDisabled):
        dispatcher.transfer_from_max(caller, "alice", "bob")

    assert transfer_exc.value.payload["entry_point"] == "transfer"
    operations = [event.operation for event in audit_logger.events]
    assert operations == [
        HookOperation.TRANSFER,
        HookOperation.TRANSFER_FROM,
        HookOperation.TRANSFER_FROM_MAX,
    ]


def test_transfer_lock_without_audit_logger_still_rejects():
    lock = TransferLock()

    with pytest.raises(TransfersDisabled):
        lock.transfer("bob", 10**30)


def test_transfer_rejection_survives_non_string_caller(audit_logger):
    lock = TransferLock(audit_logger=audit_logger)

    with pytest.raises(TransfersDisabled):
        lock.transfer_from("alice", "bob", 1, caller=42)

    assert audit_logger.events[0].metadata == {"caller": "42"}


def test_transfer_rejection_survives_failing_audit_logger():
    class BrokenAuditLogger:
        def log(self, event) -> None:
            raise OSError("audit sink unavailable")

    lock = TransferLock(audit_logger=BrokenAuditLogger())

    with pytest.raises(TransfersDisabled) as exc:
        lock.transfer("bob", 1)

    assert isinstance(exc.value.__cause__, OSError)
