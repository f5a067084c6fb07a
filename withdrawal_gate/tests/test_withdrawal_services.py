from __future__ import annotations

import logging

import pytest

from withdrawal_gate.app.hooks import HookOperation, WithdrawalAuditEvent, WithdrawalAuditEventType
from withdrawal_gate.app.quota import InMemoryQuotaStore, SegmentedEntitlementRule
from withdrawal_gate.app.release import ReleaseParametersUpdated
from withdrawal_gate.app.services import withdrawals as withdrawal_services
from withdrawal_gate.app.services.withdrawals import (
    AllowListCredentialGate,
    LocalSandboxBalanceOracle,
    LoggingReleaseEventPublisher,
    LoggingWithdrawalAuditLogger,
    build_withdrawal_gate,
)
from withdrawal_gate.config import load_gate_config


def test_sandbox_oracle_rounds_share_conversion_down():
    oracle = LocalSandboxBalanceOracle(total_assets=10, total_shares=3)

    assert oracle.convert_shares_to_assets(1) == 3
    assert oracle.convert_shares_to_assets(3) == 10
    assert oracle.value_of("nobody") == 0

    with pytest.raises(ValueError):
        oracle.set_exchange_rate(1, 0)
    with pytest.raises(ValueError):
        oracle.set_balance("alice", -1)


def test_allow_list_credential_gate_is_per_policy():
    gate = AllowListCredentialGate()
    gate.grant("alice", "kyc")

    assert gate.verify("alice", "kyc") is True
    assert gate.verify("alice", "accredited") is False

    gate.revoke("alice", "kyc")
    assert gate.verify("alice", "kyc") is False


def test_build_uses_configured_rule_and_atomic_mode():
    config = load_gate_config(
        {
            "WITHDRAWAL_GATE_ENTITLEMENT_RULE": "segmented",
            "WITHDRAWAL_GATE_ATOMIC_AUTHORIZATION": "true",
            "WITHDRAWAL_GATE_ADMINS": "admin",
        }
    )
    store = InMemoryQuotaStore()

    service = build_withdrawal_gate(config, store=store)

    assert isinstance(service.ledger.rule, SegmentedEntitlementRule)
    assert service.ledger.store is store
    assert service.dispatcher.interceptor.atomic_authorization is True
    service.set_release_parameters(1, 2, actor="admin")
    assert service.current_parameters().version == 1


def test_get_withdrawal_gate_is_cached(monkeypatch):
    monkeypatch.delenv("WITHDRAWAL_GATE_STORAGE", raising=False)
    withdrawal_services.get_withdrawal_gate.cache_clear()
    try:
        assert withdrawal_services.get_withdrawal_gate() is withdrawal_services.get_withdrawal_gate()
    finally:
        withdrawal_services.get_withdrawal_gate.cache_clear()


def test_logging_publishers_write_to_gate_logger(caplog):
    caplog.set_level(logging.INFO, logger="withdrawal_gate")

    LoggingReleaseEventPublisher().publish(
        ReleaseParametersUpdated(
            assets_available_for_withdrawal=5,
            total_supplied_assets=10,
            version=1,
            actor_id="admin",
        )
    )
    audit = LoggingWithdrawalAuditLogger()
    audit.log(
        WithdrawalAuditEvent(
            event_type=WithdrawalAuditEventType.WITHDRAWAL_AUTHORIZED,
            operation=HookOperation.WITHDRAW,
            account="alice",
            amount=5,
        )
    )
    audit.log(
        WithdrawalAuditEvent(
            event_type=WithdrawalAuditEventType.TRANSFER_REJECTED,
            operation=HookOperation.TRANSFER,
            error_code="transfers_disabled",
        )
    )

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.INFO, logging.WARNING]
    assert "version=1" in caplog.records[0].getMessage()
    assert "transfers_disabled" in caplog.records[2].getMessage()
