"""Quota ledger, entitlement rules and storage."""

from .ledger import BalanceOracle, QuotaLedger
from .models import AccountQuotaState, EntitlementEvaluation, WithdrawalAuthorization
from .rules import (
    ENTITLEMENT_RULES,
    CumulativeEntitlementRule,
    EntitlementRule,
    SegmentedEntitlementRule,
    get_entitlement_rule,
)
from .store import InMemoryQuotaStore, QuotaSession, QuotaStore

__all__ = [
    "ENTITLEMENT_RULES",
    "AccountQuotaState",
    "BalanceOracle",
    "CumulativeEntitlementRule",
    "EntitlementEvaluation",
    "EntitlementRule",
    "InMemoryQuotaStore",
    "QuotaLedger",
    "QuotaSession",
    "QuotaStore",
    "SegmentedEntitlementRule",
    "WithdrawalAuthorization",
    "get_entitlement_rule",
]
