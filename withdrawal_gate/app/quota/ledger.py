"""Quota ledger authorizing withdrawals against pro-rata entitlement."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from ..gates.exceptions import ExceedsEntitlement
from ..release.controller import ReleaseParametersController
from ..release.models import ReleaseParameters, require_amount
from .models import AccountQuotaState, EntitlementEvaluation, WithdrawalAuthorization
from .rules import CumulativeEntitlementRule, EntitlementRule
from .store import QuotaStore


class BalanceOracle(Protocol):
    """External view of each account's claim on the pooled asset."""

    def value_of(self, account: str) -> int:
        """Current settlement-asset claim of ``account``."""

    def convert_shares_to_assets(self, shares: int) -> int:
        """Exact settlement-asset value of ``shares``."""


@dataclass
class QuotaLedger:
    """Coordinates release parameters, balances and per-account counters."""

    parameters: ReleaseParametersController
    balances: BalanceOracle
    store: QuotaStore
    rule: EntitlementRule = field(default_factory=CumulativeEntitlementRule)

    def account_state(self, account: str) -> AccountQuotaState:
        return self.store.get(account)

    def evaluate(self, account: str) -> EntitlementEvaluation:
        """Return the full entitlement breakdown for ``account`` without mutating it."""

        parameters = self.parameters.require_initialized()
        return self._evaluate(self.store.get(account), parameters)

    def query_entitlement(self, account: str) -> int:
        return self.evaluate(account).remaining

    def authorize_withdrawal(
        self,
        account: str,
        amount: int,
        *,
        before_commit: Optional[Callable[[], None]] = None,
    ) -> WithdrawalAuthorization:
        """Check ``amount`` against the remaining entitlement and record it.

        The read-modify-write runs under the store's account lock.
        ``before_commit`` is invoked after the entitlement check but before
        the counter is saved; if it raises, nothing is recorded.
        """

        require_amount(amount, "amount")
        parameters = self.parameters.require_initialized()

        with self.store.lock(account) as session:
            state = session.load(account)
            evaluation = self._evaluate(state, parameters)
            if amount > evaluation.remaining:
                raise ExceedsEntitlement(requested=amount, allowed=evaluation.remaining)

            updated = self.rule.consume(state, amount, evaluation)
            if before_commit is not None:
                before_commit()
            session.save(updated)

        return WithdrawalAuthorization(
            account=account,
            amount=amount,
            allowed_before=evaluation.remaining,
            remaining_after=evaluation.remaining - amount,
            total_withdrawn_amount=updated.total_withdrawn_amount,
            parameters_version=parameters.version,
        )

    def _evaluate(
        self,
        state: AccountQuotaState,
        parameters: ReleaseParameters,
    ) -> EntitlementEvaluation:
        assets_supplied = require_amount(self.balances.value_of(state.account), "balance")
        return self.rule.evaluate(state, assets_supplied, parameters)
