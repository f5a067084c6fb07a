"""Service exposing the full withdrawal gate surface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn

from ..quota.ledger import QuotaLedger
from ..quota.models import EntitlementEvaluation, WithdrawalAuthorization
from ..release.controller import ReleaseParametersController
from ..release.models import ReleaseParameters
from .dispatch import HookDispatcher


@dataclass
class WithdrawalGateService:
    """Coordinates release parameters, entitlement queries and vault hooks."""

    parameters: ReleaseParametersController
    ledger: QuotaLedger
    dispatcher: HookDispatcher

    def set_release_parameters(
        self,
        assets_available_for_withdrawal: int,
        total_supplied_assets: int,
        *,
        actor: str,
    ) -> ReleaseParameters:
        return self.parameters.set_release_parameters(
            assets_available_for_withdrawal,
            total_supplied_assets,
            actor=actor,
        )

    def current_parameters(self) -> ReleaseParameters:
        return self.parameters.current()

    def query_entitlement(self, account: str) -> int:
        return self.ledger.query_entitlement(account)

    def evaluate_entitlement(self, account: str) -> EntitlementEvaluation:
        return self.ledger.evaluate(account)

    def on_withdraw(self, caller: str, amount: int, account: str) -> WithdrawalAuthorization:
        return self.dispatcher.withdraw(caller, amount, account)

    def on_redeem(self, caller: str, shares: int, account: str) -> WithdrawalAuthorization:
        return self.dispatcher.redeem(caller, shares, account)

    def transfer(self, caller: str, recipient: str, amount: int) -> NoReturn:
        self.dispatcher.transfer(caller, recipient, amount)

    def transfer_from(self, caller: str, owner: str, recipient: str, amount: int) -> NoReturn:
        self.dispatcher.transfer_from(caller, owner, recipient, amount)

    def transfer_from_max(self, caller: str, owner: str, recipient: str) -> NoReturn:
        self.dispatcher.transfer_from_max(caller, owner, recipient)
