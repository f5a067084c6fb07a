"""Entitlement rules converting the release ratio into per-account quota."""
from __future__ import annotations

from typing import Protocol

from ..gates.exceptions import AmountOverflow
from ..release.models import MAX_AMOUNT, ReleaseParameters
from .models import AccountQuotaState, EntitlementEvaluation


class EntitlementRule(Protocol):
    """Strategy deciding how much an account may still withdraw."""

    name: str

    def evaluate(
        self,
        state: AccountQuotaState,
        assets_supplied: int,
        parameters: ReleaseParameters,
    ) -> EntitlementEvaluation:
        ...

    def consume(
        self,
        state: AccountQuotaState,
        amount: int,
        evaluation: EntitlementEvaluation,
    ) -> AccountQuotaState:
        ...


def _pro_rata(parameters: ReleaseParameters, position: int) -> int:
    # Multiply before dividing; reordering changes the floor.
    return parameters.assets_available_for_withdrawal * position // parameters.total_supplied_assets


def _checked_add(state: AccountQuotaState, amount: int) -> int:
    total = state.total_withdrawn_amount + amount
    if total > MAX_AMOUNT:
        raise AmountOverflow(state.account, state.total_withdrawn_amount, amount)
    return total


class CumulativeEntitlementRule:
    """Entitlement from the account's original position and lifetime counter.

    The oracle balance has already shrunk by every earlier withdrawal, so the
    withdrawn total is added back before the ratio is applied.
    """

    name = "cumulative"

    def evaluate(
        self,
        state: AccountQuotaState,
        assets_supplied: int,
        parameters: ReleaseParameters,
    ) -> EntitlementEvaluation:
        withdrawn = state.total_withdrawn_amount
        original_position = withdrawn + assets_supplied
        max_withdrawable = _pro_rata(parameters, original_position)
        return EntitlementEvaluation(
            account=state.account,
            rule=self.name,
            assets_supplied=assets_supplied,
            original_position=original_position,
            max_withdrawable=max_withdrawable,
            withdrawn=withdrawn,
            remaining=max(max_withdrawable - withdrawn, 0),
            parameters_version=parameters.version,
        )

    def consume(
        self,
        state: AccountQuotaState,
        amount: int,
        evaluation: EntitlementEvaluation,
    ) -> AccountQuotaState:
        return state.model_copy(update={"total_withdrawn_amount": _checked_add(state, amount)})


class SegmentedEntitlementRule:
    """Entitlement fixed once per parameter version, on first touch.

    Each administrator update starts a new period. The first evaluation in a
    period applies the ratio to the live balance and the result is cached on
    the account; later withdrawals in the same period draw it down.
    """

    name = "segmented"

    def evaluate(
        self,
        state: AccountQuotaState,
        assets_supplied: int,
        parameters: ReleaseParameters,
    ) -> EntitlementEvaluation:
        if state.period == parameters.version and state.period_allowance is not None:
            allowance = state.period_allowance
            period_withdrawn = state.period_withdrawn
        else:
            allowance = _pro_rata(parameters, assets_supplied)
            period_withdrawn = 0
        return EntitlementEvaluation(
            account=state.account,
            rule=self.name,
            assets_supplied=assets_supplied,
            original_position=assets_supplied,
            max_withdrawable=allowance,
            withdrawn=period_withdrawn,
            remaining=max(allowance - period_withdrawn, 0),
            parameters_version=parameters.version,
        )

    def consume(
        self,
        state: AccountQuotaState,
        amount: int,
        evaluation: EntitlementEvaluation,
    ) -> AccountQuotaState:
        return state.model_copy(
            update={
                "total_withdrawn_amount": _checked_add(state, amount),
                "period": evaluation.parameters_version,
                "period_allowance": evaluation.max_withdrawable,
                "period_withdrawn": evaluation.withdrawn + amount,
            }
        )


ENTITLEMENT_RULES = {
    CumulativeEntitlementRule.name: CumulativeEntitlementRule,
    SegmentedEntitlementRule.name: SegmentedEntitlementRule,
}


def get_entitlement_rule(name: str) -> EntitlementRule:
    """Return a rule instance by name, raising if unsupported."""

    try:
        return ENTITLEMENT_RULES[name]()
    except KeyError as exc:
        raise ValueError(f"Unknown entitlement rule: {name}") from exc
