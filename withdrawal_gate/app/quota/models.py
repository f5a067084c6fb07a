"""Per-account quota state and entitlement evaluation results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..release.models import MAX_AMOUNT


class AccountQuotaState(BaseModel):
    """Withdrawal bookkeeping for a single account.

    ``total_withdrawn_amount`` only ever grows. The ``period_*`` fields are
    used by the segmented rule; ``period_allowance is None`` means no
    allowance has been computed yet, which is distinct from an allowance
    of zero.
    """

    account: str
    total_withdrawn_amount: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    period: Optional[int] = None
    period_allowance: Optional[int] = Field(default=None, ge=0)
    period_withdrawn: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class EntitlementEvaluation:
    """Breakdown of how an account's remaining entitlement was derived."""

    account: str
    rule: str
    assets_supplied: int
    original_position: int
    max_withdrawable: int
    withdrawn: int
    remaining: int
    parameters_version: int

    def to_dict(self) -> dict[str, int | str]:
        """Serialize the evaluation for logging or API responses."""

        return {
            "account": self.account,
            "rule": self.rule,
            "assets_supplied": self.assets_supplied,
            "original_position": self.original_position,
            "max_withdrawable": self.max_withdrawable,
            "withdrawn": self.withdrawn,
            "remaining": self.remaining,
            "parameters_version": self.parameters_version,
        }


class WithdrawalAuthorization(BaseModel):
    """Outcome of a committed quota authorization."""

    account: str
    amount: int
    shares: Optional[int] = None
    allowed_before: int
    remaining_after: int
    total_withdrawn_amount: int
    parameters_version: int

    model_config = ConfigDict(frozen=True)
