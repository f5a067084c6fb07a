"""API schemas for withdrawal gate endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..quota.models import EntitlementEvaluation, WithdrawalAuthorization
from ..release.models import MAX_AMOUNT, ReleaseParameters


class ReleaseParametersRequest(BaseModel):
    assets_available_for_withdrawal: int = Field(
        alias="assetsAvailableForWithdrawal", ge=0, le=MAX_AMOUNT
    )
    total_supplied_assets: int = Field(alias="totalSuppliedAssets", ge=0, le=MAX_AMOUNT)

    model_config = ConfigDict(populate_by_name=True)


class ReleaseParametersResponse(BaseModel):
    assets_available_for_withdrawal: int = Field(alias="assetsAvailableForWithdrawal")
    total_supplied_assets: int = Field(alias="totalSuppliedAssets")
    version: int
    initialized: bool
    updated_by: Optional[str] = Field(alias="updatedBy", default=None)
    updated_at: Optional[datetime] = Field(alias="updatedAt", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_parameters(cls, parameters: ReleaseParameters) -> "ReleaseParametersResponse":
        return cls(
            assets_available_for_withdrawal=parameters.assets_available_for_withdrawal,
            total_supplied_assets=parameters.total_supplied_assets,
            version=parameters.version,
            initialized=parameters.is_initialized,
            updated_by=parameters.updated_by,
            updated_at=parameters.updated_at,
        )


class EntitlementResponse(BaseModel):
    account: str
    entitlement: int
    rule: str
    assets_supplied: int = Field(alias="assetsSupplied")
    original_position: int = Field(alias="originalPosition")
    max_withdrawable: int = Field(alias="maxWithdrawable")
    withdrawn: int
    parameters_version: int = Field(alias="parametersVersion")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_evaluation(cls, evaluation: EntitlementEvaluation) -> "EntitlementResponse":
        return cls(
            account=evaluation.account,
            entitlement=evaluation.remaining,
            rule=evaluation.rule,
            assets_supplied=evaluation.assets_supplied,
            original_position=evaluation.original_position,
            max_withdrawable=evaluation.max_withdrawable,
            withdrawn=evaluation.withdrawn,
            parameters_version=evaluation.parameters_version,
        )


class WithdrawRequest(BaseModel):
    account: str = Field(min_length=1)
    amount: int = Field(ge=0, le=MAX_AMOUNT)

    model_config = ConfigDict(populate_by_name=True)


class RedeemRequest(BaseModel):
    account: str = Field(min_length=1)
    shares: int = Field(ge=0, le=MAX_AMOUNT)

    model_config = ConfigDict(populate_by_name=True)


class WithdrawalAuthorizationResponse(BaseModel):
    account: str
    amount: int
    shares: Optional[int] = None
    allowed_before: int = Field(alias="allowedBefore")
    remaining_after: int = Field(alias="remainingAfter")
    total_withdrawn_amount: int = Field(alias="totalWithdrawnAmount")
    parameters_version: int = Field(alias="parametersVersion")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_authorization(
        cls, authorization: WithdrawalAuthorization
    ) -> "WithdrawalAuthorizationResponse":
        return cls(**authorization.model_dump())


class TransferRequest(BaseModel):
    recipient: str
    amount: int = Field(ge=0)


class TransferFromRequest(BaseModel):
    owner: str
    recipient: str
    amount: int = Field(ge=0)


class TransferFromMaxRequest(BaseModel):
    owner: str
    recipient: str
