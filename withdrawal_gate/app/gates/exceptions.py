"""Exceptions surfaced when a withdrawal, transfer or admin update is refused."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass
class WithdrawalGateError(Exception):
    """Represents an actionable gating failure surfaced to callers."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class QuotaError(WithdrawalGateError):
    """Base class for failures caused by release parameters or quota limits."""


class AuthorizationError(WithdrawalGateError):
    """Base class for failures caused by who is asking rather than how much."""


class InvalidParameters(QuotaError):
    def __init__(self, assets_available_for_withdrawal: int, total_supplied_assets: int) -> None:
        super().__init__(
            code="invalid_parameters",
            message="Release parameters must both be greater than zero.",
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "assets_available_for_withdrawal": assets_available_for_withdrawal,
                "total_supplied_assets": total_supplied_assets,
            },
        )


class NotInitialized(QuotaError):
    def __init__(self) -> None:
        super().__init__(
            code="not_initialized",
            message="Release parameters have not been set.",
            status_code=status.HTTP_409_CONFLICT,
        )


class ExceedsEntitlement(QuotaError):
    """Raised when a request asks for more than the account may still withdraw."""

    def __init__(self, requested: int, allowed: int) -> None:
        self.requested = requested
        self.allowed = allowed
        super().__init__(
            code="exceeds_entitlement",
            message=f"Requested {requested} exceeds remaining entitlement of {allowed}.",
            status_code=status.HTTP_409_CONFLICT,
            detail={"requested": requested, "allowed": allowed},
        )


class AmountOverflow(QuotaError):
    def __init__(self, account: str, current: int, amount: int) -> None:
        super().__init__(
            code="amount_overflow",
            message="Cumulative withdrawn amount would overflow.",
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"account": account, "current": current, "amount": amount},
        )


class CredentialRejected(AuthorizationError):
    def __init__(self, account: str, policy_id: str, reason: Optional[str] = None) -> None:
        detail: Dict[str, Any] = {"account": account, "policy_id": policy_id}
        if reason:
            detail["reason"] = reason
        super().__init__(
            code="credential_rejected",
            message=f"Account '{account}' does not hold a valid credential.",
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class MissingCapability(AuthorizationError):
    def __init__(self, actor: str, capability: str) -> None:
        super().__init__(
            code="missing_capability",
            message=f"Capability '{capability}' is required.",
            detail={"actor": actor, "missing_capability": capability},
        )


class UnrecognizedCaller(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(
            code="unrecognized_caller",
            message="Caller is not a recognized vault proxy.",
            detail={"caller": caller},
        )


class TransfersDisabled(WithdrawalGateError):
    def __init__(self, entry_point: str) -> None:
        super().__init__(
            code="transfers_disabled",
            message="Transfers are disabled for quota-controlled positions.",
            detail={"entry_point": entry_point},
        )
