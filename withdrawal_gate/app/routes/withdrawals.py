"""API routes exposing the withdrawal gate."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Header, HTTPException, status

from ..gates.exceptions import WithdrawalGateError
from ..schemas.withdrawals import (
    EntitlementResponse,
    RedeemRequest,
    ReleaseParametersRequest,
    ReleaseParametersResponse,
    TransferFromMaxRequest,
    TransferFromRequest,
    TransferRequest,
    WithdrawalAuthorizationResponse,
    WithdrawRequest,
)
from ..services.withdrawals import get_withdrawal_gate

router = APIRouter(prefix="/api/withdrawal-gate", tags=["withdrawal-gate"])


@contextmanager
def _gate_errors() -> Iterator[None]:
    try:
        yield
    except WithdrawalGateError as exc:
        raise exc.to_http_exception() from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/release-parameters", response_model=ReleaseParametersResponse)
def get_release_parameters() -> ReleaseParametersResponse:
    service = get_withdrawal_gate()
    return ReleaseParametersResponse.from_parameters(service.current_parameters())


@router.put("/release-parameters", response_model=ReleaseParametersResponse)
def set_release_parameters(
    payload: ReleaseParametersRequest,
    *,
    actor_id: str = Header(..., alias="X-Actor-Id"),
) -> ReleaseParametersResponse:
    service = get_withdrawal_gate()
    with _gate_errors():
        parameters = service.set_release_parameters(
            payload.assets_available_for_withdrawal,
            payload.total_supplied_assets,
            actor=actor_id,
        )
    return ReleaseParametersResponse.from_parameters(parameters)


@router.get("/entitlements/{account}", response_model=EntitlementResponse)
def get_entitlement(account: str) -> EntitlementResponse:
    service = get_withdrawal_gate()
    with _gate_errors():
        evaluation = service.evaluate_entitlement(account)
    return EntitlementResponse.from_evaluation(evaluation)


@router.post("/hooks/withdraw", response_model=WithdrawalAuthorizationResponse)
def on_withdraw(
    payload: WithdrawRequest,
    *,
    caller_id: str = Header(..., alias="X-Caller-Id"),
) -> WithdrawalAuthorizationResponse:
    service = get_withdrawal_gate()
    with _gate_errors():
        authorization = service.on_withdraw(caller_id, payload.amount, payload.account)
    return WithdrawalAuthorizationResponse.from_authorization(authorization)


@router.post("/hooks/redeem", response_model=WithdrawalAuthorizationResponse)
def on_redeem(
    payload: RedeemRequest,
    *,
    caller_id: str = Header(..., alias="X-Caller-Id"),
) -> WithdrawalAuthorizationResponse:
    service = get_withdrawal_gate()
    with _gate_errors():
        authorization = service.on_redeem(caller_id, payload.shares, payload.account)
    return WithdrawalAuthorizationResponse.from_authorization(authorization)


@router.post("/hooks/transfer", status_code=status.HTTP_204_NO_CONTENT)
def transfer(
    payload: TransferRequest,
    *,
    caller_id: str = Header("", alias="X-Caller-Id"),
) -> None:
    service = get_withdrawal_gate()
    with _gate_errors():
        service.transfer(caller_id, payload.recipient, payload.amount)


@router.post("/hooks/transfer-from", status_code=status.HTTP_204_NO_CONTENT)
def transfer_from(
    payload: TransferFromRequest,
    *,
    caller_id: str = Header("", alias="X-Caller-Id"),
) -> None:
    service = get_withdrawal_gate()
    with _gate_errors():
        service.transfer_from(caller_id, payload.owner, payload.recipient, payload.amount)


@router.post("/hooks/transfer-from-max", status_code=status.HTTP_204_NO_CONTENT)
def transfer_from_max(
    payload: TransferFromMaxRequest,
    *,
    caller_id: str = Header("", alias="X-Caller-Id"),
) -> None:
    service = get_withdrawal_gate()
    with _gate_errors():
        service.transfer_from_max(caller_id, payload.owner, payload.recipient)
