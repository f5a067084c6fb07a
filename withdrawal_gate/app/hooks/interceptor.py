"""Interceptor run by the vault before any withdraw or redeem moves assets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..gates.enforcement import CredentialGate, require_credential
from ..gates.exceptions import WithdrawalGateError
from ..quota.ledger import QuotaLedger
from ..quota.models import WithdrawalAuthorization
from ..release.models import require_amount
from .models import HookOperation, WithdrawalAuditEvent, WithdrawalAuditEventType


class WithdrawalAuditLogger(Protocol):
    """Captures structured audit events for intercepted requests."""

    def log(self, event: WithdrawalAuditEvent) -> None:
        ...


@dataclass
class WithdrawalInterceptor:
    """Authorizes exits against the quota ledger and the credential gate.

    By default the quota is committed first and the credential is verified
    second; a credential failure leaves the committed quota in place. With
    ``atomic_authorization`` the credential is verified inside the account
    lock and the quota is only recorded once every check has passed.
    """

    ledger: QuotaLedger
    credentials: CredentialGate
    audit_logger: WithdrawalAuditLogger
    policy_id: str
    atomic_authorization: bool = False

    def on_withdraw(self, amount: int, account: str) -> WithdrawalAuthorization:
        return self._authorize(HookOperation.WITHDRAW, account, amount)

    def on_redeem(self, shares: int, account: str) -> WithdrawalAuthorization:
        require_amount(shares, "shares")
        amount = require_amount(self.ledger.balances.convert_shares_to_assets(shares), "assets")
        return self._authorize(HookOperation.REDEEM, account, amount, shares=shares)

    def _verify_credential(self, account: str) -> None:
        require_credential(self.credentials, account, self.policy_id)

    def _authorize(
        self,
        operation: HookOperation,
        account: str,
        amount: int,
        *,
        shares: Optional[int] = None,
    ) -> WithdrawalAuthorization:
        committed = False
        try:
            if self.atomic_authorization:
                authorization = self.ledger.authorize_withdrawal(
                    account,
                    amount,
                    before_commit=lambda: self._verify_credential(account),
                )
                committed = True
            else:
                authorization = self.ledger.authorize_withdrawal(account, amount)
                committed = True
                self._verify_credential(account)
        except WithdrawalGateError as exc:
            self.audit_logger.log(
                WithdrawalAuditEvent(
                    event_type=WithdrawalAuditEventType.WITHDRAWAL_REJECTED,
                    operation=operation,
                    account=account,
                    amount=amount,
                    error_code=exc.code,
                    metadata={"quota_committed": str(committed).lower()},
                )
            )
            raise

        if shares is not None:
            authorization = authorization.model_copy(update={"shares": shares})

        self.audit_logger.log(
            WithdrawalAuditEvent(
                event_type=WithdrawalAuditEventType.WITHDRAWAL_AUTHORIZED,
                operation=operation,
                account=account,
                amount=amount,
                metadata={
                    "remaining_after": str(authorization.remaining_after),
                    "parameters_version": str(authorization.parameters_version),
                },
            )
        )
        return authorization
