"""Transfer entry points for quota-controlled positions.

Positions are not transferable: moving a claim to a fresh account would
escape that account's withdrawal counter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn, Optional

from ..gates.exceptions import TransfersDisabled
from .interceptor import WithdrawalAuditLogger
from .models import HookOperation, WithdrawalAuditEvent, WithdrawalAuditEventType


@dataclass
class TransferLock:
    audit_logger: Optional[WithdrawalAuditLogger] = None

    def transfer(self, recipient: str, amount: int, *, caller: Optional[str] = None) -> NoReturn:
        self._reject(HookOperation.TRANSFER, caller)

    def transfer_from(
        self,
        owner: str,
        recipient: str,
        amount: int,
        *,
        caller: Optional[str] = None,
    ) -> NoReturn:
        self._reject(HookOperation.TRANSFER_FROM, caller)

    def transfer_from_max(
        self,
        owner: str,
        recipient: str,
        *,
        caller: Optional[str] = None,
    ) -> NoReturn:
        self._reject(HookOperation.TRANSFER_FROM_MAX, caller)

    def _reject(self, operation: HookOperation, caller: Optional[object]) -> NoReturn:
        error = TransfersDisabled(operation.value)
        if self.audit_logger is not None:
            try:
                self.audit_logger.log(
                    WithdrawalAuditEvent(
                        event_type=WithdrawalAuditEventType.TRANSFER_REJECTED,
                        operation=operation,
                        error_code=error.code,
                        metadata={"caller": str(caller)} if caller else {},
                    )
                )
            except Exception as exc:
                raise error from exc
        raise error
