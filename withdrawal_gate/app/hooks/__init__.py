"""Vault hook entry points: withdraw/redeem interception and transfer lock."""

from .dispatch import HookDispatcher
from .interceptor import WithdrawalAuditLogger, WithdrawalInterceptor
from .models import HookOperation, WithdrawalAuditEvent, WithdrawalAuditEventType
from .service import WithdrawalGateService
from .transfers import TransferLock

__all__ = [
    "HookDispatcher",
    "HookOperation",
    "TransferLock",
    "WithdrawalAuditEvent",
    "WithdrawalAuditEventType",
    "WithdrawalAuditLogger",
    "WithdrawalGateService",
    "WithdrawalInterceptor",
]
