"""Audit models emitted by the withdrawal hooks."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class HookOperation(str, Enum):
    """Entry points intercepted on the vault."""

    WITHDRAW = "withdraw"
    REDEEM = "redeem"
    TRANSFER = "transfer"
    TRANSFER_FROM = "transfer_from"
    TRANSFER_FROM_MAX = "transfer_from_max"


class WithdrawalAuditEventType(str, Enum):
    """Audit event categories emitted by the withdrawal hooks."""

    WITHDRAWAL_AUTHORIZED = "withdrawal_authorized"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
    TRANSFER_REJECTED = "transfer_rejected"


class WithdrawalAuditEvent(BaseModel):
    """Structured audit event for a single intercepted request."""

    event_type: WithdrawalAuditEventType
    operation: HookOperation
    account: Optional[str] = None
    amount: Optional[int] = None
    error_code: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True, frozen=True)
