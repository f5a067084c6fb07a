"""Domain models for administrator-controlled release parameters."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Settlement amounts are unsigned 256-bit integers.
MAX_AMOUNT = 2**256 - 1


def require_amount(value: int, name: str) -> int:
    """Return ``value`` if it is a valid unsigned amount, raising otherwise."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    if value > MAX_AMOUNT:
        raise ValueError(f"{name} exceeds the maximum supported amount")
    return value


class ReleaseParameters(BaseModel):
    """Pool-wide release ratio set by an administrator.

    The all-zero record with ``version == 0`` is the implicit starting state
    and means the parameters have never been initialized.
    """

    assets_available_for_withdrawal: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    total_supplied_assets: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    version: int = Field(default=0, ge=0)
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_initialized(self) -> bool:
        return self.assets_available_for_withdrawal > 0 and self.total_supplied_assets > 0


class ReleaseParametersUpdated(BaseModel):
    """Change notification emitted after every successful parameter update."""

    assets_available_for_withdrawal: int
    total_supplied_assets: int
    version: int
    actor_id: Optional[str] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_parameters(cls, parameters: ReleaseParameters) -> "ReleaseParametersUpdated":
        return cls(
            assets_available_for_withdrawal=parameters.assets_available_for_withdrawal,
            total_supplied_assets=parameters.total_supplied_assets,
            version=parameters.version,
            actor_id=parameters.updated_by,
            occurred_at=parameters.updated_at or datetime.now(timezone.utc),
        )
