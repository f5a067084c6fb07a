"""Gating utilities: error taxonomy, credential and capability enforcement."""
from .access import (
    Capability,
    CapabilityProvider,
    ProxyRegistry,
    StaticCapabilityProvider,
    StaticProxyRegistry,
)
from .enforcement import (
    CredentialGate,
    require_capability,
    require_credential,
    require_recognized_caller,
)
from .exceptions import (
    AmountOverflow,
    AuthorizationError,
    CredentialRejected,
    ExceedsEntitlement,
    InvalidParameters,
    MissingCapability,
    NotInitialized,
    QuotaError,
    TransfersDisabled,
    UnrecognizedCaller,
    WithdrawalGateError,
)

__all__ = [
    "AmountOverflow",
    "AuthorizationError",
    "Capability",
    "CapabilityProvider",
    "CredentialGate",
    "CredentialRejected",
    "ExceedsEntitlement",
    "InvalidParameters",
    "MissingCapability",
    "NotInitialized",
    "ProxyRegistry",
    "QuotaError",
    "StaticCapabilityProvider",
    "StaticProxyRegistry",
    "TransfersDisabled",
    "UnrecognizedCaller",
    "WithdrawalGateError",
    "require_capability",
    "require_credential",
    "require_recognized_caller",
]
