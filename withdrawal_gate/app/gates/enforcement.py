"""Helpers for enforcing credential, capability and caller checks."""
from __future__ import annotations

from typing import Protocol

from .access import Capability, CapabilityProvider, ProxyRegistry
from .exceptions import CredentialRejected, MissingCapability, UnrecognizedCaller


class CredentialGate(Protocol):
    """External oracle answering whether an account holds a valid credential."""

    def verify(self, account: str, policy_id: str) -> bool:
        ...


def require_credential(gate: CredentialGate, account: str, policy_id: str) -> None:
    """Ensure ``account`` holds a valid credential under ``policy_id``.

    Parameters
    ----------
    gate:
        The credential oracle to consult.
    account:
        The account being withdrawn *for*. This is not necessarily the
        caller that submitted the request.
    policy_id:
        Identifier of the credential policy configured for withdrawals.

    A gate that raises is treated the same as a gate that answers ``False``:
    the request is rejected with :class:`CredentialRejected` and the original
    error is chained.
    """

    try:
        verified = gate.verify(account, policy_id)
    except Exception as exc:
        raise CredentialRejected(account, policy_id, reason=str(exc) or type(exc).__name__) from exc

    if not verified:
        raise CredentialRejected(account, policy_id)


def require_capability(provider: CapabilityProvider, actor: str, capability: Capability) -> None:
    """Raise unless ``actor`` holds ``capability``."""

    if not provider.has_capability(actor, capability):
        raise MissingCapability(actor, capability.value)


def require_recognized_caller(registry: ProxyRegistry, caller: str) -> None:
    """Raise unless ``caller`` is a vault proxy known to the registry."""

    if not registry.is_recognized(caller):
        raise UnrecognizedCaller(caller)
