"""Capability and caller registries consulted before state-changing calls."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Protocol, Set


class Capability(str, Enum):
    """Privileged operations exposed by the withdrawal gate."""

    SET_RELEASE_PARAMETERS = "release_parameters.set"


class CapabilityProvider(Protocol):
    """Answers whether an actor currently holds a capability."""

    def has_capability(self, actor: str, capability: Capability) -> bool:
        ...


class ProxyRegistry(Protocol):
    """Answers whether a caller is a legitimate vault proxy."""

    def is_recognized(self, caller: str) -> bool:
        ...


class StaticCapabilityProvider:
    """Capability provider backed by a fixed actor-to-capability mapping."""

    def __init__(self, grants: Optional[Mapping[str, Iterable[Capability]]] = None) -> None:
        self._grants: Dict[str, Set[Capability]] = {
            actor: set(capabilities) for actor, capabilities in (grants or {}).items()
        }

    @classmethod
    def administrators(cls, actors: Iterable[str]) -> "StaticCapabilityProvider":
        """Grant every admin capability to each of ``actors``."""

        return cls({actor: set(Capability) for actor in actors})

    def grant(self, actor: str, capability: Capability) -> None:
        self._grants.setdefault(actor, set()).add(capability)

    def has_capability(self, actor: str, capability: Capability) -> bool:
        return capability in self._grants.get(actor, set())


class StaticProxyRegistry:
    """Proxy registry backed by a fixed set of caller identifiers."""

    def __init__(self, callers: Iterable[str] = ()) -> None:
        self._callers = {caller for caller in callers if caller}

    def register(self, caller: str) -> None:
        self._callers.add(caller)

    def is_recognized(self, caller: str) -> bool:
        return caller in self._callers
