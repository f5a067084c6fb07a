"""Controller owning the current release parameters."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Optional, Protocol

from ..gates.access import Capability, CapabilityProvider
from ..gates.enforcement import require_capability
from ..gates.exceptions import InvalidParameters, NotInitialized
from .models import ReleaseParameters, ReleaseParametersUpdated, require_amount


class ReleaseEventPublisher(Protocol):
    """Receives a notification after each successful parameter update."""

    def publish(self, event: ReleaseParametersUpdated) -> None:
        ...


class ReleaseParametersRepository(Protocol):
    """Optional persistence for release parameters.

    The repository is the source of truth once configured: ``save`` assigns
    the next version itself and ``get_latest`` is consulted on every read.
    """

    def get_latest(self) -> Optional[ReleaseParameters]:
        ...

    def save(self, parameters: ReleaseParameters) -> ReleaseParameters:
        ...


def _current_time(clock: Optional[Callable[[], datetime]]) -> datetime:
    if clock is None:
        return datetime.now(timezone.utc)
    value = clock()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ReleaseParametersController:
    """Validates, versions and atomically replaces the release parameters.

    The current record is immutable and swapped by reference under a writer
    lock, so a reader holding the result of :meth:`current` always sees a
    complete pair. With a repository configured every read goes back to it,
    so an update made by another process applies on the next read.
    """

    capabilities: CapabilityProvider
    publisher: ReleaseEventPublisher
    repository: Optional[ReleaseParametersRepository] = None
    clock: Optional[Callable[[], datetime]] = None

    def __post_init__(self) -> None:
        self._lock = Lock()
        self._current = ReleaseParameters()

    def load(self) -> ReleaseParameters:
        """Restore the latest persisted parameters, if a repository is configured."""

        return self.current()

    def current(self) -> ReleaseParameters:
        if self.repository is None:
            return self._current
        latest = self.repository.get_latest()
        with self._lock:
            if latest is not None and latest.version >= self._current.version:
                self._current = latest
            return self._current

    def require_initialized(self) -> ReleaseParameters:
        parameters = self.current()
        if not parameters.is_initialized:
            raise NotInitialized()
        return parameters

    def set_release_parameters(
        self,
        assets_available_for_withdrawal: int,
        total_supplied_assets: int,
        *,
        actor: str,
    ) -> ReleaseParameters:
        require_capability(self.capabilities, actor, Capability.SET_RELEASE_PARAMETERS)
        require_amount(assets_available_for_withdrawal, "assets_available_for_withdrawal")
        require_amount(total_supplied_assets, "total_supplied_assets")
        if assets_available_for_withdrawal == 0 or total_supplied_assets == 0:
            raise InvalidParameters(assets_available_for_withdrawal, total_supplied_assets)

        with self._lock:
            updated = ReleaseParameters(
                assets_available_for_withdrawal=assets_available_for_withdrawal,
                total_supplied_assets=total_supplied_assets,
                version=self._current.version + 1,
                updated_by=actor,
                updated_at=_current_time(self.clock),
            )
            if self.repository is not None:
                # The repository assigns the stored version.
                updated = self.repository.save(updated)
            self._current = updated

        self.publisher.publish(ReleaseParametersUpdated.from_parameters(updated))
        return updated
