"""Release parameter models and the controller that owns them."""

from .controller import (
    ReleaseEventPublisher,
    ReleaseParametersController,
    ReleaseParametersRepository,
)
from .models import MAX_AMOUNT, ReleaseParameters, ReleaseParametersUpdated, require_amount

__all__ = [
    "MAX_AMOUNT",
    "ReleaseEventPublisher",
    "ReleaseParameters",
    "ReleaseParametersController",
    "ReleaseParametersRepository",
    "ReleaseParametersUpdated",
    "require_amount",
]
