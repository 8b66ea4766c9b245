"""Single and batch user registration."""

from __future__ import annotations

from .coordinator import BatchRegistrationCoordinator, chunk, partition
from .dto import RegistrationOutcome, RegistrationRequest, RegistrationResult

__all__ = [
    "BatchRegistrationCoordinator",
    "RegistrationOutcome",
    "RegistrationRequest",
    "RegistrationResult",
    "chunk",
    "partition",
]
