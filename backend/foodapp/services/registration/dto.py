"""
DTOs for user registration (single and batch).

Contracts exchanged between callers and
:class:`~foodapp.services.registration.coordinator.BatchRegistrationCoordinator`.
"""

from __future__ import annotations

from dataclasses import dataclass

from foodapp.services._shared.errors import ErrorKind
from foodapp.services._shared.ports.user_store import UserRecord

# --------------------------------------------------------------------------- #
# Input
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationRequest:
    """
    One user to onboard.

    :param first_name: Given name.
    :type first_name: str
    :param last_name: Family name.
    :type last_name: str
    :param email: Login email.
    :type email: str
    :param password: Plaintext secret; hashed before anything is stored.
    :type password: str
    """

    first_name: str
    last_name: str
    email: str
    password: str

    def __repr__(self) -> str:
        return (
            f"RegistrationRequest(first_name={self.first_name!r}, "
            f"last_name={self.last_name!r}, email={self.email!r}, password=<redacted>)"
        )


# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    """
    Public view of a registered user.

    :param id: Identifier assigned by the store.
    :type id: int
    :param full_name: ``first_name + " " + last_name``.
    :type full_name: str
    :param email: Stored (normalized) email.
    :type email: str
    """

    id: int
    full_name: str
    email: str

    @classmethod
    def from_record(cls, record: UserRecord) -> RegistrationResult:
        if record.id is None:
            raise ValueError("Cannot build a result from an unsaved record.")
        return cls(id=record.id, full_name=record.full_name, email=record.email)


@dataclass(frozen=True, slots=True)
class RegistrationOutcome:
    """
    Per-item result of a batch: either ``result`` or ``error`` is set.

    :param index: Position of the request in the submitted batch.
    :type index: int
    :param email: Email of the submitted request, for identification.
    :type email: str
    :param result: Registered user on success.
    :type result: RegistrationResult | None
    :param error: Failure kind on failure.
    :type error: ErrorKind | None
    :param detail: Human-readable failure reason (never contains secrets).
    :type detail: str | None
    """

    index: int
    email: str
    result: RegistrationResult | None = None
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, index: int, result: RegistrationResult) -> RegistrationOutcome:
        return cls(index=index, email=result.email, result=result)

    @classmethod
    def failure(
        cls, index: int, email: str, kind: ErrorKind, detail: str | None = None
    ) -> RegistrationOutcome:
        return cls(index=index, email=email, error=kind, detail=detail)
