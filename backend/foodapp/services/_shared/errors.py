"""
Failures raised below the HTTP layer.

Nothing here knows about Flask or status codes; :mod:`foodapp.core.errors`
decides how each class is presented to clients. Batch onboarding reports the
same failures per item through :class:`ErrorKind` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Tell whether ``exc`` was raised by the constraint ``constraint_name``.

    PostgreSQL quotes the constraint name in its message. SQLite only names
    the column (``UNIQUE constraint failed: users.email``), so the suffix of a
    ``uq_<table>_<column>`` name is matched as a fallback.
    """
    message = str(exc.orig).lower() if exc.orig is not None else ""
    name = constraint_name.lower()
    if name in message:
        return True
    return "unique" in message and f".{name.rsplit('_', 1)[-1]}" in message


class ServiceError(Exception):
    """Root of every failure a service, store or security component raises."""


class ErrorKind(StrEnum):
    """Why a single batch item did not produce a user."""

    HASHING_FAILURE = "hashing_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """No ``entity`` row for ``key``."""

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """A uniqueness rule on ``entity`` would be broken; ``detail`` says which."""

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class PersistenceFailure(ServiceError):
    """A user store could not save a record."""


class InvalidBatch(ServiceError):
    """The batch payload is not a sequence of registration requests."""


class AuthenticationError(ServiceError):
    """Login refused. Deliberately silent about whether the email exists."""


class CredentialError(ServiceError):
    pass


class HashingFailure(CredentialError):
    """The secret could not be turned into a credential (empty, too long)."""


class InvalidCredentialFormat(CredentialError):
    """A stored credential is not ``method$salt$hash``."""


class CredentialMismatch(CredentialError):
    """Wrong password for the stored credential."""


class TokenError(ServiceError):
    pass


class MissingToken(TokenError):
    """No bearer token on the request."""


class MalformedToken(TokenError):
    """The bearer token is not a decodable JWT with an integer subject."""


class ExpiredToken(TokenError):
    """The token's ``exp`` is in the past (beyond the configured leeway)."""


class InvalidSignature(TokenError):
    """The token was not signed with our key."""
