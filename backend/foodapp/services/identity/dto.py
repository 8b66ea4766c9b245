"""Plain value types crossing the IdentityService boundary.

Handlers never receive ORM instances; passwords never appear in ``repr``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class UserAuthIn:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Partial update; ``None`` means "leave as is".

    The stored credential is re-hashed only when ``password`` is given.
    """

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = field(default=None, repr=False)

    def changes(self) -> dict[str, str]:
        """Profile fields that were actually supplied (``password`` excluded)."""
        return {
            name: value
            for name in ("first_name", "last_name", "email")
            if (value := getattr(self, name)) is not None
        }


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """What clients may see of a user; never the credential."""

    id: int
    full_name: str
    email: str


@dataclass(frozen=True, slots=True)
class UserListOut:
    items: list[UserPublicOut]
    total: int
    page: int
    limit: int
