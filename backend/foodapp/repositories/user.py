"""Queries over the ``users`` table."""

from __future__ import annotations

from sqlalchemy import exists, select

from foodapp.models.user import User
from foodapp.repositories.base import BaseRepository


def _normalise(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Lookup and staging of :class:`User` rows.

    Passwords arrive here already hashed; ``credential`` is the only way to
    change one.
    """

    model = User
    sortable = frozenset({"id", "email", "last_name", "created_at"})
    updatable = frozenset({"first_name", "last_name", "email", "credential"})

    def get_by_email(self, email: str) -> User | None:
        """Case- and whitespace-insensitive lookup.

        :param email: Address as typed by the client.
        :rtype: User | None
        """
        return self.session.scalars(select(User).where(User.email == _normalise(email))).first()

    def exists_by_email(self, email: str) -> bool:
        return bool(self.session.scalar(select(exists().where(User.email == _normalise(email)))))
