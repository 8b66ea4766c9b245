from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from foodapp.security.credentials import Credential


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    User as handed to and returned from a :class:`UserStore`.

    :param id: Assigned by the store on creation; ``None`` before.
    :param credential: Hashed secret, never the plaintext.
    """

    first_name: str
    last_name: str
    email: str
    credential: Credential
    id: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class UserStore(Protocol):
    """Port for persisting new users. Implementations must be thread-safe."""

    def save(self, record: UserRecord) -> UserRecord:
        """Persist ``record`` and return it with its assigned id.

        :raises PersistenceFailure: When the record cannot be stored.
        """
        ...
