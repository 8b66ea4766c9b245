"""Transaction boundary shared by services and the batch workers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from foodapp.repositories import UserRepository


class UnitOfWork(ABC):
    """
    One use-case, one transaction.

    Repositories exposed on the unit (``users``) share its session, so
    everything staged inside the ``with`` block lands or vanishes together.
    Implementations decide what a clean exit means: writers commit,
    readers only release.
    """

    users: UserRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
