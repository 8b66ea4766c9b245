"""Shared plumbing for application services."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from foodapp.repositories.base import Pagination
from foodapp.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


class BaseService:
    """
    Services orchestrate; they never reach for ``db.session`` directly.

    Every use-case opens a unit of work through :meth:`writing` or
    :meth:`reading`. A service constructed with an explicit ``session`` (a
    batch worker's own session, for instance) runs its units on that session
    instead of the request-scoped one.
    """

    session: Session | None = None

    def writing(self) -> SQLAlchemyUnitOfWork:
        """Unit of work that commits on a clean exit."""
        return SQLAlchemyUnitOfWork(self.session)

    def reading(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Unit of work that refuses to flush pending changes."""
        return SQLAlchemyReadOnlyUnitOfWork(self.session)

    @staticmethod
    def page_request(page: int, limit: int, sort: Iterable[str] | None = None) -> Pagination:
        """
        Normalise raw paging input.

        :param page: 1-based page number; values below 1 become 1.
        :param limit: Page size; values below 1 become 1.
        :param sort: Public sort tokens such as ``-created_at``.
        :rtype: Pagination
        """
        return Pagination(page=max(1, int(page)), limit=max(1, int(limit)), sort=list(sort or []))
