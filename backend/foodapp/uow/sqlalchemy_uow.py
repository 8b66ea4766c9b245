"""Units of work over a SQLAlchemy session."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, scoped_session

from foodapp.core.extensions import db
from foodapp.repositories import UserRepository
from foodapp.uow.base import UnitOfWork


class _SessionScope(UnitOfWork):
    """Binds the repositories to ``session`` (``db.session`` when ``None``)."""

    def __init__(self, session: Session | None = None) -> None:
        self.session = session if session is not None else db.session
        self.users = UserRepository(session=self.session)

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_SessionScope):
    """
    Read-write scope: commit on a clean exit, roll back on an exception.

    A failing commit is rolled back too before the error propagates, so the
    session is reusable afterwards (batch workers rely on this).
    """

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_SessionScope):
    """
    Read-only scope: a flush carrying pending changes raises ``RuntimeError``.

    Nothing is committed or rolled back on exit; the surrounding transaction
    is left as found.
    """

    _target: Session | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # A scoped_session proxy is not an event target; hook the thread's Session
        session = self.session
        self._target = session() if isinstance(session, scoped_session) else session
        event.listen(self._target, "before_flush", self._refuse_writes)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._target is not None and event.contains(self._target, "before_flush", self._refuse_writes):
            event.remove(self._target, "before_flush", self._refuse_writes)
        self._target = None

    def commit(self) -> None:
        """:raises RuntimeError: Always."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    @staticmethod
    def _refuse_writes(session: Session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork: ORM flush blocked, pending changes present.")
