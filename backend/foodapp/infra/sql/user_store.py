"""SQLAlchemy adapter for the :class:`~foodapp.services._shared.ports.UserStore` port."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import replace

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from foodapp.models.user import User
from foodapp.services._shared.errors import PersistenceFailure, violates
from foodapp.services._shared.ports.user_store import UserRecord, UserStore
from foodapp.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


class SQLAlchemyUserStore(UserStore):
    """
    Persist users with one short transaction per ``save`` call.

    Every call opens its own session from ``session_factory`` so concurrent
    callers never share ORM state.

    :param session_factory: Zero-argument callable returning a Session.
    :type session_factory: Callable[[], Session]
    :param serialize: Serialize ``save`` calls behind a lock. Needed for
        SQLite, whose connections cannot be written from several threads.
    :type serialize: bool
    """

    def __init__(self, session_factory: Callable[[], Session], *, serialize: bool = False) -> None:
        self._session_factory = session_factory
        self._lock = threading.Lock() if serialize else None

    @classmethod
    def from_engine(cls, engine: Engine) -> SQLAlchemyUserStore:
        """Build a store on ``engine``; SQLite engines are serialized."""
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        return cls(factory, serialize=engine.dialect.name == "sqlite")

    def save(self, record: UserRecord) -> UserRecord:
        """
        Insert ``record`` and return it with its assigned id.

        :raises PersistenceFailure: On constraint violations or database errors.
        """
        with self._lock if self._lock is not None else nullcontext():
            session = self._session_factory()
            try:
                with SQLAlchemyUnitOfWork(session) as uow:
                    user = User(
                        first_name=record.first_name,
                        last_name=record.last_name,
                        email=record.email,
                    )
                    user.credential = record.credential
                    uow.users.add(user)
                    saved = replace(
                        record,
                        id=user.id,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        email=user.email,
                    )
            except IntegrityError as exc:
                if violates(exc, "uq_users_email"):
                    raise PersistenceFailure(f"Email already in use: {record.email}") from exc
                raise PersistenceFailure("Integrity error while saving user") from exc
            except SQLAlchemyError as exc:
                log.error("user_store.save_failed", exc_info=exc)
                raise PersistenceFailure("Database error while saving user") from exc
            except ValueError as exc:
                # Model validators (email/name normalization)
                raise PersistenceFailure(str(exc)) from exc
            finally:
                session.close()
        return saved
