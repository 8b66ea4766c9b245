"""Factory Boy base wired to the transactional session of the test run."""

from __future__ import annotations

from factory.alchemy import SQLAlchemyModelFactory


class SQLAlchemySession:
    """Hold the session installed by the ``_factories_session`` fixture."""

    _session = None

    @classmethod
    def set(cls, session):
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered session.

        :raises RuntimeError: If a factory runs outside the ``session`` fixture.
        """
        if cls._session is None:
            raise RuntimeError("Factories session not set. Did you pass the 'session' fixture?")
        return cls._session


class BaseFactory(SQLAlchemyModelFactory):
    """Flush (never commit) into the per-test SAVEPOINT session."""

    class Meta:
        abstract = True
        # Callable so each test resolves its own session lazily
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
