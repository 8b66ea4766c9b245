"""Shared fixtures: one app per run, one rolled-back transaction per test.

All tests share a single in-memory SQLite connection. The ``session`` fixture
opens an outer transaction on it plus a SAVEPOINT; code under test may commit
freely (that only releases the SAVEPOINT, which is reopened) and everything is
discarded when the outer transaction rolls back.
"""

from __future__ import annotations

import os

import pytest
from foodapp.core.config import TestingConfig
from foodapp.core.extensions import db as _db
from foodapp.factory import create_app
from foodapp.infra.sql.user_store import SQLAlchemyUserStore
from foodapp.security.credentials import CredentialVault
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class TestConfig(TestingConfig):
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-bytes"
    PASSWORD_HASH_METHOD = TEST_HASH_METHOD
    # Three workers so partitioning is exercised on small batches
    BATCH_WORKERS = 3
    BATCH_CHUNK_SIZE = None
    BATCH_TIMEOUT_SECONDS = None
    BATCH_MAX_ITEMS = 10
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Schema created once, dropped at the end of the run."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    with db.engine.connect() as conn:
        yield conn


@pytest.fixture()
def session(db, connection):
    """
    Scoped session joined to the outer transaction of ``connection``.

    It replaces ``db.session`` for the duration of the test, so request
    handlers, services and factories all see the same data. Worker threads
    asking the same ``scoped_session`` get their own Session on the same
    connection.
    """
    outer = connection.begin()
    savepoint = connection.begin_nested()
    scoped = scoped_session(sessionmaker(bind=connection, expire_on_commit=False))

    @event.listens_for(scoped(), "after_transaction_end")
    def _reopen_savepoint(sess, trans):
        nonlocal savepoint
        if trans.nested and not trans._parent.nested:
            savepoint = connection.begin_nested()

    app_session = db.session
    app_session.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = app_session
        outer.rollback()


@pytest.fixture()
def sql_store(app, session):
    """User store for batch onboarding, writing through the test transaction."""
    store = SQLAlchemyUserStore(session_factory=session, serialize=True)
    app.extensions["user_store"] = store
    yield store
    app.extensions.pop("user_store", None)


@pytest.fixture()
def vault() -> CredentialVault:
    return CredentialVault(method=TEST_HASH_METHOD)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Point factory_boy at the per-test session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
    SQLAlchemySession.set(None)
