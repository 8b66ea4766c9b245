"""Unit tests for the SQLAlchemy UserStore adapter."""

from __future__ import annotations

import pytest
from foodapp.infra.sql.user_store import SQLAlchemyUserStore
from foodapp.repositories.user import UserRepository
from foodapp.services._shared.errors import PersistenceFailure
from foodapp.services._shared.ports import UserRecord
from foodapp.services.registration import BatchRegistrationCoordinator, RegistrationRequest


def _record(vault, email="alice@example.com", first="Alice", last="Smith"):
    return UserRecord(first_name=first, last_name=last, email=email, credential=vault.hash("pw"))


@pytest.fixture()
def repo(session) -> UserRepository:
    return UserRepository(session=session)


def test_save_assigns_id_and_normalizes(sql_store, vault, repo):
    saved = sql_store.save(_record(vault, email=" Alice@Example.com"))

    assert saved.id is not None
    assert saved.email == "alice@example.com"
    assert saved.full_name == "Alice Smith"
    row = repo.get(saved.id)
    assert row is not None and vault.verify(row.credential, "pw")


def test_duplicate_email_is_persistence_failure(sql_store, vault, repo):
    first = sql_store.save(_record(vault))
    with pytest.raises(PersistenceFailure, match="already in use"):
        sql_store.save(_record(vault, email="ALICE@example.com"))
    assert repo.get(first.id) is not None


def test_model_validation_is_persistence_failure(sql_store, vault):
    with pytest.raises(PersistenceFailure):
        sql_store.save(_record(vault, email="not-an-email"))
    with pytest.raises(PersistenceFailure):
        sql_store.save(_record(vault, first="   "))


def test_concurrent_batch_persists_every_row(sql_store, vault, repo):
    coordinator = BatchRegistrationCoordinator(store=sql_store, vault=vault, workers=3)
    requests = [
        RegistrationRequest("Alice", "Smith", f"alice{i}@example.com", "pw") for i in range(6)
    ]
    outcomes = coordinator.register_batch(requests)

    assert all(o.ok for o in outcomes)
    ids = {o.result.id for o in outcomes}
    assert len(ids) == 6
    assert all(repo.get(i) is not None for i in ids)


def test_sqlite_engine_is_serialized(db):
    assert SQLAlchemyUserStore.from_engine(db.engine)._lock is not None
