"""Unit tests for BatchRegistrationCoordinator (in-memory store, no HTTP)."""

from __future__ import annotations

import logging
import threading
import time

import pytest
from foodapp.services._shared.errors import ErrorKind, InvalidBatch, PersistenceFailure
from foodapp.services._shared.ports import UserRecord
from foodapp.services.registration import (
    BatchRegistrationCoordinator,
    RegistrationRequest,
    chunk,
    partition,
)
from tests.helpers.stores import InMemoryUserStore


def _requests(n: int, *, prefix: str = "alice", password: str = "Passw0rd!"):
    return [
        RegistrationRequest(
            first_name="Alice",
            last_name="Smith",
            email=f"{prefix}{i}@example.com",
            password=password,
        )
        for i in range(n)
    ]


class SlowStore(InMemoryUserStore):
    """Store taking ``delay`` seconds per save."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay

    def save(self, record):
        time.sleep(self.delay)
        return super().save(record)


class ExplodingStore(InMemoryUserStore):
    def save(self, record):
        raise RuntimeError("disk on fire")


class RecordingStore(InMemoryUserStore):
    """Remember which thread saved each email."""

    def __init__(self) -> None:
        super().__init__()
        self.threads: dict[str, str] = {}

    def save(self, record):
        saved = super().save(record)
        self.threads[saved.email] = threading.current_thread().name
        return saved


@pytest.fixture()
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


def _coordinator(store, vault, **kwargs) -> BatchRegistrationCoordinator:
    return BatchRegistrationCoordinator(store=store, vault=vault, **kwargs)


# ------------------------------ Partitioning ------------------------------ #


class TestPartition:
    def test_five_over_two(self):
        assert partition(5, 2) == [range(0, 2), range(2, 5)]

    def test_covers_every_index_exactly_once(self):
        for n in range(0, 23):
            for parts in range(1, 6):
                spans = partition(n, parts)
                flat = [i for span in spans for i in span]
                assert flat == list(range(n))
                sizes = [len(s) for s in spans]
                assert not sizes or max(sizes) - min(sizes) <= 1

    def test_more_parts_than_items(self):
        assert partition(2, 5) == [range(0, 1), range(1, 2)]

    def test_empty(self):
        assert partition(0, 3) == []

    def test_invalid_parts(self):
        with pytest.raises(ValueError):
            partition(3, 0)

    def test_chunk(self):
        assert chunk(5, 2) == [range(0, 2), range(2, 4), range(4, 5)]

    def test_plan_uses_at_most_one_partition_per_item(self, store, vault):
        coord = _coordinator(store, vault, workers=3)
        assert coord.plan(2) == [range(0, 1), range(1, 2)]
        assert coord.plan(5) == [range(0, 1), range(1, 3), range(3, 5)]
        assert coord.plan(0) == []

    def test_plan_with_chunk_size(self, store, vault):
        coord = _coordinator(store, vault, workers=2, chunk_size=2)
        assert coord.plan(5) == chunk(5, 2)


# ------------------------------ Happy path -------------------------------- #


class TestRegisterBatch:
    def test_five_requests_two_workers(self, store, vault):
        coord = _coordinator(store, vault, workers=2)
        outcomes = coord.register_batch(_requests(5))

        assert len(outcomes) == 5
        assert all(o.ok for o in outcomes)
        assert sorted(o.index for o in outcomes) == [0, 1, 2, 3, 4]
        assert {o.result.full_name for o in outcomes} == {"Alice Smith"}
        ids = [o.result.id for o in outcomes]
        assert len(set(ids)) == 5
        assert len(store.records) == 5

    def test_passwords_are_stored_hashed(self, store, vault):
        _coordinator(store, vault).register_batch(_requests(3, password="pl41n-text"))
        for record in store.records.values():
            assert "pl41n-text" not in record.credential.encoded
            assert vault.verify(record.credential, "pl41n-text")

    def test_empty_batch(self, store, vault):
        assert _coordinator(store, vault).register_batch([]) == []
        assert store.records == {}

    def test_single_worker_keeps_submission_order(self, store, vault):
        outcomes = _coordinator(store, vault, workers=1).register_batch(_requests(6))
        assert [o.index for o in outcomes] == list(range(6))

    def test_workers_share_the_batch(self, vault):
        store = RecordingStore()
        _coordinator(store, vault, workers=2).register_batch(_requests(4))
        assert set(store.threads.values()) <= {"register_0", "register_1"}
        assert len(store.threads) == 4

    def test_chunked_batch(self, store, vault):
        outcomes = _coordinator(store, vault, workers=2, chunk_size=3).register_batch(
            _requests(7)
        )
        assert len(outcomes) == 7 and all(o.ok for o in outcomes)


# ------------------------------ Failures ---------------------------------- #


class TestPerItemFailures:
    def test_one_failing_email_of_four(self, vault):
        store = InMemoryUserStore(fail_emails={"alice2@example.com"})
        outcomes = _coordinator(store, vault, workers=2).register_batch(_requests(4))

        assert len(outcomes) == 4
        failed = [o for o in outcomes if not o.ok]
        assert len(failed) == 1
        assert failed[0].email == "alice2@example.com"
        assert failed[0].index == 2
        assert failed[0].error is ErrorKind.PERSISTENCE_FAILURE
        assert failed[0].result is None
        assert sum(o.ok for o in outcomes) == 3

    def test_duplicate_email_within_batch(self, store, vault):
        requests = _requests(2) + _requests(1)  # alice0 twice
        outcomes = _coordinator(store, vault, workers=3).register_batch(requests)
        assert sum(not o.ok for o in outcomes) == 1
        assert len(store.records) == 2

    def test_hashing_failure_is_not_stored(self, store, vault):
        requests = _requests(2)
        requests.append(
            RegistrationRequest("Bob", "Jones", "bob@example.com", "x" * (vault.max_secret_bytes + 1))
        )
        outcomes = _coordinator(store, vault).register_batch(requests)

        bad = [o for o in outcomes if not o.ok]
        assert [(o.email, o.error) for o in bad] == [("bob@example.com", ErrorKind.HASHING_FAILURE)]
        assert all(r.email != "bob@example.com" for r in store.records.values())

    def test_unexpected_store_error(self, vault):
        outcomes = _coordinator(ExplodingStore(), vault).register_batch(_requests(2))
        assert [o.error for o in outcomes] == [ErrorKind.UNEXPECTED, ErrorKind.UNEXPECTED]

    def test_failure_logs_never_contain_password(self, vault, caplog):
        caplog.set_level(logging.INFO, logger="foodapp.services.registration.coordinator")
        store = InMemoryUserStore(fail_emails={"alice0@example.com"})
        _coordinator(store, vault).register_batch(_requests(2, password="t0p-s3cret-pw"))
        assert "batch.item_failed" in caplog.text
        assert "t0p-s3cret-pw" not in caplog.text


class TestDeadline:
    def test_timeout_reports_cancelled_items(self, vault):
        store = SlowStore(delay=0.2)
        coord = _coordinator(store, vault, workers=1)
        outcomes = coord.register_batch(_requests(10), timeout=0.3)

        assert sorted(o.index for o in outcomes) == list(range(10))
        cancelled = [o for o in outcomes if o.error is ErrorKind.CANCELLED]
        assert cancelled
        assert all(o.result is None for o in cancelled)

    def test_configured_timeout_is_default(self, vault):
        coord = _coordinator(SlowStore(delay=0.2), vault, workers=1, timeout=0.1)
        outcomes = coord.register_batch(_requests(5))
        assert len(outcomes) == 5
        assert any(o.error is ErrorKind.CANCELLED for o in outcomes)

    def test_generous_timeout_finishes(self, store, vault):
        outcomes = _coordinator(store, vault, timeout=30).register_batch(_requests(4))
        assert all(o.ok for o in outcomes)

    def test_item_saving_at_deadline_is_reported_as_stored(self, vault):
        store = SlowStore(delay=0.3)
        outcomes = _coordinator(store, vault, workers=1).register_batch(_requests(3), timeout=0.1)

        assert sorted(o.index for o in outcomes) == [0, 1, 2]
        stored = {r.email for r in store.records.values()}
        reported = {o.result.email for o in outcomes if o.ok}
        assert stored == reported == {"alice0@example.com"}
        assert [o.index for o in outcomes if o.error is ErrorKind.CANCELLED] == [1, 2]

    def test_every_stored_user_is_reported_ok(self, vault):
        store = SlowStore(delay=0.05)
        outcomes = _coordinator(store, vault, workers=2).register_batch(_requests(12), timeout=0.12)

        assert len(outcomes) == 12
        assert {o.result.email for o in outcomes if o.ok} == {
            r.email for r in store.records.values()
        }

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_non_positive_call_timeout_is_rejected_up_front(self, store, vault, timeout):
        with pytest.raises(InvalidBatch):
            _coordinator(store, vault).register_batch(_requests(4), timeout=timeout)
        assert store.records == {}


class TestValidation:
    @pytest.mark.parametrize("bad", [None, "alice@example.com", 42, {"a": 1}])
    def test_not_a_sequence(self, store, vault, bad):
        with pytest.raises(InvalidBatch):
            _coordinator(store, vault).register_batch(bad)

    def test_wrong_item_type(self, store, vault):
        items = _requests(1) + [{"email": "x@example.com"}]
        with pytest.raises(InvalidBatch):
            _coordinator(store, vault).register_batch(items)
        assert store.records == {}

    @pytest.mark.parametrize(
        "kwargs", [{"workers": 0}, {"chunk_size": 0}, {"timeout": 0}, {"timeout": -1}]
    )
    def test_constructor_rejects_bad_settings(self, store, vault, kwargs):
        with pytest.raises(ValueError):
            _coordinator(store, vault, **kwargs)

    def test_from_config(self, store, vault):
        coord = BatchRegistrationCoordinator.from_config(
            {"BATCH_WORKERS": 4, "BATCH_CHUNK_SIZE": 10, "BATCH_TIMEOUT_SECONDS": 2.5},
            store=store,
            vault=vault,
        )
        assert (coord.workers, coord.chunk_size, coord.timeout) == (4, 10, 2.5)


def test_in_memory_store_rejects_flagged_email(vault):
    store = InMemoryUserStore(fail_emails={"X@Example.com"})
    with pytest.raises(PersistenceFailure):
        store.save(UserRecord("A", "B", "x@example.com", vault.hash("pw")))
    saved = store.save(UserRecord("A", "B", " Y@Example.com", vault.hash("pw")))
    assert (saved.id, saved.email) == (1, "y@example.com")
