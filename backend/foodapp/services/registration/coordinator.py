"""
BatchRegistrationCoordinator
============================

Concurrent batch onboarding:

- Splits the batch into contiguous partitions placed on a shared work queue.
- A pool of worker threads drains that queue. Each worker walks its partition
  in order: hash the password, save the user, report a
  :class:`RegistrationOutcome` on a shared result queue.
- The caller gets exactly one outcome per submitted request, in the order
  outcomes arrived. Failures are reported per item, never dropped.
- An optional deadline stops the fan-in. Workers stop before their next item
  (or before saving one they have just hashed); items already being saved
  get a short grace period so a stored user is reported as stored. Anything
  still unfinished comes back as ``CANCELLED``.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any

from foodapp.security.credentials import CredentialVault
from foodapp.services._shared.errors import (
    ErrorKind,
    HashingFailure,
    InvalidBatch,
    PersistenceFailure,
)
from foodapp.services._shared.ports.user_store import UserRecord, UserStore
from foodapp.services.registration.dto import (
    RegistrationOutcome,
    RegistrationRequest,
    RegistrationResult,
)

log = logging.getLogger(__name__)

DEFAULT_WORKERS = 2

# Upper bound on a single blocking wait while draining results
_POLL_SECONDS = 0.25

# How long in-flight items may finish once a batch is cancelled
_CANCEL_GRACE_SECONDS = 1.0


def partition(n: int, parts: int) -> list[range]:
    """
    Split ``range(n)`` into at most ``parts`` contiguous, disjoint ranges.

    Boundaries sit at ``i * n // parts``, so sizes differ by at most one and
    the later ranges take the extra element: ``partition(5, 2)`` gives
    ``[range(0, 2), range(2, 5)]``. Empty ranges are dropped.

    :raises ValueError: If ``parts`` is smaller than one.
    """
    if parts < 1:
        raise ValueError("parts must be >= 1")
    bounds = [i * n // parts for i in range(parts + 1)]
    return [range(lo, hi) for lo, hi in zip(bounds, bounds[1:]) if hi > lo]


def chunk(n: int, size: int) -> list[range]:
    """Split ``range(n)`` into consecutive ranges of ``size`` (last one shorter)."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [range(lo, min(lo + size, n)) for lo in range(0, n, size)]


class BatchRegistrationCoordinator:
    """
    Fan registration requests out to worker threads and fan outcomes back in.

    :param store: Persistence port; called concurrently from several workers.
    :type store: UserStore
    :param vault: Password hashing component.
    :type vault: CredentialVault
    :param workers: Worker threads per batch.
    :type workers: int
    :param chunk_size: Partition size. ``None`` gives one partition per worker.
    :type chunk_size: int | None
    :param timeout: Default deadline in seconds for a batch. ``None`` waits
        for every item.
    :type timeout: float | None
    """

    def __init__(
        self,
        *,
        store: UserStore,
        vault: CredentialVault,
        workers: int = DEFAULT_WORKERS,
        chunk_size: int | None = None,
        timeout: float | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if chunk_size is not None and chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self.store = store
        self.vault = vault
        self.workers = workers
        self.chunk_size = chunk_size
        self.timeout = timeout

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], *, store: UserStore, vault: CredentialVault
    ) -> BatchRegistrationCoordinator:
        """Build from the ``BATCH_*`` keys of a Flask config mapping."""
        return cls(
            store=store,
            vault=vault,
            workers=int(config.get("BATCH_WORKERS") or DEFAULT_WORKERS),
            chunk_size=config.get("BATCH_CHUNK_SIZE"),
            timeout=config.get("BATCH_TIMEOUT_SECONDS"),
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def plan(self, n: int) -> list[range]:
        """Return the partitions used for a batch of ``n`` requests."""
        if self.chunk_size is not None:
            return chunk(n, self.chunk_size)
        return partition(n, min(self.workers, n)) if n else []

    def register_batch(
        self,
        requests: Sequence[RegistrationRequest],
        *,
        timeout: float | None = None,
    ) -> list[RegistrationOutcome]:
        """
        Register every request concurrently.

        :param requests: Ordered batch to onboard.
        :type requests: Sequence[RegistrationRequest]
        :param timeout: Deadline in seconds overriding the configured one.
        :type timeout: float | None
        :returns: One outcome per request, in arrival order (not submission
            order). Items still pending at the deadline are appended as
            ``CANCELLED`` in index order.
        :rtype: list[RegistrationOutcome]
        :raises InvalidBatch: When ``requests`` is not a sequence of
            :class:`RegistrationRequest`, or ``timeout`` is not positive.
        """
        items = self._validate(requests)
        if timeout is not None and timeout <= 0:
            raise InvalidBatch("timeout must be positive")
        n = len(items)
        if n == 0:
            return []

        spans = self.plan(n)
        work: queue.Queue[range] = queue.Queue()
        for span in spans:
            work.put(span)
        results: queue.Queue[RegistrationOutcome] = queue.Queue()
        cancel = threading.Event()

        effective = timeout if timeout is not None else self.timeout
        deadline = time.monotonic() + effective if effective is not None else None
        pool_size = min(self.workers, len(spans))
        log.info(
            "batch.start",
            extra={"batch_size": n, "workers": pool_size, "partitions": len(spans)},
        )

        executor = ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="register")
        futures = [
            executor.submit(self._drain, items, work, results, cancel) for _ in range(pool_size)
        ]
        outcomes, timed_out = self._collect(results, n, deadline, futures)

        if timed_out:
            cancel.set()
            wait_futures(futures, timeout=_CANCEL_GRACE_SECONDS)
            executor.shutdown(wait=False, cancel_futures=True)
            self._drain_ready(results, outcomes, n)
            log.warning(
                "batch.deadline_exceeded",
                extra={"batch_size": n, "succeeded": sum(o.ok for o in outcomes)},
            )
            self._fill_missing(outcomes, items, ErrorKind.CANCELLED, "batch deadline exceeded")
        else:
            executor.shutdown(wait=True)
            if len(outcomes) < n:
                # Only reachable when a worker died outside the per-item guard
                for fut in futures:
                    if fut.exception() is not None:
                        log.error("batch.worker_crashed", exc_info=fut.exception())
                self._fill_missing(outcomes, items, ErrorKind.UNEXPECTED, "worker stopped")

        failed = sum(not o.ok for o in outcomes)
        log.info(
            "batch.finish",
            extra={"batch_size": n, "succeeded": n - failed, "failed": failed},
        )
        return outcomes

    # ------------------------------------------------------------------ #
    # Workers
    # ------------------------------------------------------------------ #

    def _drain(
        self,
        items: list[RegistrationRequest],
        work: queue.Queue[range],
        results: queue.Queue[RegistrationOutcome],
        cancel: threading.Event,
    ) -> None:
        """Take partitions off ``work`` until it is empty or the batch is cancelled."""
        while not cancel.is_set():
            try:
                span = work.get_nowait()
            except queue.Empty:
                return
            for index in span:
                if cancel.is_set():
                    return
                outcome = self._register_one(index, items[index], cancel)
                if outcome is not None:
                    results.put(outcome)

    def _register_one(
        self, index: int, request: RegistrationRequest, cancel: threading.Event
    ) -> RegistrationOutcome | None:
        """Hash and save one item; ``None`` when cancelled between the two."""
        try:
            credential = self.vault.hash(request.password)
            if cancel.is_set():
                return None
            saved = self.store.save(
                UserRecord(
                    first_name=request.first_name,
                    last_name=request.last_name,
                    email=request.email,
                    credential=credential,
                )
            )
            return RegistrationOutcome.success(index, RegistrationResult.from_record(saved))
        except HashingFailure as exc:
            return self._failed(index, request, ErrorKind.HASHING_FAILURE, str(exc))
        except PersistenceFailure as exc:
            return self._failed(index, request, ErrorKind.PERSISTENCE_FAILURE, str(exc))
        except Exception:
            log.exception("batch.item_unexpected", extra={"index": index})
            return self._failed(
                index, request, ErrorKind.UNEXPECTED, "unexpected error while registering"
            )

    @staticmethod
    def _failed(
        index: int, request: RegistrationRequest, kind: ErrorKind, detail: str
    ) -> RegistrationOutcome:
        log.warning(
            "batch.item_failed: %s", detail, extra={"index": index, "error_kind": kind.value}
        )
        return RegistrationOutcome.failure(index, request.email, kind, detail)

    # ------------------------------------------------------------------ #
    # Fan-in
    # ------------------------------------------------------------------ #

    @staticmethod
    def _collect(
        results: queue.Queue[RegistrationOutcome],
        n: int,
        deadline: float | None,
        futures: list[Future[None]],
    ) -> tuple[list[RegistrationOutcome], bool]:
        """Drain up to ``n`` outcomes; the flag reports whether the deadline hit."""
        outcomes: list[RegistrationOutcome] = []
        while len(outcomes) < n:
            wait = _POLL_SECONDS
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
                if wait <= 0:
                    return outcomes, True
            try:
                outcomes.append(results.get(timeout=wait))
            except queue.Empty:
                if all(f.done() for f in futures) and results.empty():
                    break
        return outcomes, False

    @staticmethod
    def _drain_ready(
        results: queue.Queue[RegistrationOutcome], outcomes: list[RegistrationOutcome], n: int
    ) -> None:
        while len(outcomes) < n:
            try:
                outcomes.append(results.get_nowait())
            except queue.Empty:
                return

    @staticmethod
    def _fill_missing(
        outcomes: list[RegistrationOutcome],
        items: list[RegistrationRequest],
        kind: ErrorKind,
        detail: str,
    ) -> None:
        arrived = {o.index for o in outcomes}
        outcomes.extend(
            RegistrationOutcome.failure(i, items[i].email, kind, detail)
            for i in range(len(items))
            if i not in arrived
        )

    @staticmethod
    def _validate(requests: Sequence[RegistrationRequest]) -> list[RegistrationRequest]:
        if isinstance(requests, (str, bytes)) or not isinstance(requests, Sequence):
            raise InvalidBatch("Batch must be a sequence of registration requests.")
        bad = [i for i, item in enumerate(requests) if not isinstance(item, RegistrationRequest)]
        if bad:
            raise InvalidBatch(f"Items at positions {bad[:10]} are not registration requests.")
        return list(requests)
