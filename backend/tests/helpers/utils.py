"""Small assertion helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager


@contextmanager
def not_raises(exception: type[BaseException]):
    """Fail the test if ``exception`` escapes the block.

    :param exception: Exception type that must not be raised.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Unexpectedly raised {type(exc).__name__}: {exc}") from exc
