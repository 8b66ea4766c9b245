"""Unit tests for the service-to-HTTP error translation."""

from __future__ import annotations

import pytest
from foodapp.core.errors import translate_service_error
from foodapp.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    CredentialMismatch,
    ExpiredToken,
    HashingFailure,
    InvalidBatch,
    InvalidSignature,
    MalformedToken,
    MissingToken,
    NotFoundError,
    PersistenceFailure,
)


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (NotFoundError("User", 1), 404, "not_found"),
        (ConflictError("User", "email already in use"), 409, "conflict"),
        (MissingToken("no header"), 401, "token_missing"),
        (ExpiredToken("old"), 401, "token_expired"),
        (InvalidSignature("forged"), 401, "token_invalid"),
        (MalformedToken("junk"), 401, "token_invalid"),
        (AuthenticationError("nope"), 401, "unauthorized"),
        (CredentialMismatch("nope"), 401, "unauthorized"),
        (HashingFailure("too long"), 422, "hashing_failure"),
        (InvalidBatch("not a list"), 422, "invalid_batch"),
        (PersistenceFailure("db down"), 400, "bad_request"),
    ],
)
def test_translate_service_error(exc, status, code):
    err = translate_service_error(exc)
    assert (err.status_code, err.code) == (status, code)


def test_token_failures_do_not_leak_details():
    err = translate_service_error(InvalidSignature("signature mismatch for key abc"))
    assert "abc" not in err.message
