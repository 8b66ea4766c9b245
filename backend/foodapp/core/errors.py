"""Problem-details (RFC 7807) responses for every failure the API can surface.

Service code raises :class:`~foodapp.services._shared.errors.ServiceError`
subclasses and never touches HTTP. This module owns the mapping from those
errors (and from framework/database exceptions) to a status, a stable
``code`` and a client-safe ``detail``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from foodapp.core.logger import ensure_request_id
from foodapp.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    CredentialError,
    ExpiredToken,
    HashingFailure,
    InvalidBatch,
    MissingToken,
    NotFoundError,
    ServiceError,
    TokenError,
)

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable codes for framework-raised statuses; anything else becomes "error"
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    429: "too_many_requests",
    500: "internal_server_error",
    503: "service_unavailable",
}


class APIError(Exception):
    """
    An error that is already shaped for the client.

    Parameters
    ----------
    message : str
        ``detail`` of the problem document.
    status_code : int, optional
        HTTP status. Defaults to ``400``.
    code : str, optional
        Stable snake_case identifier clients can branch on.
    details : dict[str, Any] | None, optional
        Extra structured data, e.g. field errors.
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_REQUEST,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, HTTPStatus.NOT_FOUND, "not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, HTTPStatus.CONFLICT, "conflict")


class Unauthorized(APIError):
    """401; ``code`` distinguishes token problems from bad credentials."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED, code)


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, HTTPStatus.FORBIDDEN, "forbidden")


def _unprocessable(code: str) -> Callable[[ServiceError], APIError]:
    return lambda exc: APIError(str(exc), HTTPStatus.UNPROCESSABLE_ENTITY, code)


# First match wins, so subclasses must precede their bases
# (HashingFailure is a CredentialError, ExpiredToken a TokenError).
_TRANSLATIONS: tuple[tuple[type[ServiceError], Callable[[ServiceError], APIError]], ...] = (
    (NotFoundError, lambda exc: NotFound(str(exc))),
    (ConflictError, lambda exc: Conflict(str(exc))),
    (MissingToken, lambda exc: Unauthorized(str(exc), code="token_missing")),
    (ExpiredToken, lambda exc: Unauthorized(str(exc), code="token_expired")),
    (TokenError, lambda exc: Unauthorized("Invalid bearer token", code="token_invalid")),
    (HashingFailure, _unprocessable("hashing_failure")),
    (InvalidBatch, _unprocessable("invalid_batch")),
    (AuthenticationError, lambda exc: Unauthorized("Invalid credentials")),
    (CredentialError, lambda exc: Unauthorized("Invalid credentials")),
)


def translate_service_error(exc: ServiceError) -> APIError:
    """
    Turn a service failure into the :class:`APIError` the client will see.

    Signature and parsing details of a rejected token, and which half of a
    credential pair was wrong, are not echoed back.

    :param exc: Failure raised below the HTTP layer.
    :returns: Client-facing error; unmapped kinds become ``400 bad_request``.
    :rtype: APIError
    """
    for kind, build in _TRANSLATIONS:
        if isinstance(exc, kind):
            return build(exc)
    return APIError(str(exc))


def problem_document(
    status: int, code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Assemble the RFC 7807 body, tagged with the correlation ``request_id``."""
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if has_request_context() else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def _respond(
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    *,
    exc_info: bool = False,
) -> tuple[Response, int]:
    status = int(status)
    body = problem_document(status, code, message, details)
    emit = log.error if status >= 500 else log.warning
    emit(
        "problem status=%s code=%s detail=%s request_id=%s",
        status,
        code,
        message,
        body["request_id"],
        exc_info=exc_info,
    )
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


def init_app(app: Flask) -> None:
    """Register the problem-details handlers on ``app``."""

    @app.errorhandler(APIError)
    def _api_error(err: APIError):
        return _respond(err.status_code, err.code, err.message, err.details)

    @app.errorhandler(ServiceError)
    def _service_error(err: ServiceError):
        return _api_error(translate_service_error(err))

    @app.errorhandler(ValidationError)
    def _validation_error(err: ValidationError):
        return _respond(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            {"errors": err.messages},
        )

    @app.errorhandler(HTTPException)
    def _http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = STATUS_CODES.get(status, "error")
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or code.replace("_", " ").capitalize()).strip()
        return _respond(status, code, message)

    @app.errorhandler(IntegrityError)
    def _integrity_error(err: IntegrityError):
        # Raw constraint text stays in the log
        return _respond(HTTPStatus.CONFLICT, "conflict", "Resource conflict", exc_info=True)

    @app.errorhandler(OperationalError)
    def _operational_error(err: OperationalError):
        return _respond(
            HTTPStatus.SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Service temporarily unavailable",
            exc_info=True,
        )

    @app.errorhandler(Exception)
    def _unexpected(err: Exception):
        return _respond(
            HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error", exc_info=True
        )
