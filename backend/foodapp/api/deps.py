"""Shared API helpers for request parsing, auth and service wiring."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from foodapp.core.extensions import db
from foodapp.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from foodapp.infra.sql.user_store import SQLAlchemyUserStore
from foodapp.repositories.base import Pagination
from foodapp.schemas.common import PaginationQuerySchema
from foodapp.security import get_token_reader, get_vault
from foodapp.security.tokens import IdentityClaim
from foodapp.services._shared.ports import UserStore
from foodapp.services.auth.dto import AuthTokenConfig
from foodapp.services.auth.service import AuthService
from foodapp.services.identity.service import IdentityService
from foodapp.services.registration.coordinator import BatchRegistrationCoordinator

F = TypeVar("F", bound=Callable[..., Any])

USER_STORE_KEY = "user_store"


def parse_pagination(default_limit: int = 20, max_limit: int = 200) -> Pagination:
    """``?page=&limit=&sort=`` as a :class:`Pagination`; bad values raise ``ValidationError``."""
    data = PaginationQuerySchema(default_limit=default_limit, max_limit=max_limit).load(request.args)
    return Pagination(page=data["page"], limit=data["limit"], sort=data["sort"])


def require_identity(func: F) -> F:
    """Ensure the request carries a valid bearer token.

    The decoded :class:`IdentityClaim` is exposed as ``g.identity``. Token
    failures propagate as ``TokenError`` and are rendered as 401 problems.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.identity = get_token_reader().extract_identity(request)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_identity() -> IdentityClaim:
    """Return the identity attached by :func:`require_identity`."""

    return g.identity


def get_user_store() -> UserStore:
    """Return the store used for batch onboarding.

    Tests and deployments may pin one in ``app.extensions["user_store"]``;
    otherwise a store on the application's engine is built lazily.
    """

    store = current_app.extensions.get(USER_STORE_KEY)
    if store is None:
        store = SQLAlchemyUserStore.from_engine(db.engine)
        current_app.extensions[USER_STORE_KEY] = store
    return store


def get_identity_service() -> IdentityService:
    return IdentityService(vault=get_vault())


def get_auth_service() -> AuthService:
    cfg = AuthTokenConfig(access_expires=current_app.config["JWT_ACCESS_TOKEN_EXPIRES"])
    return AuthService(
        identity=get_identity_service(),
        token_provider=JWTTokenProvider(),
        token_cfg=cfg,
        token_type=current_app.config.get("JWT_HEADER_TYPE", "Bearer"),
    )


def get_coordinator() -> BatchRegistrationCoordinator:
    return BatchRegistrationCoordinator.from_config(
        current_app.config, store=get_user_store(), vault=get_vault()
    )


def json_response(payload: Any, *, status: int = 200) -> Response:
    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Log the wall time of a view at DEBUG as ``elapsed_ms``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            current_app.logger.debug(
                "view.timed",
                extra={
                    "endpoint": request.endpoint,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )

    return wrapper  # type: ignore[return-value]
