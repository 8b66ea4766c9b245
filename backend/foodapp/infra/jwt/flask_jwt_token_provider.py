"""Access-token issuing through Flask-JWT-Extended."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from flask_jwt_extended import create_access_token


class JWTTokenProvider:
    """
    :class:`~foodapp.services._shared.ports.TokenProvider` backed by the
    ``jwt`` extension of the running app.

    Needs an application context. The extension signs with ``JWT_SECRET_KEY``
    and ``JWT_ALGORITHM``, the same settings
    :class:`~foodapp.security.tokens.IdentityTokenReader` verifies against.
    """

    def create_access_token(
        self,
        *,
        identity: int | str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        # ``sub`` must be a string for PyJWT to accept it on the way back in
        return create_access_token(
            identity=str(identity),
            additional_claims=additional_claims,
            expires_delta=expires_delta,
        )
