"""Port for minting access tokens after a successful login."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """
    Issues a signed access token whose ``sub`` is ``identity``.

    The production adapter is :class:`foodapp.infra.jwt.flask_jwt_token_provider.JWTTokenProvider`;
    whatever it signs must be readable by
    :class:`foodapp.security.tokens.IdentityTokenReader`.
    """

    def create_access_token(
        self,
        *,
        identity: int | str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...
