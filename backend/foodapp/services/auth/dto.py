"""DTOs for AuthService."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Access token lifetime.

    :param access_expires: Lifetime of issued access tokens.
    :type access_expires: datetime.timedelta
    """

    access_expires: timedelta


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """
    Issued bearer token.

    :param access_token: Signed JWT.
    :type access_token: str
    :param token_type: Authorization scheme to use with the token.
    :type token_type: str
    :param expires_in: Lifetime in seconds.
    :type expires_in: int
    """

    access_token: str
    token_type: str
    expires_in: int
