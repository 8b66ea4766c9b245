# foodapp/services/auth/service.py
from __future__ import annotations

from datetime import timedelta

from foodapp.services._shared.ports.token_provider import TokenProvider
from foodapp.services.auth.dto import AccessTokenOut, AuthTokenConfig
from foodapp.services.identity.dto import UserAuthIn
from foodapp.services.identity.service import IdentityService


class AuthService:
    """
    Login: verify credentials and issue a bearer access token.

    Token *validation* is not done here; inbound requests are authenticated
    by :class:`foodapp.security.tokens.IdentityTokenReader`.
    """

    def __init__(
        self,
        *,
        identity: IdentityService,
        token_provider: TokenProvider,
        token_cfg: AuthTokenConfig | None = None,
        token_type: str = "Bearer",
    ) -> None:
        """
        :param identity: Service performing the credential check.
        :param token_provider: Adapter issuing JWTs.
        :param token_cfg: Access token expiry configuration.
        :param token_type: Scheme announced to clients.
        """
        self.identity = identity
        self.tokens = token_provider
        self.cfg = token_cfg or AuthTokenConfig(access_expires=timedelta(minutes=15))
        self.token_type = token_type

    def login(self, dto: UserAuthIn) -> AccessTokenOut:
        """
        Authenticate credentials and issue an access token.

        :param dto: Login input.
        :returns: Access token payload.
        :raises AuthenticationError: If credentials are invalid.
        """
        user = self.identity.authenticate(dto)
        token = self.tokens.create_access_token(
            identity=user.id,
            expires_delta=self.cfg.access_expires,
        )
        return AccessTokenOut(
            access_token=token,
            token_type=self.token_type,
            expires_in=int(self.cfg.access_expires.total_seconds()),
        )
