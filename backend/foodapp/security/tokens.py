"""Bearer token validation for inbound requests.

Access tokens are issued by Flask-JWT-Extended at login; this module reads
them back with PyJWT against an explicitly injected :class:`SigningConfig`, so
it works with any object exposing ``headers`` and needs no app context.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

import jwt as pyjwt

from foodapp.services._shared.errors import (
    ExpiredToken,
    InvalidSignature,
    MalformedToken,
    MissingToken,
)


class SupportsHeaders(Protocol):
    """Anything carrying request headers (Flask/Werkzeug requests, test doubles)."""

    @property
    def headers(self) -> Mapping[str, str]: ...


@dataclass(frozen=True, slots=True)
class SigningConfig:
    """
    Signing parameters shared by the token issuer and the reader.

    :param secret_key: HMAC key (or public key for asymmetric algorithms).
    :param algorithm: JWS algorithm, ``HS256`` by default.
    :param header_name: Request header carrying the token.
    :param header_type: Expected scheme prefix, e.g. ``Bearer``.
    :param leeway: Clock-skew tolerance applied to ``exp``/``nbf``.
    :param audience: Required ``aud`` claim, if any.
    :param issuer: Required ``iss`` claim, if any.
    """

    secret_key: str
    algorithm: str = "HS256"
    header_name: str = "Authorization"
    header_type: str = "Bearer"
    leeway: timedelta = timedelta(0)
    audience: str | None = None
    issuer: str | None = None

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SigningConfig:
        """Build from the ``JWT_*`` keys understood by Flask-JWT-Extended."""
        leeway = config.get("JWT_DECODE_LEEWAY", 0) or 0
        if not isinstance(leeway, timedelta):
            leeway = timedelta(seconds=int(leeway))
        return cls(
            secret_key=config["JWT_SECRET_KEY"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            header_name=config.get("JWT_HEADER_NAME", "Authorization"),
            header_type=config.get("JWT_HEADER_TYPE", "Bearer"),
            leeway=leeway,
            audience=config.get("JWT_DECODE_AUDIENCE"),
            issuer=config.get("JWT_DECODE_ISSUER"),
        )


@dataclass(frozen=True, slots=True)
class IdentityClaim:
    """Authenticated caller, valid for the lifetime of one request."""

    subject_id: int


class IdentityTokenReader:
    """Extract the caller's subject id from a signed bearer token."""

    def __init__(self, signing: SigningConfig) -> None:
        self.signing = signing

    def extract_identity(self, request: SupportsHeaders) -> IdentityClaim:
        """
        Read and validate the bearer token attached to ``request``.

        :param request: Object exposing a ``headers`` mapping.
        :returns: The claim carrying the numeric subject id.
        :rtype: IdentityClaim
        :raises MissingToken: The authorization header is absent or blank.
        :raises MalformedToken: Wrong scheme, undecodable token or bad ``sub``.
        :raises ExpiredToken: The token is past ``exp``.
        :raises InvalidSignature: The signature does not verify.
        """
        raw = request.headers.get(self.signing.header_name)
        if raw is None or not raw.strip():
            raise MissingToken(f"Missing {self.signing.header_name} header.")
        return self.decode(self._strip_scheme(raw))

    def decode(self, token: str) -> IdentityClaim:
        """Validate a raw token string and return its identity claim."""
        try:
            payload = pyjwt.decode(
                token,
                self.signing.secret_key,
                algorithms=[self.signing.algorithm],
                audience=self.signing.audience,
                issuer=self.signing.issuer,
                leeway=self.signing.leeway,
                options={"require": ["exp", "sub"]},
            )
        except pyjwt.ExpiredSignatureError as exc:
            raise ExpiredToken("Token has expired.") from exc
        except pyjwt.InvalidSignatureError as exc:
            raise InvalidSignature("Token signature verification failed.") from exc
        except pyjwt.InvalidTokenError as exc:
            raise MalformedToken(f"Token could not be parsed: {exc}") from exc
        return IdentityClaim(subject_id=self._subject_id(payload.get("sub")))

    # ------------------------------------------------------------------ #

    def _strip_scheme(self, raw: str) -> str:
        parts = raw.split()
        scheme = self.signing.header_type
        if not scheme:
            if len(parts) != 1:
                raise MalformedToken("Expected a bare token.")
            return parts[0]
        if len(parts) != 2 or parts[0].lower() != scheme.lower():
            raise MalformedToken(f"Expected '{scheme} <token>'.")
        return parts[1]

    @staticmethod
    def _subject_id(sub: Any) -> int:
        if isinstance(sub, bool):
            raise MalformedToken("Token subject is not a numeric id.")
        try:
            return int(sub)
        except (TypeError, ValueError) as exc:
            raise MalformedToken("Token subject is not a numeric id.") from exc
