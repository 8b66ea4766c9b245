"""
Password hashing and verification.

:class:`CredentialVault` wraps Werkzeug's salted adaptive hashes
(``scrypt`` or ``pbkdf2``). Every call to :meth:`CredentialVault.hash` draws a
fresh salt; salt and cost parameters travel inside the encoded credential
(``method$salt$hash``) so verification needs nothing else.
"""

from __future__ import annotations

import secrets
import string
from functools import cached_property

from werkzeug.security import check_password_hash, generate_password_hash

from foodapp.services._shared.errors import (
    CredentialMismatch,
    HashingFailure,
    InvalidCredentialFormat,
)

SUPPORTED_METHODS = frozenset({"scrypt", "pbkdf2"})
DEFAULT_METHOD = "scrypt"
DEFAULT_SALT_LENGTH = 16
DEFAULT_MAX_SECRET_BYTES = 72

_HEX = frozenset(string.hexdigits)


class Credential:
    """
    Opaque storage form of a hashed secret.

    Instances compare by identity only and never render their content in
    ``repr``; use :meth:`CredentialVault.verify` to check a plaintext against
    one.
    """

    __slots__ = ("_encoded",)

    def __init__(self, encoded: str) -> None:
        self._encoded = encoded

    @classmethod
    def from_storage(cls, encoded: str) -> Credential:
        """Wrap a value read from the ``password_hash`` column."""
        return cls(encoded)

    @property
    def encoded(self) -> str:
        """Return the storage form to persist."""
        return self._encoded

    def __repr__(self) -> str:
        return "Credential(<redacted>)"

    __str__ = __repr__


class CredentialVault:
    """
    One-way hashing and constant-effort verification of secrets.

    :param method: Werkzeug hash method with optional cost parameters,
        e.g. ``"scrypt"``, ``"scrypt:65536:8:1"`` or ``"pbkdf2:sha256:600000"``.
    :type method: str
    :param salt_length: Length of the random salt drawn per hash.
    :type salt_length: int
    :param max_secret_bytes: Longest accepted secret in UTF-8 bytes.
    :type max_secret_bytes: int
    """

    def __init__(
        self,
        *,
        method: str = DEFAULT_METHOD,
        salt_length: int = DEFAULT_SALT_LENGTH,
        max_secret_bytes: int = DEFAULT_MAX_SECRET_BYTES,
    ) -> None:
        if method.split(":", 1)[0] not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported password hash method: {method!r}")
        if salt_length < 1:
            raise ValueError("salt_length must be positive")
        self.method = method
        self.salt_length = salt_length
        self.max_secret_bytes = max_secret_bytes

    @classmethod
    def from_config(cls, config) -> CredentialVault:
        """Build a vault from ``PASSWORD_*`` keys of a Flask config mapping."""
        return cls(
            method=config.get("PASSWORD_HASH_METHOD", DEFAULT_METHOD),
            salt_length=int(config.get("PASSWORD_SALT_LENGTH", DEFAULT_SALT_LENGTH)),
            max_secret_bytes=int(config.get("PASSWORD_MAX_BYTES", DEFAULT_MAX_SECRET_BYTES)),
        )

    # ------------------------------------------------------------------ #
    # Hashing
    # ------------------------------------------------------------------ #

    def hash(self, plaintext: str) -> Credential:
        """
        Derive a salted one-way credential from ``plaintext``.

        :param plaintext: Secret to hash.
        :type plaintext: str
        :returns: New credential; two calls with the same input differ.
        :rtype: Credential
        :raises HashingFailure: When the secret is empty, too long, or the
            configured transform rejects its parameters.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise HashingFailure("Secret must be a non-empty string.")
        if len(plaintext.encode("utf-8")) > self.max_secret_bytes:
            raise HashingFailure(f"Secret exceeds {self.max_secret_bytes} bytes.")
        try:
            encoded = generate_password_hash(
                plaintext, method=self.method, salt_length=self.salt_length
            )
        except ValueError as exc:
            raise HashingFailure(str(exc)) from exc
        return Credential(encoded)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify(self, stored: Credential, candidate: str) -> bool:
        """
        Check ``candidate`` against ``stored``.

        The comparison itself is constant-time. A malformed credential is
        rejected only after a decoy verification so both failure kinds cost
        the same.

        :param stored: Credential previously produced by :meth:`hash`.
        :type stored: Credential
        :param candidate: Plaintext to check.
        :type candidate: str
        :returns: ``True`` on match.
        :rtype: bool
        :raises CredentialMismatch: When the candidate does not match.
        :raises InvalidCredentialFormat: When ``stored`` cannot be parsed.
        """
        candidate = candidate if isinstance(candidate, str) else ""
        if not isinstance(stored, Credential) or not self._well_formed(stored.encoded):
            self._burn(candidate)
            raise InvalidCredentialFormat("Stored credential is malformed.")
        try:
            matched = check_password_hash(stored.encoded, candidate)
        except ValueError as exc:
            # Unknown digest or bad cost parameters inside the method segment
            self._burn(candidate)
            raise InvalidCredentialFormat("Stored credential is malformed.") from exc
        if not matched:
            raise CredentialMismatch("Credential does not match.")
        return True

    def matches(self, stored: Credential, candidate: str) -> bool:
        """Boolean form of :meth:`verify`; other failure kinds still raise."""
        try:
            return self.verify(stored, candidate)
        except CredentialMismatch:
            return False

    def verify_dummy(self, candidate: str) -> None:
        """Spend one verification's worth of work against a decoy credential.

        Used when there is no stored credential (unknown account) so that the
        response costs the same as a wrong password.
        """
        self._burn(candidate if isinstance(candidate, str) else "")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _well_formed(encoded: object) -> bool:
        if not isinstance(encoded, str) or encoded.count("$") < 2:
            return False
        method, salt, hashval = encoded.split("$", 2)
        if method.split(":", 1)[0] not in SUPPORTED_METHODS:
            return False
        return bool(salt) and bool(hashval) and set(hashval) <= _HEX

    @cached_property
    def _decoy(self) -> str:
        return generate_password_hash(
            secrets.token_urlsafe(16), method=self.method, salt_length=self.salt_length
        )

    def _burn(self, candidate: str) -> None:
        check_password_hash(self._decoy, candidate)
