"""The ``users`` table."""

from __future__ import annotations

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from foodapp.core.extensions import db
from foodapp.security.credentials import Credential

from .base import PKMixin, ReprMixin, TimestampMixin


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    A registered account.

    ``email`` is stored trimmed and lowercased and is unique. The password is
    only ever held as the storage form of a
    :class:`~foodapp.security.credentials.Credential`; assign through
    :attr:`credential`, never to ``password_hash`` directly.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email", "email"),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)

    @property
    def credential(self) -> Credential:
        return Credential.from_storage(self.password_hash)

    @credential.setter
    def credential(self, value: Credential) -> None:
        if not isinstance(value, Credential):
            raise TypeError("credential must be a Credential produced by CredentialVault.")
        self.password_hash = value.encoded

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @validates("email")
    def _clean_email(self, key: str, value: str) -> str:
        """Trim and lowercase; reject values without ``local@domain.tld`` shape."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Email is required.")
        email = value.strip().lower()
        _, at, domain = email.rpartition("@")
        if not at or "." not in domain:
            raise ValueError("Email format looks invalid.")
        return email

    @validates("first_name", "last_name")
    def _clean_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{key} is required.")
        return value.strip()
