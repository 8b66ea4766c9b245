"""
Account management for single users: register, sign-in check, read, update,
delete. Token issuing lives in :mod:`foodapp.services.auth`; bulk onboarding
in :mod:`foodapp.services.registration`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodapp.models.user import User
from foodapp.repositories.user import UserRepository
from foodapp.security.credentials import CredentialVault
from foodapp.services._shared.base import BaseService
from foodapp.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    CredentialMismatch,
    InvalidCredentialFormat,
    NotFoundError,
    violates,
)
from foodapp.services.identity.dto import UserAuthIn, UserListOut, UserPublicOut, UserUpdateIn
from foodapp.services.registration.dto import RegistrationRequest

log = logging.getLogger(__name__)

EMAIL_TAKEN = "email already in use"


@contextmanager
def _email_conflicts() -> Iterator[None]:
    # Losing a race against a concurrent insert surfaces as the unique constraint
    try:
        yield
    except IntegrityError as exc:
        if violates(exc, "uq_users_email"):
            raise ConflictError("User", EMAIL_TAKEN) from exc
        raise


class IdentityService(BaseService):
    """
    :param vault: Hashes every password written and checks every login.
    :type vault: CredentialVault
    :param session: Session to run units of work on; the request-scoped
        ``db.session`` when omitted.
    """

    def __init__(self, *, vault: CredentialVault, session: Session | None = None) -> None:
        self.vault = vault
        self.session = session

    def register_user(self, dto: RegistrationRequest) -> UserPublicOut:
        """
        Create one account.

        The password is hashed before the transaction opens, so a rejected
        secret never touches the database.

        :rtype: UserPublicOut
        :raises HashingFailure: The password cannot be hashed.
        :raises ConflictError: The email is already registered.
        """
        credential = self.vault.hash(dto.password)

        with self.writing() as uow:
            repo: UserRepository = uow.users
            if repo.exists_by_email(dto.email):
                raise ConflictError("User", EMAIL_TAKEN)
            user = repo.model(first_name=dto.first_name, last_name=dto.last_name, email=dto.email)
            user.credential = credential
            with _email_conflicts():
                repo.add(user)
            log.info("user.registered id=%s", user.id)
            return self._to_public(user)

    def authenticate(self, dto: UserAuthIn) -> UserPublicOut:
        """
        Check an email/password pair.

        Unknown email, wrong password and a corrupt stored credential are
        indistinguishable to the caller; an unknown email still pays for one
        hash verification.

        :raises AuthenticationError: For any of the above.
        """
        with self.reading() as uow:
            user = uow.users.get_by_email(dto.email)
            if user is None:
                self.vault.verify_dummy(dto.password)
                raise AuthenticationError("Invalid credentials")
            try:
                self.vault.verify(user.credential, dto.password)
            except CredentialMismatch as exc:
                raise AuthenticationError("Invalid credentials") from exc
            except InvalidCredentialFormat as exc:
                log.error("Stored credential for user %s is malformed", user.id)
                raise AuthenticationError("Invalid credentials") from exc
            return self._to_public(user)

    def list_users(self, *, page: int = 1, limit: int = 20, sort=None) -> UserListOut:
        with self.reading() as uow:
            result = uow.users.paginate(self.page_request(page, limit, sort))
            return UserListOut(
                items=[self._to_public(u) for u in result.items],
                total=result.total,
                page=result.page,
                limit=result.limit,
            )

    def get_user(self, user_id: int) -> UserPublicOut:
        """:raises NotFoundError: No such user."""
        with self.reading() as uow:
            return self._to_public(self._require(uow.users, user_id))

    def update_user(self, user_id: int, dto: UserUpdateIn) -> UserPublicOut:
        """
        Apply the supplied fields of ``dto``.

        :raises NotFoundError: No such user.
        :raises ConflictError: The new email belongs to someone else.
        :raises HashingFailure: The new password cannot be hashed.
        """
        updates: dict[str, Any] = dto.changes()
        if dto.password is not None:
            updates["credential"] = self.vault.hash(dto.password)

        with self.writing() as uow:
            user = self._require(uow.users, user_id)
            with _email_conflicts():
                uow.users.assign_updates(user, updates)
            return self._to_public(user)

    def delete_user(self, user_id: int) -> None:
        """:raises NotFoundError: No such user."""
        with self.writing() as uow:
            uow.users.delete(self._require(uow.users, user_id))

    @staticmethod
    def _require(repo: UserRepository, user_id: int) -> User:
        user = repo.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def _to_public(user: User) -> UserPublicOut:
        return UserPublicOut(id=user.id, full_name=user.full_name, email=user.email)
