"""Factory Boy definition for :class:`foodapp.models.user.User`."""

from __future__ import annotations

from foodapp.models.user import User
from foodapp.security.credentials import CredentialVault

import factory
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"

_vault = CredentialVault(method="pbkdf2:sha256:1000")


class UserFactory(BaseFactory):
    """
    Build persisted :class:`foodapp.models.user.User` instances.

    Notes
    -----
    - The credential comes from a cheap :class:`CredentialVault`; pass
      ``password=...`` to choose the plaintext; it is never stored.
    """

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    password_hash = factory.LazyAttribute(lambda o: _vault.hash(o.password).encoded)

    class Params:
        password = DEFAULT_PASSWORD
