"""Credential and bearer-token security components."""

from __future__ import annotations

from flask import Flask, current_app

from foodapp.security.credentials import Credential, CredentialVault
from foodapp.security.tokens import IdentityClaim, IdentityTokenReader, SigningConfig

VAULT_KEY = "credential_vault"
TOKEN_READER_KEY = "identity_token_reader"


def init_app(app: Flask) -> None:
    """Build the vault and the token reader from ``app.config`` once."""
    app.extensions[VAULT_KEY] = CredentialVault.from_config(app.config)
    app.extensions[TOKEN_READER_KEY] = IdentityTokenReader(SigningConfig.from_mapping(app.config))


def get_vault() -> CredentialVault:
    """Return the vault bound to the current application."""
    return current_app.extensions[VAULT_KEY]


def get_token_reader() -> IdentityTokenReader:
    """Return the token reader bound to the current application."""
    return current_app.extensions[TOKEN_READER_KEY]


__all__ = [
    "Credential",
    "CredentialVault",
    "IdentityClaim",
    "IdentityTokenReader",
    "SigningConfig",
    "get_token_reader",
    "get_vault",
    "init_app",
]
