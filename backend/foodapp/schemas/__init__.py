"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, TokenResponseSchema
from .common import PaginationQuerySchema, build_meta
from .user import (
    BatchRegistrationSchema,
    OutcomeSchema,
    RegistrationSchema,
    UserSchema,
    UserUpdateSchema,
)

__all__ = [
    "BatchRegistrationSchema",
    "LoginSchema",
    "OutcomeSchema",
    "PaginationQuerySchema",
    "RegistrationSchema",
    "TokenResponseSchema",
    "UserSchema",
    "UserUpdateSchema",
    "build_meta",
]
