"""User resource schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates, validates_schema

_NAME = validate.Length(min=1, max=100)
_EMAIL = validate.Length(max=254)


class RegistrationSchema(Schema):
    """Payload for registering one user.

    Password length is not checked here; the credential vault enforces its
    own byte limit and reports it as a hashing failure.
    """

    first_name = fields.String(required=True, validate=_NAME)
    last_name = fields.String(required=True, validate=_NAME)
    email = fields.Email(required=True, validate=_EMAIL)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class BatchRegistrationSchema(Schema):
    """Payload for onboarding several users at once.

    :param max_items: Largest accepted ``users`` list; every item costs one
        password hash, so this bounds the work a single request can queue.
    """

    users = fields.List(fields.Nested(RegistrationSchema), required=True)
    timeout = fields.Float(load_default=None, validate=validate.Range(min=0, min_inclusive=False))

    def __init__(self, *, max_items: int = 100, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.max_items = max_items

    @validates("users")
    def _bounded(self, value: list, **_: Any) -> None:
        if len(value) > self.max_items:
            raise ValidationError(f"At most {self.max_items} users per batch.")


class UserUpdateSchema(Schema):
    """Partial update; omitted fields stay untouched."""

    first_name = fields.String(validate=_NAME)
    last_name = fields.String(validate=_NAME)
    email = fields.Email(validate=_EMAIL)
    password = fields.String(load_only=True, validate=validate.Length(min=1))

    @validates_schema
    def _not_empty(self, data, **_):
        if not data:
            raise ValidationError("At least one field is required.")


class UserSchema(Schema):
    """Public representation of a user."""

    id = fields.Integer(required=True)
    full_name = fields.String(required=True)
    email = fields.Email(required=True)


class OutcomeSchema(Schema):
    """One per-item result of a batch registration."""

    index = fields.Integer(required=True)
    email = fields.String(required=True)
    ok = fields.Boolean(required=True)
    user = fields.Nested(UserSchema, attribute="result", allow_none=True)
    error = fields.String(allow_none=True)
    detail = fields.String(allow_none=True)
