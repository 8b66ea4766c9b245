"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request

from foodapp.api.deps import (
    current_identity,
    get_auth_service,
    get_identity_service,
    json_response,
    require_identity,
    timing,
)
from foodapp.schemas import LoginSchema, TokenResponseSchema, UserSchema
from foodapp.services.identity.dto import UserAuthIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
token_schema = TokenResponseSchema()
user_schema = UserSchema()


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access token."""

    data = login_schema.load(request.get_json(silent=True) or {})
    token = get_auth_service().login(UserAuthIn(email=data["email"], password=data["password"]))
    return json_response({"data": token_schema.dump(token)})


@bp.get("/me")
@require_identity
@timing
def me():
    """Return the user behind the bearer token."""

    user = get_identity_service().get_user(current_identity().subject_id)
    return json_response({"data": user_schema.dump(user)})
