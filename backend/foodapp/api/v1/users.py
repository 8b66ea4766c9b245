"""User endpoints: single and batch registration plus CRUD."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from foodapp.api.deps import (
    current_identity,
    get_coordinator,
    get_identity_service,
    json_response,
    parse_pagination,
    require_identity,
    timing,
)
from foodapp.core.errors import Forbidden
from foodapp.schemas import (
    BatchRegistrationSchema,
    OutcomeSchema,
    RegistrationSchema,
    UserSchema,
    UserUpdateSchema,
    build_meta,
)
from foodapp.services.identity.dto import UserUpdateIn
from foodapp.services.registration.dto import RegistrationRequest

bp = Blueprint("users", __name__)

registration_schema = RegistrationSchema()
update_schema = UserUpdateSchema()
user_schema = UserSchema()
user_list_schema = UserSchema(many=True)
outcome_list_schema = OutcomeSchema(many=True)


def _to_request(data: dict) -> RegistrationRequest:
    return RegistrationRequest(
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        password=data["password"],
    )


def _require_self(user_id: int) -> None:
    if current_identity().subject_id != user_id:
        raise Forbidden("Only the account owner may modify this user")


@bp.post("")
@timing
def register_user():
    """Register one user."""

    payload = registration_schema.load(request.get_json(silent=True) or {})
    user = get_identity_service().register_user(_to_request(payload))
    return json_response({"data": user_schema.dump(user)}, status=201)


@bp.post("/batch")
@require_identity
@timing
def register_batch():
    """Register many users concurrently and report one outcome per item.

    Responds ``200`` when every item succeeded and ``207`` otherwise; the
    ``meta`` block carries the counts. Lists longer than ``BATCH_MAX_ITEMS``
    are refused with 422 before any password is hashed.
    """

    schema = BatchRegistrationSchema(max_items=current_app.config["BATCH_MAX_ITEMS"])
    payload = schema.load(request.get_json(silent=True) or {})
    requests = [_to_request(item) for item in payload["users"]]
    outcomes = get_coordinator().register_batch(requests, timeout=payload["timeout"])
    failed = sum(not o.ok for o in outcomes)
    meta = {"total": len(outcomes), "succeeded": len(outcomes) - failed, "failed": failed}
    body = {"data": outcome_list_schema.dump(outcomes), "meta": meta}
    return json_response(body, status=207 if failed else 200)


@bp.get("")
@require_identity
@timing
def list_users():
    """Return paginated users."""

    pagination = parse_pagination()
    result = get_identity_service().list_users(
        page=pagination.page, limit=pagination.limit, sort=pagination.sort
    )
    meta = build_meta(total=result.total, page=result.page, limit=result.limit)
    return json_response({"data": user_list_schema.dump(result.items), "meta": meta})


@bp.get("/<int:user_id>")
@require_identity
@timing
def get_user(user_id: int):
    """Return one user."""

    user = get_identity_service().get_user(user_id)
    return json_response({"data": user_schema.dump(user)})


@bp.put("/<int:user_id>")
@require_identity
@timing
def update_user(user_id: int):
    """Update names, email and optionally the password of the caller."""

    _require_self(user_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    user = get_identity_service().update_user(user_id, UserUpdateIn(**data))
    return json_response({"data": user_schema.dump(user)})


@bp.delete("/<int:user_id>")
@require_identity
@timing
def delete_user(user_id: int):
    """Delete the caller's own account."""

    _require_self(user_id)
    get_identity_service().delete_user(user_id)
    return "", 204
