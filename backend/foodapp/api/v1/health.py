"""Liveness probe with a database round-trip."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from foodapp.api.deps import json_response, timing
from foodapp.core.extensions import db

bp = Blueprint("health", __name__)


def _database_reachable() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("health.db_unreachable")
        return False
    return True


@bp.get("/health")
@timing
def health():
    """Always 200 while the process serves requests; ``db`` reports ``ok``/``fail``."""
    return json_response(
        {
            "status": "ok",
            "db": "ok" if _database_reachable() else "fail",
            "version": current_app.config.get("APP_VERSION", "dev"),
        }
    )
