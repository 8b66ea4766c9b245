"""Flask extension singletons: database, migrations and token issuing."""

from __future__ import annotations

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Constraint names are part of the contract: ``uq_users_email`` is matched when
# mapping duplicate emails to conflicts.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
# Issues access tokens at login; validation is done by IdentityTokenReader
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Bind the extensions to ``app``.

    :param app: Application being built by :func:`foodapp.factory.create_app`.

    The :mod:`foodapp.models` package is imported here so its tables are
    registered on ``db.metadata`` before Alembic or ``create_all`` look at it.
    """
    db.init_app(app)

    from foodapp import models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
