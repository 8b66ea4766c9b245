"""Environment-driven settings classes.

``APP_ENV`` (``development``, ``testing`` or ``production``) selects the class;
individual values come from the process environment, with a ``.env`` file
loaded first when present.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import Final, TypeVar

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"
PLACEHOLDER_SECRETS: Final[frozenset[str]] = frozenset({"CHANGE_ME", "CHANGE_ME_JWT"})

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})

T = TypeVar("T")

load_dotenv()


def _env(name: str, parse: Callable[[str], T], default: T) -> T:
    # ``FOO=`` in a .env file counts as unset
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return parse(raw.strip())


def env_bool(name: str, default: bool = False) -> bool:
    """``True`` for ``1/true/yes/y/on`` (any case), ``default`` when unset."""
    return _env(name, lambda raw: raw.lower() in _TRUTHY, default)


def env_int(name: str, default: int | None = None) -> int | None:
    return _env(name, int, default)


def env_float(name: str, default: float | None = None) -> float | None:
    return _env(name, float, default)


class BaseConfig:
    """Settings common to every environment.

    Tokens
        ``JWT_SECRET_KEY`` signs access tokens at login and is the only key
        :class:`foodapp.security.tokens.IdentityTokenReader` accepts.
        ``JWT_ACCESS_TOKEN_EXPIRES`` comes from ``JWT_ACCESS_MINUTES``;
        ``JWT_DECODE_LEEWAY`` is the clock skew tolerated on ``exp``, in seconds.

    Passwords
        ``PASSWORD_HASH_METHOD`` is any werkzeug method string including its
        cost (``scrypt``, ``pbkdf2:sha256:600000``). Secrets longer than
        ``PASSWORD_MAX_BYTES`` UTF-8 bytes are refused rather than truncated.

    Batch onboarding
        ``BATCH_WORKERS`` threads register ``BATCH_CHUNK_SIZE``-sized slices
        (one contiguous slice per worker when unset). ``BATCH_TIMEOUT_SECONDS``
        bounds the whole batch; unset means wait for every item. HTTP batches
        longer than ``BATCH_MAX_ITEMS`` are rejected before any hashing starts.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=env_int("JWT_ACCESS_MINUTES", 15))
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_DECODE_LEEWAY = env_int("JWT_DECODE_LEEWAY", 0)

    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    PASSWORD_SALT_LENGTH = env_int("PASSWORD_SALT_LENGTH", 16)
    PASSWORD_MAX_BYTES = env_int("PASSWORD_MAX_BYTES", 72)

    BATCH_WORKERS = env_int("BATCH_WORKERS", 2)
    BATCH_CHUNK_SIZE = env_int("BATCH_CHUNK_SIZE")
    BATCH_TIMEOUT_SECONDS = env_float("BATCH_TIMEOUT_SECONDS")
    BATCH_MAX_ITEMS = env_int("BATCH_MAX_ITEMS", 100)

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO")

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DEBUG = False
    TESTING = False

    @classmethod
    def validate(cls) -> None:
        """Hook for environment-specific sanity checks; no-op by default."""


class DevelopmentConfig(BaseConfig):
    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """In-memory SQLite (or ``TEST_DATABASE_URL``) and a cheap PBKDF2 cost."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    SQLALCHEMY_ECHO = False

    @classmethod
    def validate(cls) -> None:
        """Refuse to boot with the placeholder signing secrets.

        :raises RuntimeError: When ``SECRET_KEY`` or ``JWT_SECRET_KEY`` was
            not provided.
        """
        unset = [key for key in ("SECRET_KEY", "JWT_SECRET_KEY") if getattr(cls, key) in PLACEHOLDER_SECRETS]
        if unset:
            raise RuntimeError(f"Production requires {', '.join(unset)} to be set")


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Resolve ``APP_ENV`` to a settings class; unknown names mean development."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
