"""HTTP surface. Each API version exposes a ``REGISTRY`` of blueprints."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def mount(app: Flask, prefix: str, blueprints: Iterable[tuple[Blueprint, str]]) -> None:
    """Register ``(blueprint, subpath)`` pairs under ``prefix``.

    An empty subpath mounts the blueprint at ``prefix`` itself, so
    ``mount(app, "/api/v1", [(health, "")])`` serves ``/api/v1/health``.
    """
    for blueprint, subpath in blueprints:
        parts = (part.strip("/") for part in (prefix, subpath))
        app.register_blueprint(blueprint, url_prefix="/" + "/".join(p for p in parts if p))


def init_app(app: Flask) -> None:
    from foodapp.api import v1

    mount(app, f"{app.config.get('API_BASE_PREFIX', '/api')}/{v1.API_VERSION}", v1.REGISTRY)


__all__ = ["init_app", "mount"]
