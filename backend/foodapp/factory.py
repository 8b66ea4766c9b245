"""Application factory."""

from __future__ import annotations

from flask import Flask

from foodapp.core.config import BaseConfig, get_config
from foodapp.core.logger import configure_logging


def create_app(
    config: type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """
    Build the food app backend.

    :param config: Settings class or object; resolved from ``APP_ENV`` when
        omitted. Settings classes get their :meth:`BaseConfig.validate` hook
        run first.
    :param instance_relative_config: Look for overrides in the instance folder.
    :param instance_config_filename: Optional override file inside it.
    :returns: App with extensions, security components, routes, problem-details
        handlers and the ``users`` CLI group installed.
    :rtype: flask.Flask
    """
    settings = config if config is not None else get_config()
    if isinstance(settings, type) and issubclass(settings, BaseConfig):
        settings.validate()

    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(settings)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from foodapp import api, cli, security
    from foodapp.core import errors, extensions, logger

    extensions.init_app(app)
    logger.init_app(app)
    security.init_app(app)
    api.init_app(app)
    errors.init_app(app)
    cli.init_app(app)

    return app
