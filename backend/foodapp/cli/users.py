"""Flask CLI commands for bulk user onboarding."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

import click
from flask import current_app
from flask.cli import with_appcontext
from marshmallow import ValidationError

from foodapp.api.deps import get_user_store
from foodapp.schemas import RegistrationSchema
from foodapp.security import get_vault
from foodapp.services.registration import (
    BatchRegistrationCoordinator,
    RegistrationOutcome,
    RegistrationRequest,
)

LOGGER = logging.getLogger(__name__)


def _load_requests(raw: str) -> list[RegistrationRequest]:
    """Parse a JSON list (or ``{"users": [...]}``) into registration requests."""
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON: {exc}") from exc
    if isinstance(document, dict):
        document = document.get("users")
    if not isinstance(document, list):
        raise click.ClickException("Expected a JSON list of users or an object with 'users'.")
    try:
        rows = RegistrationSchema(many=True).load(document)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid users: {exc.messages}") from exc
    return [RegistrationRequest(**row) for row in rows]


def _echo_summary(outcomes: Sequence[RegistrationOutcome]) -> int:
    """Print one line per failure plus totals; return the failure count."""
    failed = [o for o in sorted(outcomes, key=lambda o: o.index) if not o.ok]
    click.echo("Import summary:")
    click.echo(f"  submitted={len(outcomes)}  succeeded={len(outcomes) - len(failed)}")
    for outcome in failed:
        click.echo(f"  #{outcome.index} {outcome.email}: {outcome.error} ({outcome.detail})")
    return len(failed)


@click.group("users")
def users_cli() -> None:
    """User administration commands."""


@users_cli.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Worker threads.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Deadline in seconds for the whole batch.",
)
@with_appcontext
def import_command(source, workers: int | None, timeout: float | None) -> None:
    """Register every user listed in SOURCE (a JSON file) concurrently."""
    requests = _load_requests(source.read())
    coordinator = BatchRegistrationCoordinator.from_config(
        current_app.config, store=get_user_store(), vault=get_vault()
    )
    if workers is not None:
        coordinator.workers = workers
    LOGGER.info("Importing %d users", len(requests))
    outcomes = coordinator.register_batch(requests, timeout=timeout)
    failed = _echo_summary(outcomes)
    if failed:
        raise click.ClickException(f"{failed} of {len(outcomes)} registrations failed.")
