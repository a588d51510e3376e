"""Flask CLI commands for session incident response."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from identity_service.api.deps import get_auth_service
from identity_service.services._shared.errors import ServiceError

LOGGER = logging.getLogger(__name__)


@click.group("sessions")
def sessions_cli() -> None:
    """Inspect and revoke refresh-token sessions."""


@sessions_cli.command("revoke-all")
@click.argument("user_id")
@with_appcontext
def revoke_all(user_id: str) -> None:
    """Revoke every active session of USER_ID (e.g. after a credential leak)."""
    try:
        revoked = get_auth_service().revoke_all_sessions(user_id)
    except ServiceError as exc:
        raise click.BadParameter(str(exc), param_hint="USER_ID") from exc
    LOGGER.warning("cli.sessions.revoke_all", extra={"user_id": user_id, "reason": "operator"})
    click.echo(f"Revoked {revoked} session(s) for user {user_id}.")
