"""Flask CLI commands for refresh-token session management."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from research_core.core.services import get_services


@click.group("sessions")
def sessions_cli() -> None:
    """Refresh-token session commands."""


@sessions_cli.command("revoke-all")
@click.argument("user_id")
@with_appcontext
def revoke_all_command(user_id: str) -> None:
    """Revoke every refresh token of USER_ID.

    Use after a password change, a deactivation or a suspected compromise.
    Access tokens already issued stay valid until they expire.
    """
    services = get_services()
    user = services.directory.find_user_by_id(user_id)
    if user is None:
        raise click.ClickException(f"User {user_id} not found.")
    removed = services.lifecycle.revoke_all(user)
    click.echo(f"Revoked sessions for user {user.id}: {'yes' if removed else 'none active'}")
