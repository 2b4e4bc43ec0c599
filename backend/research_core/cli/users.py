"""Flask CLI commands for bootstrapping platform accounts."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from research_core.core.services import get_services
from research_core.infra.sqlalchemy.sqlalchemy_directory import user_to_record
from research_core.models import User
from research_core.services._shared.dto import Role
from research_core.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("users")
def users_cli() -> None:
    """User administration commands."""


@users_cli.command("create-superadmin")
@click.option("--email", required=True, help="Login email of the superadmin.")
@click.option("--display-name", default="Platform Admin", show_default=True)
@click.password_option(help="Password (prompted when omitted).")
@with_appcontext
def create_superadmin_command(email: str, display_name: str, password: str) -> None:
    """Create or reset the platform superadmin (upsert by email).

    Resetting an existing account also revokes its refresh tokens.
    """
    with SQLAlchemyUnitOfWork() as uow:
        user = uow.users.get_by_email(email)
        created = user is None
        if user is None:
            user = User(email=email, role=Role.SUPERADMIN, org_id=None)
            user.password = password
            user.display_name = display_name
            uow.users.add(user)
        else:
            user.password = password
            uow.users.assign_updates(
                user,
                {
                    "display_name": display_name,
                    "role": Role.SUPERADMIN,
                    "org_id": None,
                    "is_active": True,
                },
            )
        record = user_to_record(user)

    if not created:
        get_services().lifecycle.revoke_all(record)

    LOGGER.info("users.superadmin_ready", extra={"user_id": record.id})
    click.echo(f"Superadmin ready: {record.email} (id={record.id}, created={created})")
