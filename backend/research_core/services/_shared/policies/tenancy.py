"""Tenant gates shared by authentication and authorization."""

from __future__ import annotations

import logging

from research_core.services._shared.dto import Role
from research_core.services._shared.errors import AuthorizationError
from research_core.services._shared.ports import IdentityDirectory

logger = logging.getLogger(__name__)

# Roles allowed to act on any resource inside (or across) organizations.
ORG_WIDE_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPERADMIN})


def is_platform_role(role: Role) -> bool:
    """Return True for roles that are not bound to a single organization."""
    return role is Role.SUPERADMIN


def ensure_org_open(
    directory: IdentityDirectory,
    *,
    user_id: str,
    role: Role,
    org_id: str | None,
) -> None:
    """
    Apply the organization kill switch.

    Superadmins bypass the gate. Everybody else needs an organization that
    exists, is active and has been approved.

    :raises AuthorizationError: When the organization is missing, inactive or not approved.
    """
    if is_platform_role(role):
        return
    org = directory.find_org_by_id(org_id) if org_id is not None else None
    if org is None or not org.is_open:
        logger.warning("auth.org_inactive", extra={"user_id": user_id, "org_id": org_id})
        raise AuthorizationError("Organization is inactive or not approved")
