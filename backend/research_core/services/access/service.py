# research_core/services/access/service.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from research_core.services._shared.base import BaseService, ServiceContext
from research_core.services._shared.dto import Principal, Role
from research_core.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
)
from research_core.services._shared.policies import (
    ORG_WIDE_ROLES,
    ensure_org_open,
    is_platform_role,
)
from research_core.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    IdentityDirectory,
    TokenProvider,
)

from .predicates import (
    CREATOR_FIELD,
    ORG_FIELD,
    STAFF_FIELD,
    Contains,
    Eq,
    Predicate,
    all_of,
    any_of,
    as_predicate,
)

logger = logging.getLogger(__name__)


class AccessScopingService(BaseService):
    """
    Resolve who is calling and what they may see.

    Visibility by role:

    =============  ==========================================================
    superadmin     every record (platform-wide)
    admin          every record of its organization
    researcher     records of its organization it created or is assigned to
    staff          records of its organization it is assigned to
    =============  ==========================================================
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        directory: IdentityDirectory,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.directory = directory

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    def authenticate(self, access_token: str | None) -> Principal:
        """
        Turn a bearer access token into a :class:`Principal`.

        :raises AuthenticationError: Missing/invalid/expired token, or a
            missing or deactivated user.
        :raises AuthorizationError: The user's organization is inactive or
            not approved (kill switch); superadmins are exempt.
        """
        if not access_token:
            raise AuthenticationError()
        try:
            claims = self.tokens.decode(access_token, token_type=ACCESS_TOKEN_TYPE)
        except InvalidTokenError as exc:
            raise AuthenticationError("Invalid or expired token") from exc

        user = self.directory.find_user_by_id(str(claims.get("sub")))
        if user is None or not user.is_active:
            raise AuthenticationError("User inactive or not found")

        principal = self._principal_from_claims(claims, fallback_role=user.role)
        ensure_org_open(
            self.directory,
            user_id=principal.subject_id,
            role=principal.role,
            org_id=principal.org_id,
        )
        return principal

    @staticmethod
    def _principal_from_claims(claims: Mapping[str, Any], *, fallback_role: Role) -> Principal:
        try:
            role = Role(claims.get("role") or fallback_role)
        except ValueError as exc:
            raise AuthenticationError("Invalid or expired token") from exc
        org_id = claims.get("orgId")
        return Principal(
            subject_id=str(claims["sub"]),
            role=role,
            org_id=str(org_id) if org_id is not None else None,
        )

    # ------------------------------------------------------------------ #
    # Scoping
    # ------------------------------------------------------------------ #

    def scope_query(
        self,
        principal: Principal,
        base_filter: Predicate | Mapping[str, Any] | None = None,
    ) -> Predicate:
        """
        Narrow ``base_filter`` to the records ``principal`` may see.

        The result is advisory: the persistence layer applies it through
        :meth:`Predicate.to_dict` or :meth:`Predicate.matches`.
        """
        base = as_predicate(base_filter)
        if is_platform_role(principal.role):
            return base

        in_org = Eq(ORG_FIELD, principal.org_id)
        if principal.role is Role.ADMIN:
            return all_of(base, in_org)
        if principal.role is Role.RESEARCHER:
            mine = any_of(
                Eq(CREATOR_FIELD, principal.subject_id),
                Contains(STAFF_FIELD, principal.subject_id),
            )
            return all_of(base, in_org, mine)
        if principal.role is Role.STAFF:
            return all_of(base, in_org, Contains(STAFF_FIELD, principal.subject_id))

        raise AuthorizationError("Forbidden")

    # ------------------------------------------------------------------ #
    # Guards
    # ------------------------------------------------------------------ #

    def ensure_org_access(self, principal: Principal | None, resource_org_id: Any) -> None:
        """
        Check that ``principal`` may touch a resource owned by ``resource_org_id``.

        Admins and superadmins always pass, as does a resource without an
        owning organization.
        """
        if principal is None:
            raise AuthenticationError()
        if resource_org_id is None or principal.role in ORG_WIDE_ROLES:
            return
        if principal.org_id is None or str(principal.org_id) != str(resource_org_id):
            raise AuthorizationError("Forbidden")

    def require_role(self, principal: Principal | None, allowed_roles: Iterable[Role | str]) -> None:
        if principal is None:
            raise AuthenticationError()
        # Compared by value; names that are not roles never match.
        allowed = {getattr(r, "value", r) for r in allowed_roles}
        if principal.role.value not in allowed:
            raise AuthorizationError("Forbidden")
