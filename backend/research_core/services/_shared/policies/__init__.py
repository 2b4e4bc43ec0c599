from .tenancy import ORG_WIDE_ROLES, ensure_org_open, is_platform_role

__all__ = ["ORG_WIDE_ROLES", "ensure_org_open", "is_platform_role"]
