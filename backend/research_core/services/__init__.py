"""Service layer public API.

Re-exports
----------
- Base primitives (from ``research_core.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Token and session lifecycle (from ``research_core.services.auth``)
    * :class:`TokenLifecycleManager`
    * :class:`AuthService`

- Access scoping (from ``research_core.services.access``)
    * :class:`AccessScopingService`

- Submission guard (from ``research_core.services.submissions``)
    * :class:`SubmissionValidator`
    * :func:`check_schema_conformance`, :func:`check_no_identifiers`
"""

from __future__ import annotations

from research_core.services._shared.base import BaseService, ServiceContext
from research_core.services.access import AccessScopingService
from research_core.services.auth import AuthService, TokenLifecycleManager
from research_core.services.submissions import (
    SubmissionValidator,
    check_no_identifiers,
    check_schema_conformance,
)

__all__ = [
    "AccessScopingService",
    "AuthService",
    "BaseService",
    "ServiceContext",
    "SubmissionValidator",
    "TokenLifecycleManager",
    "check_no_identifiers",
    "check_schema_conformance",
]
