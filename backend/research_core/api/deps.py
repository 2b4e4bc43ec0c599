"""Shared API helpers: bearer authentication, role guards, JSON responses."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar, cast

from flask import Response, g, jsonify, make_response, request

from research_core.core.logger import ensure_request_id
from research_core.core.services import get_services
from research_core.services._shared.base import ServiceContext
from research_core.services._shared.dto import Principal, Role

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def bearer_token() -> str | None:
    """Extract the token from ``Authorization: Bearer <token>``."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def current_principal() -> Principal:
    """Return the principal resolved by :func:`require_auth`."""
    return cast(Principal, g.principal)


def service_context() -> ServiceContext:
    principal: Principal | None = getattr(g, "principal", None)
    return ServiceContext(
        actor_id=principal.subject_id if principal else None,
        org_id=principal.org_id if principal else None,
        request_id=ensure_request_id(),
    )


def require_auth(func: F) -> F:
    """Authenticate the bearer access token and store the principal in ``g``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        # Service errors propagate to the RFC 7807 handlers in core.errors.
        g.principal = get_services().access.authenticate(bearer_token())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*roles: Role | str) -> Callable[[F], F]:
    """Restrict an authenticated endpoint to ``roles``. Stack under ``require_auth``."""

    allowed: Iterable[Role] = tuple(Role(r) for r in roles)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            get_services().access.require_role(getattr(g, "principal", None), allowed)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def json_response(payload: Any, *, status: int = 200) -> Response:
    return make_response(jsonify(payload), status)


def timing(func: F) -> F:
    """Log the handler's wall time (``elapsed_ms``) at DEBUG."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            log.debug(
                "request.elapsed",
                extra={
                    "endpoint": request.endpoint,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )

    return wrapper  # type: ignore[return-value]
