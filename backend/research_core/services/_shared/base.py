"""Service base class: request context, clock and error translation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from research_core.core import errors as api_errors
from research_core.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConcurrentModificationError,
    NotFoundError,
    ServiceError,
    SubmissionValidationError,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ServiceContext:
    """
    Request-scoped data handed to services by the delivery layer.

    :param actor_id: Authenticated user id, when known.
    :param org_id: Organization of the acting user.
    :param request_id: Correlation id stamped on log records.
    """

    actor_id: str | None = None
    org_id: str | None = None
    request_id: str | None = None


# Checked in order; ServiceError is the 400 fallback.
_TRANSLATIONS: tuple[tuple[type[ServiceError], Callable[[ServiceError], api_errors.APIError]], ...] = (
    (NotFoundError, lambda e: api_errors.NotFound(str(e))),
    (
        ConcurrentModificationError,
        lambda e: api_errors.Unauthorized("Refresh token is no longer valid. Please sign in."),
    ),
    (AuthenticationError, lambda e: api_errors.Unauthorized(str(e))),
    (AuthorizationError, lambda e: api_errors.Forbidden(str(e))),
    (
        SubmissionValidationError,
        lambda e: api_errors.InvalidSubmission(e.reason, details=e.to_details()),  # type: ignore[attr-defined]
    ),
    (ServiceError, lambda e: api_errors.APIError(str(e))),
)


class BaseService:
    """
    Common base for the application services.

    Services never touch Flask request state or the ORM directly; the
    delivery layer passes a :class:`ServiceContext` and the composition root
    injects ports.
    """

    def __init__(self, *, ctx: ServiceContext | None = None, clock: Clock | None = None) -> None:
        self.ctx = ctx or ServiceContext()
        self._clock: Clock = clock or utc_now

    def now_utc(self) -> datetime:
        return self._clock()

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service error to the :class:`~research_core.core.errors.APIError`
        rendered for it. Anything else is returned unchanged.
        """
        for kind, build in _TRANSLATIONS:
            if isinstance(exc, kind):
                return build(exc)
        return exc
