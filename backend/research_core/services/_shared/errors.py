"""
Errors raised by services, ports and adapters.

Nothing here knows about HTTP; :meth:`BaseService.translate_exceptions`
maps each family to a problem response. Messages are safe to show to a
client: they never contain token strings or answer values.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


class ServiceError(Exception):
    """Root of the service error hierarchy (400 unless a subclass says otherwise)."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """A store has no ``entity`` under ``key``."""

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} {self.key} does not exist"


# --------------------------------------------------------------------------- #
# Authentication / authorization
# --------------------------------------------------------------------------- #


class AuthenticationError(ServiceError):
    """No credential, or the credential is invalid/expired (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Valid credential but insufficient scope (403)."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """A refresh (or access) token failed verification or has no live record."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class HashMismatchError(InvalidTokenError):
    """The stored hash for the token id does not verify against the raw token."""

    def __init__(self, message: str = "Refresh token mismatch") -> None:
        super().__init__(message)


class TokenReusedError(InvalidTokenError):
    """A correctly signed, unexpired refresh token whose record is already gone."""

    def __init__(self, message: str = "Refresh token is no longer valid") -> None:
        super().__init__(message)


class ConcurrentModificationError(ServiceError):
    """
    Raised by a credential store when a compare-and-swap write loses a race.

    Surfaced to clients as ``401`` so the race is never exposed.
    """

    def __init__(self, user_id: str, expected_version: int) -> None:
        super().__init__(
            f"Token list for user {user_id} changed (expected version {expected_version})"
        )
        self.user_id = user_id
        self.expected_version = expected_version


# --------------------------------------------------------------------------- #
# Submission validation
# --------------------------------------------------------------------------- #


class SubmissionValidationError(ServiceError):
    """
    Base class for answer-set rejections.

    :param field: Answer key (``linkId``) that caused the rejection.
    :param reason: Short, client-safe explanation. Never includes the value.
    """

    code = "invalid_submission"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_details(self) -> dict[str, object]:
        """Return structured, value-free details for the API layer."""
        return {"field": self.field, "reason": self.reason, "code": self.code}


class UnknownFieldError(SubmissionValidationError):
    code = "unknown_field"

    def __init__(self, field: str) -> None:
        super().__init__(field, f"Unknown linkId {field}")


class InvalidFieldValueError(SubmissionValidationError):
    code = "invalid_value"


class InvalidSelectionError(SubmissionValidationError):
    code = "invalid_selection"

    def __init__(self, field: str, entries: Iterable[str]) -> None:
        self.entries = tuple(entries)
        joined = ", ".join(self.entries)
        super().__init__(field, f"Selections [{joined}] not allowed for {field}")

    def to_details(self) -> dict[str, object]:
        details = super().to_details()
        details["entries"] = list(self.entries)
        return details


class OutOfRangeError(SubmissionValidationError):
    code = "out_of_range"

    def __init__(self, field: str, minimum: float | None, maximum: float | None) -> None:
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(field, f"Value for {field} must be between {minimum} and {maximum}")


class UnsupportedFieldTypeError(SubmissionValidationError):
    code = "unsupported_field_type"

    def __init__(self, field: str, field_type: str) -> None:
        self.field_type = field_type
        super().__init__(field, f"Unsupported field type for {field}")


class DisallowedFieldError(SubmissionValidationError):
    code = "disallowed_field"

    def __init__(self, field: str) -> None:
        super().__init__(field, f"Field {field} not permitted")


class PotentialIdentifierError(SubmissionValidationError):
    code = "potential_identifier"

    def __init__(self, field: str, detector: str) -> None:
        self.detector = detector
        super().__init__(field, "Potential identifier detected in answers")

    def to_details(self) -> dict[str, object]:
        details = super().to_details()
        details["detector"] = self.detector
        return details
