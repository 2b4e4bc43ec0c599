"""RFC 7807 problem responses for every error that leaves the API.

Service errors are translated by :meth:`BaseService.translate_exceptions`;
framework, validation and database errors are mapped here. Problem bodies
carry a stable ``code`` and the request id, never token or answer values.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from research_core.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def code_for(status: int) -> str:
    return _CODES.get(status, "error")


def problem(
    status: int,
    code: str,
    detail: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a problem document for the current request."""
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": detail,
        "instance": request.path if has_request_context() else None,
        "code": code,
    }
    if details:
        body["details"] = details
    body["request_id"] = ensure_request_id()
    return body


def problem_response(body: dict[str, Any]) -> tuple[Response, int]:
    status = int(body["status"])
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    if status == HTTPStatus.UNAUTHORIZED:
        resp.headers["WWW-Authenticate"] = 'Bearer realm="api"'
    return resp, status


class APIError(Exception):
    """
    Error with a fixed HTTP mapping, raised by the delivery layer or produced
    by service error translation.

    :param message: Client-safe summary, rendered as ``detail``.
    :param status_code: HTTP status.
    :param code: Stable machine-readable code.
    :param details: Optional structured, client-safe payload.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code or type(self).status_code)
        self.code = code or type(self).code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return problem(self.status_code, self.code, self.message, self.details or None)


class NotFound(APIError):
    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class Unauthorized(APIError):
    """Missing, invalid or dead credential."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(APIError):
    """Authenticated but out of scope (role, tenant or closed organization)."""

    status_code = HTTPStatus.FORBIDDEN
    code = "forbidden"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class InvalidSubmission(APIError):
    """Rejected answer set; ``details`` name the field and reason, never the value."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "validation_error"

    def __init__(self, message: str, details: dict[str, Any]) -> None:
        super().__init__(message, details=details)


def init_app(app: Flask) -> None:
    """
    Register the problem handlers.

    4xx outcomes are logged as warnings without a traceback; 5xx outcomes are
    logged as errors with ``exc_info``.
    """
    from research_core.services._shared.base import BaseService
    from research_core.services._shared.errors import ServiceError

    translator = BaseService()

    def _emit(body: dict[str, Any], *, source: str, exc_info: bool = False):
        status = int(body["status"])
        if status >= 500:
            log.error("%s: code=%s status=%s", source, body["code"], status, exc_info=exc_info)
        else:
            log.warning("%s: code=%s status=%s", source, body["code"], status)
        return problem_response(body)

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _emit(err.to_problem(), source="APIError")

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = translator.translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover - every ServiceError maps
            raise err
        return _emit(translated.to_problem(), source=type(err).__name__)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            detail = f"Route '{request.path}' not found"
        else:
            detail = (err.description or HTTPStatus(status).phrase).strip()
        return _emit(problem(status, code_for(status), detail), source="HTTPException")

    @app.errorhandler(MarshmallowValidationError)
    def handle_payload_error(err: MarshmallowValidationError):
        body = problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            {"errors": err.messages},
        )
        return _emit(body, source="PayloadValidation")

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        body = problem(HTTPStatus.CONFLICT, "conflict", "Resource conflict")
        return _emit(body, source="IntegrityError")

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        body = problem(
            HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable", "Service temporarily unavailable"
        )
        return _emit(body, source="OperationalError", exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        body = problem(HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error")
        return _emit(body, source="Unhandled", exc_info=True)
