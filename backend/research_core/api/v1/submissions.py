"""Submission guard endpoint."""

from __future__ import annotations

from flask import Blueprint, request

from research_core.api.deps import json_response, require_auth, require_roles, service_context, timing
from research_core.core.services import get_services
from research_core.schemas import SubmissionValidateSchema
from research_core.services._shared.dto import Role

bp = Blueprint("submissions", __name__)

validate_schema = SubmissionValidateSchema()


@bp.post("/validate")
@require_auth
@require_roles(Role.ADMIN, Role.RESEARCHER, Role.STAFF)
@timing
def validate_submission():
    """Run the identifier guard and schema conformance on an answer set.

    Returns ``{"data": {"valid": true}}``; rejections are 422 problems whose
    details name the field and reason but never the submitted value.
    """

    data = validate_schema.load(request.get_json(silent=True) or {})
    validator = get_services().submission_validator(service_context())
    validator.validate(data["answers"], data["form"])
    return json_response({"data": {"valid": True}})
