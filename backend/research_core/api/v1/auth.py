"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request

from research_core.api.deps import current_principal, json_response, require_auth, timing
from research_core.core.services import get_services
from research_core.schemas import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    TokenPairSchema,
    UserSummarySchema,
    WhoAmISchema,
)
from research_core.services.auth.dto import LoginIn, LogoutIn, RefreshIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
token_schema = TokenPairSchema()
user_schema = UserSummarySchema()
whoami_schema = WhoAmISchema()


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_services().auth.login(LoginIn(email=data["email"], password=data["password"]))
    body = {
        "data": {
            "tokens": token_schema.dump(result.tokens),
            "user": user_schema.dump(result.user),
        }
    }
    return json_response(body)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token. The presented token cannot be used again."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_services().auth.refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/logout")
@timing
def logout():
    """End the session of the given refresh token. Always answers 204."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    get_services().auth.logout(
        LogoutIn(refresh_token=data["refresh_token"], all_sessions=data["all_sessions"])
    )
    return "", 204


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every session of the authenticated user."""

    get_services().auth.logout_all(current_principal().subject_id)
    return "", 204


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the authenticated principal."""

    return json_response({"data": whoami_schema.dump(current_principal())})
