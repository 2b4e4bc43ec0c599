"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload carrying the refresh token to rotate."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class LogoutSchema(Schema):
    """Input payload for ending one session (or all of them)."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))
    all_sessions = fields.Boolean(load_default=False)


class TokenPairSchema(Schema):
    """Response payload containing an access/refresh pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class UserSummarySchema(Schema):
    """Public projection of a user; never includes credentials."""

    id = fields.String(required=True)
    email = fields.Email(allow_none=True)
    role = fields.Function(lambda u: getattr(u.role, "value", u.role))
    org_id = fields.String(allow_none=True, data_key="orgId")


class WhoAmISchema(Schema):
    """Response payload describing the authenticated principal."""

    subject_id = fields.String(required=True, data_key="id")
    role = fields.Function(lambda p: getattr(p.role, "value", p.role))
    org_id = fields.String(allow_none=True, data_key="orgId")
