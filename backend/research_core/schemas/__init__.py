"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    TokenPairSchema,
    UserSummarySchema,
    WhoAmISchema,
)
from .submission import FormItemSchema, FormSchemaSchema, SubmissionValidateSchema

__all__ = [
    "FormItemSchema",
    "FormSchemaSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshSchema",
    "SubmissionValidateSchema",
    "TokenPairSchema",
    "UserSummarySchema",
    "WhoAmISchema",
]
