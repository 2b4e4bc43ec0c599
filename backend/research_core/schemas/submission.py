"""Submission validation payload schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, post_load, validate

from research_core.services.submissions import FormItem, FormSchema, ScaleRange


class ScaleRangeSchema(Schema):
    minimum = fields.Float(data_key="min", load_default=None, allow_none=True)
    maximum = fields.Float(data_key="max", load_default=None, allow_none=True)

    @post_load
    def make_range(self, data: dict[str, Any], **kwargs: Any) -> ScaleRange:
        return ScaleRange(**data)


class FormItemSchema(Schema):
    """One form question. ``type`` is not restricted here; the validator rejects unknown types."""

    link_id = fields.String(data_key="linkId", required=True, validate=validate.Length(min=1))
    type = fields.String(required=True)
    options = fields.List(fields.String(), load_default=None, allow_none=True)
    scale = fields.Nested(ScaleRangeSchema, load_default=None, allow_none=True)

    @post_load
    def make_item(self, data: dict[str, Any], **kwargs: Any) -> FormItem:
        options = data.get("options")
        return FormItem(
            link_id=data["link_id"],
            type=data["type"],
            options=tuple(options) if options is not None else None,
            scale=data.get("scale"),
        )


class FormSchemaSchema(Schema):
    items = fields.List(fields.Nested(FormItemSchema), required=True)

    @post_load
    def make_form(self, data: dict[str, Any], **kwargs: Any) -> FormSchema:
        try:
            return FormSchema(items=tuple(data["items"]))
        except ValueError as exc:
            raise ValidationError(str(exc), field_name="items") from exc


class SubmissionValidateSchema(Schema):
    """Input payload for ``POST /submissions/validate``."""

    form = fields.Nested(FormSchemaSchema, data_key="schema", required=True)
    answers = fields.Dict(keys=fields.String(), required=True)
