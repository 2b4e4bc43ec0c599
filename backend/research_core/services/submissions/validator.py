# research_core/services/submissions/validator.py
from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any

from research_core.services._shared.base import BaseService, ServiceContext
from research_core.services._shared.errors import (
    DisallowedFieldError,
    InvalidFieldValueError,
    InvalidSelectionError,
    OutOfRangeError,
    PotentialIdentifierError,
    SubmissionValidationError,
    UnknownFieldError,
    UnsupportedFieldTypeError,
)

from .detectors import IdentifierPattern, detectors_for, first_match
from .dto import FormItem, FormSchema

logger = logging.getLogger(__name__)

# Answer keys whose label alone signals a direct identifier (substring, case-insensitive).
DENYLIST_KEYS: tuple[str, ...] = ("name", "email", "phone", "address")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# --------------------------------------------------------------------------- #
# Schema conformance
# --------------------------------------------------------------------------- #


def _check_item(item: FormItem, value: Any) -> None:
    link_id = item.link_id

    if item.type == "text":
        if not isinstance(value, str):
            raise InvalidFieldValueError(link_id, f"Expected string for {link_id}")

    elif item.type == "dropdown":
        if not isinstance(value, str):
            raise InvalidFieldValueError(link_id, f"Expected single selection for {link_id}")
        if item.options is not None and value not in item.options:
            raise InvalidSelectionError(link_id, [value])

    elif item.type == "checkboxes":
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple)):
            raise InvalidFieldValueError(link_id, f"Expected array for {link_id}")
        if not all(isinstance(entry, str) for entry in value):
            raise InvalidFieldValueError(link_id, f"Each selection for {link_id} must be text")
        if item.options is not None:
            unknown = [entry for entry in value if entry not in item.options]
            if unknown:
                raise InvalidSelectionError(link_id, unknown)

    elif item.type == "scale":
        if not _is_number(value) or not math.isfinite(value):
            raise InvalidFieldValueError(link_id, f"Expected numeric value for {link_id}")
        if item.scale is not None and not item.scale.contains(value):
            raise OutOfRangeError(link_id, item.scale.minimum, item.scale.maximum)

    else:
        raise UnsupportedFieldTypeError(link_id, item.type)


def check_schema_conformance(
    answers: Mapping[str, Any] | None,
    schema: FormSchema | Mapping[str, Any],
) -> None:
    """
    Check every answer against the form it claims to fill.

    Fail-fast: the first violation rejects the whole answer set.

    :param answers: ``{linkId: value}`` mapping. ``None`` is an empty submission.
    :param schema: Parsed :class:`FormSchema` or the raw ``{"items": [...]}`` document.
    :raises UnknownFieldError: An answer key is not in the form.
    :raises InvalidFieldValueError: The value has the wrong shape for its item type.
    :raises InvalidSelectionError: Selections outside the item's options.
    :raises OutOfRangeError: Scale value outside ``[min, max]``.
    :raises UnsupportedFieldTypeError: The item has an unknown type.
    """
    form = schema if isinstance(schema, FormSchema) else FormSchema.from_dict(schema)
    for link_id, value in (answers or {}).items():
        item = form.get(str(link_id))
        if item is None:
            raise UnknownFieldError(str(link_id))
        _check_item(item, value)


# --------------------------------------------------------------------------- #
# Identifier guard
# --------------------------------------------------------------------------- #


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _inspect(path: str, key: str, value: Any, detectors: tuple[IdentifierPattern, ...]) -> None:
    lowered = key.lower()
    if any(denied in lowered for denied in DENYLIST_KEYS):
        raise DisallowedFieldError(path)

    if value is None or isinstance(value, bool) or _is_number(value):
        return
    if isinstance(value, (list, tuple)):
        for entry in value:
            _inspect(path, key, entry, detectors)
        return
    if isinstance(value, Mapping):
        for child_key, child in value.items():
            _inspect(f"{path}.{child_key}", str(child_key), child, detectors)
        return

    hit = first_match(_stringify(value), detectors)
    if hit is not None:
        raise PotentialIdentifierError(path, hit.tag)


def check_no_identifiers(
    answers: Mapping[str, Any] | None,
    *,
    numeric_id_guard: bool = True,
) -> None:
    """
    Reject answer sets that look like they carry direct identifiers.

    Keys are checked against :data:`DENYLIST_KEYS` before their values are
    scanned. Strings are matched against the detectors in order; numbers and
    booleans are exempt; lists and nested mappings are inspected element-wise.

    :param numeric_id_guard: Include the broad grouped-digits detector.
    :raises DisallowedFieldError: A key names an identifier field.
    :raises PotentialIdentifierError: A value matched a detector.
    """
    detectors = detectors_for(numeric_id_guard=numeric_id_guard)
    for key, value in (answers or {}).items():
        _inspect(str(key), str(key), value, detectors)


# --------------------------------------------------------------------------- #
# Service facade
# --------------------------------------------------------------------------- #


class SubmissionValidator(BaseService):
    """Run both submission checks with the configured strictness and log rejections."""

    def __init__(self, *, numeric_id_guard: bool = True, ctx: ServiceContext | None = None):
        super().__init__(ctx=ctx)
        self.numeric_id_guard = numeric_id_guard

    def validate(
        self,
        answers: Mapping[str, Any] | None,
        schema: FormSchema | Mapping[str, Any],
    ) -> None:
        """
        :raises SubmissionValidationError: On the first failing check.
        """
        try:
            check_no_identifiers(answers, numeric_id_guard=self.numeric_id_guard)
            check_schema_conformance(answers, schema)
        except SubmissionValidationError as exc:
            extra: dict[str, Any] = {"field": exc.field, "user_id": self.ctx.actor_id}
            if isinstance(exc, PotentialIdentifierError):
                extra["detector"] = exc.detector
            logger.warning("submission.rejected", extra=extra)
            raise
