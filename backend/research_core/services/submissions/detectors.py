"""
Heuristic detectors for direct identifiers in free-text answers.

Detectors run in a fixed order and the first match wins. This is a leak guard,
not a de-identification system: grouped digits such as lab values can be
flagged by :class:`NumericIdPattern`, which is why that detector can be
switched off.
"""

from __future__ import annotations

import re
from typing import ClassVar


class IdentifierPattern:
    """Base detector: a tag plus a compiled pattern searched anywhere in the text."""

    tag: ClassVar[str]
    regex: ClassVar[re.Pattern[str]]

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} tag={self.tag}>"


class EmailPattern(IdentifierPattern):
    tag = "email"
    regex = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE | re.ASCII)


class PhonePattern(IdentifierPattern):
    """3-3-4 grouped digits with optional ``-``, ``.`` or space separators."""

    tag = "phone"
    regex = re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b", re.ASCII)


class NumericIdPattern(IdentifierPattern):
    """Four groups of 2-4 digits (record numbers, card-like ids)."""

    tag = "numeric_id"
    regex = re.compile(r"\b\d{2,3}[-.\s]?\d{2,3}[-.\s]?\d{2,3}[-.\s]?\d{2,4}\b", re.ASCII)


class SsnLikePattern(IdentifierPattern):
    tag = "ssn_like"
    regex = re.compile(r"\b\d{3}-\d{2}-\d{4}\b", re.ASCII)


DEFAULT_DETECTORS: tuple[IdentifierPattern, ...] = (
    EmailPattern(),
    PhonePattern(),
    NumericIdPattern(),
    SsnLikePattern(),
)


def detectors_for(*, numeric_id_guard: bool = True) -> tuple[IdentifierPattern, ...]:
    """Return the ordered detector set for the requested strictness."""
    if numeric_id_guard:
        return DEFAULT_DETECTORS
    return tuple(d for d in DEFAULT_DETECTORS if not isinstance(d, NumericIdPattern))


def first_match(
    text: str, detectors: tuple[IdentifierPattern, ...] = DEFAULT_DETECTORS
) -> IdentifierPattern | None:
    for detector in detectors:
        if detector.matches(text):
            return detector
    return None
