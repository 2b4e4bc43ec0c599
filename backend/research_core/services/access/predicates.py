"""
Composable record predicates produced by the access scoping engine.

A predicate can be evaluated in memory (:meth:`matches`) or rendered as a
document filter (:meth:`to_dict`) for a persistence layer that speaks the
``{"field": value, "$or": [...]}`` dialect. Field names follow the research
record wire format (``orgId``, ``createdBy``, ``assignedStaff``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

ORG_FIELD = "orgId"
CREATOR_FIELD = "createdBy"
STAFF_FIELD = "assignedStaff"


class Predicate(Protocol):
    def matches(self, record: Mapping[str, Any]) -> bool: ...

    def to_dict(self) -> dict[str, Any]: ...


def _same(left: Any, right: Any) -> bool:
    # Ids arrive as ints, strings or driver objects; compare their text form.
    if left is None or right is None:
        return left is right
    return str(left) == str(right)


@dataclass(frozen=True, slots=True)
class MatchAll:
    """Neutral element: matches every record, renders as ``{}``."""

    def matches(self, record: Mapping[str, Any]) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class Eq:
    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return _same(record.get(self.field), self.value)

    def to_dict(self) -> dict[str, Any]:
        return {self.field: self.value}


@dataclass(frozen=True, slots=True)
class Contains:
    """``value`` is an element of the sequence stored under ``field``."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        members = record.get(self.field) or ()
        if isinstance(members, (str, bytes)):
            return False
        return any(_same(member, self.value) for member in members)

    def to_dict(self) -> dict[str, Any]:
        # Document stores treat equality against an array field as membership.
        return {self.field: self.value}


@dataclass(frozen=True, slots=True)
class And:
    clauses: tuple[Predicate, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(c.matches(record) for c in self.clauses)

    def to_dict(self) -> dict[str, Any]:
        rendered = [c.to_dict() for c in self.clauses]
        merged: dict[str, Any] = {}
        for part in rendered:
            if merged.keys() & part.keys():
                return {"$and": [p for p in rendered if p]}
            merged.update(part)
        return merged


@dataclass(frozen=True, slots=True)
class Or:
    clauses: tuple[Predicate, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(c.matches(record) for c in self.clauses)

    def to_dict(self) -> dict[str, Any]:
        return {"$or": [c.to_dict() for c in self.clauses]}


def all_of(*clauses: Predicate) -> Predicate:
    """Conjunction that drops :class:`MatchAll` terms and flattens nested ``And``."""
    flat: list[Predicate] = []
    for clause in clauses:
        if isinstance(clause, MatchAll):
            continue
        if isinstance(clause, And):
            flat.extend(clause.clauses)
        else:
            flat.append(clause)
    if not flat:
        return MatchAll()
    if len(flat) == 1:
        return flat[0]
    return And(tuple(flat))


def any_of(*clauses: Predicate) -> Predicate:
    if any(isinstance(c, MatchAll) for c in clauses):
        return MatchAll()
    if len(clauses) == 1:
        return clauses[0]
    return Or(tuple(clauses))


def from_mapping(filters: Mapping[str, Any] | None) -> Predicate:
    """Lift a plain ``{field: value}`` equality filter into a predicate."""
    if not filters:
        return MatchAll()
    return all_of(*(Eq(k, v) for k, v in filters.items()))


def as_predicate(base: Predicate | Mapping[str, Any] | None) -> Predicate:
    if base is None or isinstance(base, Mapping):
        return from_mapping(base)
    return base


def evaluate(predicate: Predicate, records: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Return the records visible through ``predicate`` (in-memory stores)."""
    return [r for r in records if predicate.matches(r)]
