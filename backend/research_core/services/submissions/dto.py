# research_core/services/submissions/dto.py
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

FIELD_TYPES = ("text", "dropdown", "checkboxes", "scale")


@dataclass(frozen=True, slots=True)
class ScaleRange:
    """Inclusive bounds of a ``scale`` item. Either bound may be open."""

    minimum: float | None = None
    maximum: float | None = None

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True, slots=True)
class FormItem:
    """
    One question of a form.

    :param link_id: Answer key, unique within the form.
    :param type: ``text``, ``dropdown``, ``checkboxes`` or ``scale``. Other
        values are kept so the validator can reject answers to them.
    :param options: Allowed selections; ``None`` means unrestricted.
    :param scale: Bounds for ``scale`` items.
    """

    link_id: str
    type: str
    options: tuple[str, ...] | None = None
    scale: ScaleRange | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FormItem:
        options = data.get("options")
        scale = data.get("scale")
        return cls(
            link_id=str(data["linkId"]),
            type=str(data.get("type", "")),
            options=tuple(str(o) for o in options) if options is not None else None,
            scale=(
                ScaleRange(minimum=scale.get("min"), maximum=scale.get("max"))
                if isinstance(scale, Mapping)
                else None
            ),
        )


@dataclass(frozen=True, slots=True)
class FormSchema:
    """Ordered form items, looked up by ``linkId``."""

    items: tuple[FormItem, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item in self.items:
            if item.link_id in seen:
                raise ValueError(f"Duplicate linkId {item.link_id!r} in form schema.")
            seen.add(item.link_id)

    def get(self, link_id: str) -> FormItem | None:
        for item in self.items:
            if item.link_id == link_id:
                return item
        return None

    @classmethod
    def from_items(cls, items: Iterable[Mapping[str, Any]]) -> FormSchema:
        return cls(items=tuple(FormItem.from_dict(i) for i in items))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FormSchema:
        """Build from the stored form document ``{"items": [...]}``."""
        return cls.from_items(data.get("items") or ())
