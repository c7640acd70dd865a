"""
Typed product attributes.

An attribute's kind drives both the admin widget and the type of its value,
so each kind gets its own value class:

    text        -> TextValue(str)
    number      -> NumberValue(float)
    boolean     -> BooleanValue(bool)
    select      -> SelectValue(Optional[str])
    multiselect -> MultiSelectValue(tuple of str)
    color       -> ColorValue(tuple of str)

Attribute groups are immutable: every edit returns a new group whose sort
positions form a dense 0..n-1 sequence.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple, Union
import uuid

from storefront.errors import ValidationError
from storefront.utils.logger import get_logger

logger = get_logger("catalog.attributes")


class AttributeKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    COLOR = "color"


VARIANTABLE_KINDS = frozenset({AttributeKind.SELECT, AttributeKind.MULTISELECT, AttributeKind.COLOR})


@dataclass(frozen=True)
class TextValue:
    text: str = ""
    kind = AttributeKind.TEXT

    def is_empty(self) -> bool:
        return not self.text

    def to_raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class NumberValue:
    number: float = 0.0
    kind = AttributeKind.NUMBER

    def is_empty(self) -> bool:
        # 0 counts as "no value", as in the admin form
        return not self.number

    def to_raw(self) -> float:
        return self.number


@dataclass(frozen=True)
class BooleanValue:
    flag: bool = False
    kind = AttributeKind.BOOLEAN

    def is_empty(self) -> bool:
        return not self.flag

    def to_raw(self) -> bool:
        return self.flag


@dataclass(frozen=True)
class SelectValue:
    choice: Optional[str] = None
    kind = AttributeKind.SELECT

    def selections(self) -> Tuple[str, ...]:
        return (self.choice,) if self.choice else ()

    def is_empty(self) -> bool:
        return not self.choice

    def to_raw(self) -> str:
        return self.choice or ""


@dataclass(frozen=True)
class MultiSelectValue:
    choices: Tuple[str, ...] = ()
    kind = AttributeKind.MULTISELECT

    def selections(self) -> Tuple[str, ...]:
        return self.choices

    def is_empty(self) -> bool:
        return not self.choices

    def to_raw(self) -> List[str]:
        return list(self.choices)


@dataclass(frozen=True)
class ColorValue:
    choices: Tuple[str, ...] = ()
    kind = AttributeKind.COLOR

    def selections(self) -> Tuple[str, ...]:
        return self.choices

    def is_empty(self) -> bool:
        return not self.choices

    def to_raw(self) -> List[str]:
        return list(self.choices)


AttributeValue = Union[TextValue, NumberValue, BooleanValue, SelectValue, MultiSelectValue, ColorValue]


def _as_choices(raw: Any) -> Tuple[str, ...]:
    if raw is None or raw == "":
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(str(v) for v in raw)
    return (str(raw),)


def make_value(kind: Union[AttributeKind, str], raw: Any = None) -> AttributeValue:
    """
    Build the value class matching an attribute kind from loosely-typed input
    (API payloads, definition defaults).

    Args:
        kind: Attribute kind (enum or its string form)
        raw: Raw value; None gives the kind's empty value

    Returns:
        The typed value for this kind
    """
    kind = AttributeKind(kind)
    if kind is AttributeKind.TEXT:
        return TextValue("" if raw is None else str(raw))
    if kind is AttributeKind.NUMBER:
        if raw is None or raw == "":
            return NumberValue(0.0)
        try:
            return NumberValue(float(raw))
        except (TypeError, ValueError):
            raise ValidationError("error.invalid_number")
    if kind is AttributeKind.BOOLEAN:
        return BooleanValue(bool(raw))
    if kind is AttributeKind.SELECT:
        if isinstance(raw, (list, tuple)):
            raw = raw[0] if raw else None
        return SelectValue(str(raw) if raw else None)
    if kind is AttributeKind.MULTISELECT:
        return MultiSelectValue(_as_choices(raw))
    return ColorValue(_as_choices(raw))


@dataclass(frozen=True)
class AttributeDefinition:
    """Template for a characteristic a product may have."""
    name: str
    kind: AttributeKind
    options: Tuple[str, ...] = ()
    required: bool = False
    description: Optional[str] = None
    default_value: Any = None
    categories: Tuple[str, ...] = ("all",)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def applies_to(self, category_slug: str) -> bool:
        return "all" in self.categories or category_slug in self.categories


@dataclass(frozen=True)
class ProductAttribute:
    """An attribute attached to a product draft, holding the admin's value."""
    name: str
    value: AttributeValue
    options: Tuple[str, ...] = ()
    required: bool = False
    description: Optional[str] = None
    sort_order: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def kind(self) -> AttributeKind:
        return self.value.kind

    @property
    def is_variantable(self) -> bool:
        return self.kind in VARIANTABLE_KINDS

    @classmethod
    def from_definition(cls, definition: AttributeDefinition, sort_order: int = 0) -> "ProductAttribute":
        return cls(
            name=definition.name,
            value=make_value(definition.kind, definition.default_value),
            options=definition.options,
            required=definition.required,
            description=definition.description,
            sort_order=sort_order,
        )

    def with_value(self, raw: Any) -> "ProductAttribute":
        return replace(self, value=make_value(self.kind, raw))


def _densify(attributes: Iterable[ProductAttribute]) -> Tuple[ProductAttribute, ...]:
    return tuple(
        attr if attr.sort_order == index else replace(attr, sort_order=index)
        for index, attr in enumerate(attributes)
    )


@dataclass(frozen=True)
class AttributeGroup:
    """Named, ordered collection of product attributes with unique names."""
    name: str
    attributes: Tuple[ProductAttribute, ...] = ()
    sort_order: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        names = [attr.name for attr in self.attributes]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValidationError("error.duplicate_attribute", name=sorted(duplicates)[0])

    def has_attribute(self, name: str) -> bool:
        return any(attr.name == name for attr in self.attributes)

    def add_attribute(self, definition: AttributeDefinition) -> "AttributeGroup":
        if self.has_attribute(definition.name):
            raise ValidationError("error.duplicate_attribute", name=definition.name)
        new_attr = ProductAttribute.from_definition(definition, sort_order=len(self.attributes))
        logger.debug(f"Group {self.name!r}: added attribute {definition.name!r}")
        return replace(self, attributes=_densify(self.attributes + (new_attr,)))

    def update_attribute(self, updated: ProductAttribute) -> "AttributeGroup":
        if not any(attr.id == updated.id for attr in self.attributes):
            raise ValidationError("error.attribute_not_found")
        attributes = tuple(updated if attr.id == updated.id else attr for attr in self.attributes)
        return replace(self, attributes=_densify(attributes))

    def remove_attribute(self, attribute_id: str) -> "AttributeGroup":
        remaining = tuple(attr for attr in self.attributes if attr.id != attribute_id)
        if len(remaining) == len(self.attributes):
            raise ValidationError("error.attribute_not_found")
        return replace(self, attributes=_densify(remaining))

    def move_attribute(self, old_index: int, new_index: int) -> "AttributeGroup":
        return replace(self, attributes=_densify(_move(self.attributes, old_index, new_index)))

    def available_definitions(self, definitions: Iterable[AttributeDefinition]) -> List[AttributeDefinition]:
        """Definitions not already present in the group (by name)."""
        return [d for d in definitions if not self.has_attribute(d.name)]


def _move(items: Tuple[Any, ...], old_index: int, new_index: int) -> Tuple[Any, ...]:
    size = len(items)
    if not (0 <= old_index < size and 0 <= new_index < size):
        raise ValidationError("error.invalid_position")
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return tuple(moved)


def reorder_groups(groups: Iterable[AttributeGroup], old_index: int, new_index: int) -> List[AttributeGroup]:
    """Drag-and-drop reorder of groups; sort positions are recomputed."""
    moved = _move(tuple(groups), old_index, new_index)
    return [
        group if group.sort_order == index else replace(group, sort_order=index)
        for index, group in enumerate(moved)
    ]


def flatten(groups: Iterable[AttributeGroup]) -> List[ProductAttribute]:
    """All attributes, in group order then attribute order."""
    ordered = sorted(groups, key=lambda g: g.sort_order)
    return [attr for group in ordered for attr in sorted(group.attributes, key=lambda a: a.sort_order)]
