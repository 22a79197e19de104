"""
Parameter schema tree and argument value kinds.

Tool parameter schemas arrive as JSON-Schema-shaped dicts. They are parsed
once into an immutable SchemaNode tree so validation walks a fixed,
ordered structure instead of re-reading raw dicts:

- kinds: the accepted value kinds (empty tuple means "any")
- properties: ordered (name, SchemaNode) pairs in declaration order
- required: required property names in declaration order
- items: schema for array elements, if declared
- additional_properties: False when undeclared properties are forbidden
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded JSON value. Integers report as NUMBER."""
    # bool is a subclass of int; check it first
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported argument value type: {type(value).__name__}")


def matches_kind(value: Any, kind: ValueKind) -> bool:
    actual = kind_of(value)
    if kind is ValueKind.INTEGER:
        if actual is not ValueKind.NUMBER:
            return False
        return isinstance(value, int) or float(value).is_integer()
    return actual is kind


@dataclass(frozen=True)
class SchemaNode:
    kinds: Tuple[ValueKind, ...] = ()
    properties: Tuple[Tuple[str, "SchemaNode"], ...] = ()
    required: Tuple[str, ...] = ()
    items: Optional["SchemaNode"] = None
    additional_properties: bool = True
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def parse(cls, raw: Optional[Dict[str, Any]]) -> "SchemaNode":
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Schema must be an object, got {type(raw).__name__}")

        declared = raw.get("type")
        if declared is None:
            names: Tuple[str, ...] = ()
        elif isinstance(declared, str):
            names = (declared,)
        else:
            names = tuple(declared)
        try:
            kinds = tuple(ValueKind(n) for n in names)
        except ValueError as e:
            raise ValueError(f"Unknown schema type in {names!r}") from e

        props = raw.get("properties") or {}
        properties = tuple((name, cls.parse(sub)) for name, sub in props.items())
        items = cls.parse(raw["items"]) if isinstance(raw.get("items"), dict) else None

        return cls(
            kinds=kinds,
            properties=properties,
            required=tuple(raw.get("required") or ()),
            items=items,
            additional_properties=raw.get("additionalProperties", True) is not False,
            raw=raw,
        )

    def property(self, name: str) -> Optional["SchemaNode"]:
        for prop_name, node in self.properties:
            if prop_name == name:
                return node
        return None

    def describe_kinds(self) -> str:
        return " or ".join(k.value for k in self.kinds) if self.kinds else "any"


__all__ = ["ValueKind", "SchemaNode", "kind_of", "matches_kind"]
