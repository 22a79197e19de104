"""
Argument validator.

Checks a proposed call against the tool's full schema and reports the
first violation only, in a fixed order:

1. required properties (declaration order)
2. declared property kinds (declaration order), recursing into nested
   objects and array items
3. undeclared properties when the schema sets additionalProperties: false
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from deferred_tools.abstractions.dto.tools import ValidationResult
from deferred_tools.domain.schema import SchemaNode, ValueKind, kind_of, matches_kind
from deferred_tools.exceptions import ToolNotFound
from deferred_tools.orchestration.catalog import ToolCatalog

logger = logging.getLogger(__name__)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _check_kind(node: SchemaNode, value: Any, path: str) -> Optional[str]:
    try:
        actual = kind_of(value)
    except TypeError:
        return f"Property '{path}' has unsupported value type {type(value).__name__}"

    if node.kinds and not any(matches_kind(value, k) for k in node.kinds):
        return f"Property '{path}' expected {node.describe_kinds()}, got {actual.value}"

    if actual is ValueKind.OBJECT:
        return _check_object(node, value, path)
    if actual is ValueKind.ARRAY and node.items is not None:
        for i, item in enumerate(value):
            error = _check_kind(node.items, item, f"{path}[{i}]")
            if error:
                return error
    return None


def _check_object(node: SchemaNode, value: Dict[str, Any], path: str = "") -> Optional[str]:
    for name in node.required:
        if name not in value:
            return f"Missing required property '{_join(path, name)}'"

    for name, prop in node.properties:
        if name in value:
            error = _check_kind(prop, value[name], _join(path, name))
            if error:
                return error

    if not node.additional_properties:
        declared = {name for name, _ in node.properties}
        for name in value:
            if name not in declared:
                return f"Unexpected property '{_join(path, name)}'"
    return None


def check_arguments(schema: SchemaNode, arguments: Any) -> Optional[str]:
    """First violation of arguments against schema, or None."""
    if not isinstance(arguments, dict):
        return f"Arguments must be an object, got {type(arguments).__name__}"
    return _check_object(schema, arguments)


class Validator:
    def __init__(self, catalog: ToolCatalog) -> None:
        self.catalog = catalog

    def validate(self, tool_name: str, arguments: Any) -> ValidationResult:
        try:
            definition = self.catalog.schema(tool_name)
        except ToolNotFound as e:
            return ValidationResult.invalid(str(e), tool_name=tool_name)

        error = check_arguments(definition.schema, arguments)
        if error:
            logger.debug(f"Validation failed for '{tool_name}': {error}")
            return ValidationResult.invalid(error, tool_name=tool_name)
        return ValidationResult.ok(tool_name=tool_name)


__all__ = ["Validator", "check_arguments"]
