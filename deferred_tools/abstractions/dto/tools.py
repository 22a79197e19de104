"""
Shared tool DTOs for the catalog, validator and orchestrator.
"""
from __future__ import annotations

import copy
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from deferred_tools.domain.schema import SchemaNode
from deferred_tools.exceptions import SchemaValidationError


@dataclass(frozen=True)
class ToolDefinition:
    """Full tool contract: what is needed to validate and execute a call."""
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    schema: SchemaNode = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tool definition requires a non-empty name")
        # the definition owns its schema; callers keep their own dict
        object.__setattr__(self, "parameters", copy.deepcopy(self.parameters))
        object.__setattr__(self, "schema", SchemaNode.parse(self.parameters))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDefinition":
        """
        Accepts the common listing shapes:
        {name, description, parameters} / {name, description, input_schema}
        / {type: "function", function: {...}}.
        """
        if "function" in data and isinstance(data["function"], dict):
            data = data["function"]
        params = data.get("parameters")
        if params is None:
            params = data.get("input_schema") or data.get("inputSchema")
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            parameters=params or {"type": "object", "properties": {}},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": copy.deepcopy(self.parameters)}


@dataclass(frozen=True)
class ToolMetadata:
    """Schema-free projection of a ToolDefinition."""
    name: str
    description: str

    @classmethod
    def of(cls, definition: ToolDefinition) -> "ToolMetadata":
        return cls(name=definition.name, description=definition.description)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    tool_name: str = ""

    @classmethod
    def ok(cls, tool_name: str = "") -> "ValidationResult":
        return cls(valid=True, tool_name=tool_name)

    @classmethod
    def invalid(cls, error: str, tool_name: str = "") -> "ValidationResult":
        return cls(valid=False, error=error, tool_name=tool_name)

    def to_error(self) -> Optional[SchemaValidationError]:
        """SchemaValidationError for an invalid result; None when valid."""
        if self.valid:
            return None
        return SchemaValidationError(self.tool_name, self.error or "invalid arguments")


@dataclass(frozen=True)
class ToolCallRequest:
    """One model-requested tool call."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")

    def with_correction(self, corrected: "ToolCallRequest") -> "ToolCallRequest":
        """Corrected name/arguments under this call's id."""
        return ToolCallRequest(name=corrected.name, arguments=dict(corrected.arguments), id=self.id)


@dataclass
class ToolCallAttempt:
    """Transient record of one validation pass inside a resolution cycle."""
    round: int
    tool_name: str
    arguments: Dict[str, Any]
    outcome: str  # "valid" | "invalid" | "no_correction"
    error: Optional[str] = None


@dataclass
class ToolExecutionOutcome:
    call: ToolCallRequest
    ok: bool
    value: Any = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    attempts: List[ToolCallAttempt] = field(default_factory=list)
    corrected: bool = False
    states: List[str] = field(default_factory=list)

    @property
    def tool_name(self) -> str:
        return self.call.name

    def content(self) -> str:
        """Text reported back to the model as the tool result."""
        if not self.ok:
            kind = f"{self.error_kind}: " if self.error_kind else ""
            return f"Error: {kind}{self.error}"
        if isinstance(self.value, str):
            return self.value
        try:
            return json.dumps(self.value, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(self.value)


__all__ = [
    "ToolDefinition",
    "ToolMetadata",
    "ValidationResult",
    "ToolCallRequest",
    "ToolCallAttempt",
    "ToolExecutionOutcome",
]
