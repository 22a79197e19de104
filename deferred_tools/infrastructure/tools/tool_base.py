"""
Tool base class for tools served by the in-process transport.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Union

from deferred_tools.abstractions.dto.tools import ToolDefinition


class Tool(ABC):
    """
    A locally executable tool. run() may be a plain function or a coroutine;
    the local transport awaits coroutines and runs plain functions in a
    worker thread.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calling format."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        """
        JSONSchema object defining accepted arguments.
        Should include:
        - type: "object"
        - properties: Parameter definitions
        - required: List of required parameter names
        """
        pass

    @abstractmethod
    def run(self, input: Dict[str, Any]) -> Union[Any, Awaitable[Any]]:
        """Execute the tool with validated arguments."""
        pass

    def to_definition(self) -> ToolDefinition:
        schema = self.input_schema
        if not isinstance(schema, dict) or not schema:
            schema = {"type": "object", "properties": {}, "required": []}
        return ToolDefinition(name=self.name, description=self.description, parameters=schema)


class FunctionTool(Tool):
    """Wraps a callable taking keyword arguments as a Tool."""

    def __init__(
        self,
        name: str,
        description: str,
        parameters: Dict[str, Any],
        func: Callable[..., Any],
    ) -> None:
        self._name = name
        self._description = description
        self._parameters = parameters
        self._func = func

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self._parameters

    def run(self, input: Dict[str, Any]) -> Any:
        return self._func(**input)


__all__ = ["Tool", "FunctionTool"]
