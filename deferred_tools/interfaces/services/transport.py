"""
Tool transport port: lists and executes tools, announces listing changes.
"""
from __future__ import annotations
from typing import Protocol, List, Dict, Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from deferred_tools.abstractions.dto.tools import ToolDefinition

ToolsChangedListener = Callable[[], None]

class IToolTransport(Protocol):
    async def list_tools(self) -> List["ToolDefinition"]:
        ...
    async def execute_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        """
        Return the tool's result value. Raise TransportError (or TimeoutError)
        when the call cannot be completed.
        """
        ...
    def on_tools_changed(self, listener: ToolsChangedListener) -> None:
        ...

__all__ = ["IToolTransport", "ToolsChangedListener"]
