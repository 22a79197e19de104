"""
In-process tool transport.

Keeps a registry of Tool instances and serves them through the transport
port. Registering or unregistering a tool after construction notifies
tools-changed listeners (the catalog invalidates itself in response).
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, Iterable, List, Optional

from deferred_tools.abstractions.dto.tools import ToolDefinition
from deferred_tools.exceptions import TransportError
from deferred_tools.infrastructure.tools.tool_base import Tool
from deferred_tools.interfaces.services.transport import ToolsChangedListener

logger = logging.getLogger(__name__)


class LocalToolTransport:
    """
    Manages a collection of tools and handles tool registration and execution.
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        """
        Initialize tool registry.

        Args:
            tools: Tools to register up front (no change notification)
        """
        self.tools: Dict[str, Tool] = {}
        self._listeners: List[ToolsChangedListener] = []
        for tool in tools or []:
            self.tools[tool.name] = tool

    def on_tools_changed(self, listener: ToolsChangedListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def register_tool(self, tool: Tool) -> None:
        """
        Register a tool instance, replacing any tool with the same name.

        Args:
            tool: Tool instance to register
        """
        self.tools[tool.name] = tool
        logger.debug(f"Registered tool '{tool.name}'")
        self._notify()

    def unregister_tool(self, name: str) -> None:
        if self.tools.pop(name, None) is not None:
            logger.debug(f"Unregistered tool '{name}'")
            self._notify()

    def get_tool(self, name: str) -> Tool:
        """
        Get a registered tool by name.

        Raises:
            TransportError: If tool is not found
        """
        if name not in self.tools:
            raise TransportError(f"Tool '{name}' not found")
        return self.tools[name]

    async def list_tools(self) -> List[ToolDefinition]:
        return [tool.to_definition() for tool in self.tools.values()]

    async def execute_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        """
        Execute a tool by name. Plain run() implementations are moved to a
        worker thread; coroutine results are awaited.

        Raises:
            TransportError: If the tool is unknown or its run() raises
        """
        tool = self.get_tool(name)
        try:
            if inspect.iscoroutinefunction(tool.run):
                return await tool.run(arguments)
            result = await asyncio.to_thread(tool.run, arguments)
            if inspect.isawaitable(result):
                result = await result
            return result
        except asyncio.CancelledError:
            raise
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Tool execution failed: {e}") from e


__all__ = ["LocalToolTransport"]
