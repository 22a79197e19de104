"""
Shared test fixtures: a scripted model adapter, sample tool definitions and
an in-process transport. Nothing here talks to a real provider.
"""

import os
import sys
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from dotenv import load_dotenv

# Ensure project root is on sys.path so package imports resolve in tests
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

load_dotenv()

from deferred_tools.abstractions.dto.tools import ToolCallRequest, ToolDefinition  # noqa: E402
from deferred_tools.domain.entities.conversation import ConversationTurn  # noqa: E402
from deferred_tools.domain.entities.model_turn import ModelTurn  # noqa: E402
from deferred_tools.infrastructure.tools.tool_base import FunctionTool  # noqa: E402
from deferred_tools.infrastructure.transport.local_transport import LocalToolTransport  # noqa: E402
from deferred_tools.orchestration.catalog import ToolCatalog  # noqa: E402

Reply = Union[ModelTurn, Callable[[List[ConversationTurn], Optional[List[Dict[str, Any]]]], ModelTurn]]


class ScriptedModel:
    """
    Model adapter that replays scripted replies and records every request.
    Once the script runs out it answers "done".
    """

    def __init__(self, replies: Optional[List[Reply]] = None) -> None:
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, history, tools):
        self.calls.append({"history": list(history), "tools": tools})
        if not self.replies:
            return ModelTurn(content="done")
        reply = self.replies.pop(0)
        if callable(reply):
            return reply(history, tools)
        return reply


def call(name: str, arguments: Optional[Dict[str, Any]] = None, call_id: Optional[str] = None) -> ToolCallRequest:
    if call_id is None:
        return ToolCallRequest(name=name, arguments=arguments or {})
    return ToolCallRequest(name=name, arguments=arguments or {}, id=call_id)


def tool_turn(*calls: ToolCallRequest, content: str = "") -> ModelTurn:
    return ModelTurn(content=content, tool_calls=list(calls))


SEARCH_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Search query"},
        "limit": {"type": "integer", "description": "Max results"},
    },
    "required": ["query"],
}

WEATHER_SCHEMA = {
    "type": "object",
    "properties": {
        "city": {"type": "string"},
        "units": {"type": "string"},
    },
    "required": ["city"],
    "additionalProperties": False,
}


@pytest.fixture
def search_definition() -> ToolDefinition:
    return ToolDefinition(name="search", description="Search the web", parameters=SEARCH_SCHEMA)


@pytest.fixture
def definitions(search_definition) -> List[ToolDefinition]:
    return [
        search_definition,
        ToolDefinition(name="weather", description="Current weather", parameters=WEATHER_SCHEMA),
        ToolDefinition(name="clock", description="Current time"),
        ToolDefinition(
            name="translate",
            description="Translate text",
            parameters={
                "type": "object",
                "properties": {"text": {"type": "string"}, "target": {"type": "string"}},
                "required": ["text", "target"],
            },
        ),
        ToolDefinition(
            name="calc",
            description="Evaluate arithmetic",
            parameters={
                "type": "object",
                "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
                "required": ["a", "b"],
            },
        ),
    ]


@pytest.fixture
def catalog(definitions) -> ToolCatalog:
    return ToolCatalog(definitions)


@pytest.fixture
def local_transport() -> LocalToolTransport:
    def search(query: str, limit: int = 3) -> Dict[str, Any]:
        return {"query": query, "hits": [f"{query} result {i}" for i in range(limit)]}

    def weather(city: str, units: str = "metric") -> str:
        return f"{city}: 21 degrees ({units})"

    return LocalToolTransport([
        FunctionTool("search", "Search the web", SEARCH_SCHEMA, search),
        FunctionTool("weather", "Current weather", WEATHER_SCHEMA, weather),
    ])
