import asyncio

import pytest

from deferred_tools.exceptions import TransportError
from deferred_tools.infrastructure.tools.tool_base import FunctionTool, Tool


class EchoTool(Tool):
    def __init__(self):
        self.last_input = None

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo the input text"

    @property
    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {"text": {"type": "string", "description": "Text to echo"}},
            "required": ["text"],
        }

    async def run(self, input: dict) -> str:
        self.last_input = input
        await asyncio.sleep(0)
        return input["text"]


class SchemalessTool(Tool):
    name = "ping"
    description = "Ping"
    input_schema = {}

    def run(self, input):
        return "pong"


@pytest.mark.asyncio
async def test_list_tools_returns_definitions(local_transport):
    definitions = await local_transport.list_tools()
    assert [d.name for d in definitions] == ["search", "weather"]
    assert definitions[1].parameters["additionalProperties"] is False


@pytest.mark.asyncio
async def test_sync_tool_runs_and_returns_value(local_transport):
    result = await local_transport.execute_tool("search", {"query": "x", "limit": 1})
    assert result == {"query": "x", "hits": ["x result 0"]}


@pytest.mark.asyncio
async def test_async_tool_is_awaited(local_transport):
    echo = EchoTool()
    local_transport.register_tool(echo)

    assert await local_transport.execute_tool("echo", {"text": "hi"}) == "hi"
    assert echo.last_input == {"text": "hi"}


@pytest.mark.asyncio
async def test_unknown_tool_raises(local_transport):
    with pytest.raises(TransportError, match="not found"):
        await local_transport.execute_tool("nope", {})


@pytest.mark.asyncio
async def test_tool_exception_is_wrapped(local_transport):
    def explode():
        raise ValueError("bad input")

    local_transport.register_tool(FunctionTool("explode", "Always fails", {"type": "object"}, explode))

    with pytest.raises(TransportError, match="Tool execution failed: bad input") as exc:
        await local_transport.execute_tool("explode", {})
    assert isinstance(exc.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_schemaless_tool_gets_empty_object_schema():
    from deferred_tools.infrastructure.transport.local_transport import LocalToolTransport

    transport = LocalToolTransport([SchemalessTool()])
    (definition,) = await transport.list_tools()
    assert definition.parameters == {"type": "object", "properties": {}, "required": []}


def test_register_and_unregister_notify_listeners(local_transport):
    events = []
    local_transport.on_tools_changed(lambda: events.append("changed"))

    local_transport.register_tool(EchoTool())
    local_transport.unregister_tool("echo")
    local_transport.unregister_tool("echo")  # already gone, no event

    assert events == ["changed", "changed"]
