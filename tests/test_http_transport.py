"""
HTTP transport tests against a mocked tool server (responses).
"""

import json

import pytest
import requests
import responses

from deferred_tools.exceptions import ToolTimeoutError, TransportError
from deferred_tools.infrastructure.transport.http_transport import HttpToolTransport

BASE = "http://tools.test"

TOOLS = [
    {"name": "search", "description": "Search", "parameters": {"type": "object", "properties": {"query": {"type": "string"}}}},
    {"type": "function", "function": {"name": "weather", "description": "Weather", "parameters": {"type": "object"}}},
    {"name": "", "description": "nameless"},
]


@pytest.fixture
def transport():
    return HttpToolTransport(base_url=BASE + "/", timeout_seconds=2)


@pytest.mark.asyncio
@responses.activate
async def test_list_tools_converts_and_skips_malformed(transport):
    responses.add(responses.GET, f"{BASE}/tools", json={"tools": TOOLS}, status=200)

    definitions = await transport.list_tools()

    assert [d.name for d in definitions] == ["search", "weather"]
    assert definitions[0].parameters["properties"]["query"]["type"] == "string"


@pytest.mark.asyncio
@responses.activate
async def test_execute_tool_posts_arguments(transport):
    responses.add(responses.POST, f"{BASE}/tools/search/call", json={"result": {"hits": 2}}, status=200)

    result = await transport.execute_tool("search", {"query": "x"})

    assert result == {"hits": 2}
    assert json.loads(responses.calls[0].request.body) == {"arguments": {"query": "x"}}


@pytest.mark.asyncio
@responses.activate
async def test_tool_error_body_raises_transport_error(transport):
    responses.add(responses.POST, f"{BASE}/tools/search/call", json={"error": "index offline"}, status=200)

    with pytest.raises(TransportError, match="index offline"):
        await transport.execute_tool("search", {"query": "x"})


@pytest.mark.asyncio
@responses.activate
async def test_http_error_status_raises_transport_error(transport):
    responses.add(responses.POST, f"{BASE}/tools/search/call", body="boom", status=500)

    with pytest.raises(TransportError, match="HTTP 500"):
        await transport.execute_tool("search", {"query": "x"})


@pytest.mark.asyncio
@responses.activate
async def test_non_json_body_raises_transport_error(transport):
    responses.add(responses.GET, f"{BASE}/tools", body="<html>", status=200)

    with pytest.raises(TransportError, match="non-JSON"):
        await transport.list_tools()


@pytest.mark.asyncio
@responses.activate
async def test_timeout_maps_to_tool_timeout_error(transport):
    responses.add(responses.POST, f"{BASE}/tools/search/call", body=requests.exceptions.ReadTimeout("slow"))

    with pytest.raises(ToolTimeoutError):
        await transport.execute_tool("search", {"query": "x"})


@pytest.mark.asyncio
@responses.activate
async def test_connection_failure_raises_transport_error(transport):
    responses.add(responses.GET, f"{BASE}/tools", body=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(TransportError, match="failed"):
        await transport.list_tools()


@pytest.mark.asyncio
@responses.activate
async def test_poll_changes_notifies_on_listing_change(transport):
    responses.add(responses.GET, f"{BASE}/tools", json=TOOLS[:1], status=200)
    responses.add(responses.GET, f"{BASE}/tools", json=TOOLS[:1], status=200)
    responses.add(responses.GET, f"{BASE}/tools", json=TOOLS[:2], status=200)
    notified = []
    transport.on_tools_changed(lambda: notified.append(True))

    assert await transport.poll_changes() is False  # baseline
    assert await transport.poll_changes() is False
    assert await transport.poll_changes() is True
    assert notified == [True]


@pytest.mark.asyncio
@responses.activate
async def test_resources_listing_and_read(transport):
    responses.add(
        responses.GET,
        f"{BASE}/resources",
        json={"resources": [{"uri": "docs://a", "description": "A"}]},
        status=200,
    )
    responses.add(responses.GET, f"{BASE}/resources/read", json={"text": "alpha"}, status=200)

    assert await transport.list_resources() == [{"uri": "docs://a", "description": "A"}]
    assert await transport.read_resource("docs://a") == "alpha"
    assert responses.calls[1].request.url.endswith("uri=docs%3A%2F%2Fa")


def test_env_configuration(monkeypatch):
    monkeypatch.setenv("TOOL_SERVER_URL", "http://env.test/")
    monkeypatch.setenv("TOOL_SERVER_TIMEOUT_SECONDS", "7")

    transport = HttpToolTransport()

    assert transport.base_url == "http://env.test"
    assert transport.timeout_seconds == 7.0
