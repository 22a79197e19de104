"""
HTTP tool-server client (requests transport).

Responsibilities:
- List tools exposed by a tool server and convert them to ToolDefinitions
- Execute a tool call and return its result value
- Detect listing changes (poll_changes) and notify tools-changed listeners
- Serve the server's resources to the resource bridge

Endpoints (relative to base_url):
- GET  /tools                     -> [tool, ...] or {"tools": [...]}
- POST /tools/{name}/call         -> {"result": ...} or {"error": "..."}
- GET  /resources                 -> [resource, ...] or {"resources": [...]}
- GET  /resources/read?uri=...    -> {"text": "..."} or {"contents": ...}

Environment variables:
- TOOL_SERVER_URL             (default: http://localhost:8080)
- TOOL_SERVER_TIMEOUT_SECONDS (default: 30)

Notes:
- requests is blocking; every call runs in a worker thread.
- Network failures, non-2xx statuses and non-JSON bodies raise TransportError.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from deferred_tools.abstractions.dto.tools import ToolDefinition
from deferred_tools.exceptions import ToolTimeoutError, TransportError
from deferred_tools.interfaces.services.transport import ToolsChangedListener

logger = logging.getLogger(__name__)


def _unwrap(payload: Any, key: str) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise TransportError(f"Malformed '{key}' listing from tool server")
    return [item for item in payload if isinstance(item, dict)]


class HttpToolTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("TOOL_SERVER_URL") or "http://localhost:8080").rstrip("/")
        self.timeout_seconds = float(
            timeout_seconds or os.getenv("TOOL_SERVER_TIMEOUT_SECONDS", "30")
        )
        self.session = session or requests.Session()
        self._listeners: List[ToolsChangedListener] = []
        self._fingerprint: Optional[str] = None

    # ---------- HTTP surface ----------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout_seconds, **kwargs)
        except requests.Timeout as e:
            raise ToolTimeoutError(f"{method} {url} timed out after {self.timeout_seconds}s") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if resp.status_code >= 400:
            detail = resp.text[:300] if resp.text else resp.reason
            raise TransportError(f"{method} {url} returned HTTP {resp.status_code}: {detail}")
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{method} {url} returned non-JSON body") from e

    def _list_tools_sync(self) -> List[ToolDefinition]:
        items = _unwrap(self._request("GET", "/tools"), "tools")
        definitions = []
        for item in items:
            try:
                definitions.append(ToolDefinition.from_dict(item))
            except ValueError as e:
                logger.warning(f"Skipping malformed tool entry from {self.base_url}: {e}")
        self._fingerprint = self._fingerprint_of(definitions)
        return definitions

    def _call_sync(self, name: str, arguments: Dict[str, Any]) -> Any:
        body = self._request("POST", f"/tools/{name}/call", json={"arguments": arguments})
        if isinstance(body, dict):
            if body.get("error"):
                raise TransportError(f"Tool '{name}' failed: {body['error']}")
            if "result" in body:
                return body["result"]
        return body

    @staticmethod
    def _fingerprint_of(definitions: List[ToolDefinition]) -> str:
        canonical = json.dumps([d.to_dict() for d in definitions], sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    # ---------- transport port ----------

    def on_tools_changed(self, listener: ToolsChangedListener) -> None:
        self._listeners.append(listener)

    async def list_tools(self) -> List[ToolDefinition]:
        return await asyncio.to_thread(self._list_tools_sync)

    async def execute_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._call_sync, name, arguments)

    async def poll_changes(self) -> bool:
        """
        Re-fetch the listing; notify listeners when it differs from the last
        one seen. The first poll only records a baseline.
        """
        previous = self._fingerprint
        await self.list_tools()
        changed = previous is not None and previous != self._fingerprint
        if changed:
            logger.info(f"Tool listing changed at {self.base_url}")
            for listener in list(self._listeners):
                listener()
        return changed

    # ---------- resource provider ----------

    async def list_resources(self) -> List[Dict[str, Any]]:
        payload = await asyncio.to_thread(self._request, "GET", "/resources")
        return _unwrap(payload, "resources")

    async def read_resource(self, uri: str) -> str:
        body = await asyncio.to_thread(self._request, "GET", "/resources/read", params={"uri": uri})
        if isinstance(body, dict):
            if "text" in body:
                return str(body["text"])
            if "contents" in body:
                contents = body["contents"]
                return contents if isinstance(contents, str) else json.dumps(contents, ensure_ascii=False)
        return json.dumps(body, ensure_ascii=False)


__all__ = ["HttpToolTransport"]
