"""
Resource bridge: exposes a resource provider as two synthetic tools.

- list_resources: no arguments; returns the provider's resource entries
- read_resource:  requires 'uri'; returns the resource text

The definitions enter the catalog through ToolCatalog.merge, so the
validator and orchestrator treat them like any other tool.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from deferred_tools.abstractions.dto.tools import ToolDefinition
from deferred_tools.exceptions import TransportError
from deferred_tools.interfaces.services.resources import IResourceProvider
from deferred_tools.orchestration.catalog import ToolCatalog

logger = logging.getLogger(__name__)

LIST_RESOURCES = "list_resources"
READ_RESOURCE = "read_resource"


class ResourceBridge:
    def __init__(self, provider: IResourceProvider) -> None:
        self.provider = provider

    def definitions(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name=LIST_RESOURCES,
                description="List the resources available to read",
                parameters={"type": "object", "properties": {}, "additionalProperties": False},
            ),
            ToolDefinition(
                name=READ_RESOURCE,
                description="Read the contents of a resource by URI",
                parameters={
                    "type": "object",
                    "properties": {
                        "uri": {"type": "string", "description": "Resource URI from list_resources"},
                    },
                    "required": ["uri"],
                },
            ),
        ]

    def register(self, catalog: ToolCatalog) -> None:
        catalog.merge(self.definitions())

    def handles(self, name: str) -> bool:
        return name in (LIST_RESOURCES, READ_RESOURCE)

    async def execute(self, name: str, arguments: Dict[str, Any]) -> Any:
        if name == LIST_RESOURCES:
            return await self.provider.list_resources()
        if name == READ_RESOURCE:
            return await self.provider.read_resource(str(arguments["uri"]))
        raise TransportError(f"Resource bridge cannot execute '{name}'")


class StaticResourceProvider:
    """In-memory resource provider keyed by URI."""

    def __init__(self, resources: Optional[Dict[str, str]] = None, descriptions: Optional[Dict[str, str]] = None):
        self.resources: Dict[str, str] = dict(resources or {})
        self.descriptions: Dict[str, str] = dict(descriptions or {})

    async def list_resources(self) -> List[Dict[str, Any]]:
        return [
            {"uri": uri, "description": self.descriptions.get(uri, "")}
            for uri in self.resources
        ]

    async def read_resource(self, uri: str) -> str:
        if uri not in self.resources:
            raise TransportError(f"Resource '{uri}' not found")
        return self.resources[uri]


__all__ = ["ResourceBridge", "StaticResourceProvider", "LIST_RESOURCES", "READ_RESOURCE"]
