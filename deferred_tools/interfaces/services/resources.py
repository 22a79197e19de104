"""
Resource provider port used by the resource bridge.
"""
from __future__ import annotations
from typing import Protocol, List, Dict, Any

class IResourceProvider(Protocol):
    async def list_resources(self) -> List[Dict[str, Any]]:
        """Entries carry at least 'uri'; 'name' and 'description' are optional."""
        ...
    async def read_resource(self, uri: str) -> str:
        ...

__all__ = ["IResourceProvider"]
