"""
Two-tier tool catalog.

Holds full ToolDefinitions (source of truth for schemas) and derives the
schema-free ToolMetadata projection that is shown to the model when
deferred loading is enabled.

Every write (populate, merge, invalidate) builds a new immutable snapshot
under a writer lock and swaps a single reference. Readers grab the current
snapshot once, so they always observe one whole generation.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple, TYPE_CHECKING

from deferred_tools.abstractions.dto.tools import ToolDefinition, ToolMetadata
from deferred_tools.exceptions import ToolNotFound

if TYPE_CHECKING:
    from deferred_tools.interfaces.services.transport import IToolTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    generation: int = 0
    definitions: Tuple[ToolDefinition, ...] = ()
    metadata: Tuple[ToolMetadata, ...] = ()
    index: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, generation: int, definitions: Iterable[ToolDefinition]) -> "CatalogSnapshot":
        ordered: Dict[str, ToolDefinition] = {}
        for definition in definitions:
            # dict keeps first-insertion position, value is the last write
            ordered[definition.name] = definition
        defs = tuple(ordered.values())
        return cls(
            generation=generation,
            definitions=defs,
            metadata=tuple(ToolMetadata.of(d) for d in defs),
            index=MappingProxyType({d.name: i for i, d in enumerate(defs)}),
        )

    @property
    def is_empty(self) -> bool:
        return not self.definitions


class ToolCatalog:
    """
    Explicitly owned catalog instance; pass it to the validator,
    orchestrator and loop rather than reaching for a module global.
    """

    def __init__(self, definitions: Iterable[ToolDefinition] = ()) -> None:
        self._write_lock = threading.Lock()
        self._snapshot = CatalogSnapshot()
        definitions = list(definitions)
        if definitions:
            self.populate(definitions)

    # ---------- writers ----------

    def populate(self, definitions: Iterable[ToolDefinition]) -> None:
        """Replace the whole catalog. Duplicate names: last write wins."""
        definitions = list(definitions)
        with self._write_lock:
            self._snapshot = CatalogSnapshot.build(self._snapshot.generation + 1, definitions)
            snap = self._snapshot
        logger.info(f"Catalog populated: {len(snap.definitions)} tools (generation {snap.generation})")

    def merge(self, definitions: Iterable[ToolDefinition]) -> None:
        """Add or replace definitions on top of the current generation."""
        definitions = list(definitions)
        with self._write_lock:
            current = self._snapshot
            self._snapshot = CatalogSnapshot.build(
                current.generation + 1, list(current.definitions) + definitions
            )
            snap = self._snapshot
        logger.debug(f"Catalog merged {len(definitions)} definitions (generation {snap.generation})")

    def invalidate(self) -> None:
        with self._write_lock:
            self._snapshot = CatalogSnapshot(generation=self._snapshot.generation + 1)
            generation = self._snapshot.generation
        logger.info(f"Catalog invalidated (generation {generation})")

    def attach(self, transport: "IToolTransport") -> None:
        """Invalidate whenever the transport reports a changed tool listing."""
        transport.on_tools_changed(self.invalidate)

    # ---------- readers ----------

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._snapshot.generation

    def metadata_all(self) -> List[ToolMetadata]:
        return list(self._snapshot.metadata)

    def metadata(self, name: str) -> ToolMetadata:
        snap = self._snapshot
        if name not in snap.index:
            raise ToolNotFound(name)
        return snap.metadata[snap.index[name]]

    def schema(self, name: str) -> ToolDefinition:
        snap = self._snapshot
        if name not in snap.index:
            raise ToolNotFound(name)
        return snap.definitions[snap.index[name]]

    def has(self, name: str) -> bool:
        return name in self._snapshot.index

    def count(self) -> int:
        return len(self._snapshot.definitions)

    def names(self) -> List[str]:
        return [d.name for d in self._snapshot.definitions]

    def tool_payload(self, deferred: bool) -> List[Dict[str, Any]]:
        """
        Tool list for a model round: metadata-only when deferred, otherwise
        full definitions with their parameter schemas.
        """
        snap = self._snapshot
        if deferred:
            return [m.to_dict() for m in snap.metadata]
        return [d.to_dict() for d in snap.definitions]

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)


__all__ = ["ToolCatalog", "CatalogSnapshot"]
