"""
Tracing/observability port for correction and round events.

Events recorded by the orchestrator and loop:
correction_requested, retry_exhausted, round_started, round_completed, forced_final.
"""
from __future__ import annotations
from typing import Protocol, Dict, Any, List, Optional

class ITracer(Protocol):
    def record(self, event: str, data: Dict[str, Any]) -> None:
        ...
    def get_last(self) -> Optional[Dict[str, Any]]:
        ...
    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Recorded events in order, optionally filtered by event name."""
        ...

__all__ = ["ITracer"]
