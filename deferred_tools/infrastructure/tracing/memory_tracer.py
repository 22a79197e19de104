"""
In-memory tracer implementing ITracer.
"""
from __future__ import annotations

import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional


class InMemoryTracer:
    def __init__(self, max_events: int = 1000) -> None:
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)

    def record(self, event: str, data: Dict[str, Any]) -> None:
        self._events.append({"event": event, "ts": time.time(), "data": dict(data)})

    def get_last(self) -> Optional[Dict[str, Any]]:
        return self._events[-1] if self._events else None

    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        return [e for e in self._events if name is None or e["event"] == name]

    def clear(self) -> None:
        self._events.clear()


__all__ = ["InMemoryTracer"]
