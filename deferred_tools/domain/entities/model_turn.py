"""
POCO DTO for one model response. No framework dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from deferred_tools.abstractions.dto.tools import ToolCallRequest


@dataclass
class ModelTurn:
    content: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    raw: Any = None

    @property
    def is_final(self) -> bool:
        # zero requested calls counts as a final answer
        return not self.tool_calls


__all__ = ["ModelTurn"]
