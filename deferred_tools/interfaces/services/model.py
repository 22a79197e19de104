"""
Model adapter port. The loop depends on this; infra implements.
"""
from __future__ import annotations
from typing import Protocol, List, Dict, Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from deferred_tools.domain.entities.conversation import ConversationTurn
    from deferred_tools.domain.entities.model_turn import ModelTurn

class IModelAdapter(Protocol):
    async def complete(
        self,
        history: List["ConversationTurn"],
        tools: Optional[List[Dict[str, Any]]],
    ) -> "ModelTurn":
        """
        tools is the catalog payload (metadata-only or full definitions).
        None withholds tool calling and asks for a final answer.
        """
        ...

__all__ = ["IModelAdapter"]
