"""
POCO DTOs for conversation turns and the persisted transcript. No framework dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional

from deferred_tools.abstractions.dto.tools import ToolCallRequest

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str = ""
    tool_calls: tuple = ()  # Tuple[ToolCallRequest, ...] on assistant turns
    tool_call_id: Optional[str] = None  # set on tool turns
    name: Optional[str] = None  # tool name on tool turns
    ephemeral: bool = False

    @classmethod
    def system(cls, content: str) -> "ConversationTurn":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str, ephemeral: bool = False) -> "ConversationTurn":
        return cls(role="user", content=content, ephemeral=ephemeral)

    @classmethod
    def assistant(
        cls,
        content: str = "",
        tool_calls: Iterable[ToolCallRequest] = (),
        ephemeral: bool = False,
    ) -> "ConversationTurn":
        return cls(role="assistant", content=content, tool_calls=tuple(tool_calls), ephemeral=ephemeral)

    @classmethod
    def tool_result(cls, call: ToolCallRequest, content: str, ephemeral: bool = False) -> "ConversationTurn":
        return cls(role="tool", content=content, tool_call_id=call.id, name=call.name, ephemeral=ephemeral)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [
                {"id": c.id, "name": c.name, "arguments": dict(c.arguments)} for c in self.tool_calls
            ]
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.name:
            data["name"] = self.name
        return data


@dataclass
class Conversation:
    """
    The durable transcript sent to the model on every round.

    Only persisted turns are accepted. A round's turns are appended together
    through extend_round so a cancelled or failed round leaves no trace.
    """
    turns: List[ConversationTurn] = field(default_factory=list)

    def __post_init__(self) -> None:
        for turn in self.turns:
            self._check(turn)

    @staticmethod
    def _check(turn: ConversationTurn) -> None:
        if turn.ephemeral:
            raise ValueError("Ephemeral turns cannot be persisted")

    def append(self, turn: ConversationTurn) -> None:
        self._check(turn)
        self.turns.append(turn)

    def extend_round(self, turns: Iterable[ConversationTurn]) -> None:
        pending = list(turns)
        for turn in pending:
            self._check(turn)
        self.turns.extend(pending)

    def snapshot(self) -> List[ConversationTurn]:
        return list(self.turns)

    def tool_call_records(self) -> List[ToolCallRequest]:
        return [call for turn in self.turns for call in turn.tool_calls]

    def __len__(self) -> int:
        return len(self.turns)


__all__ = ["Role", "ConversationTurn", "Conversation"]
