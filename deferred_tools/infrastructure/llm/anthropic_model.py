"""
Anthropic Messages API model adapter.

See: https://docs.anthropic.com/claude/docs/tool-use

- system turns are joined into the top-level system parameter
- tool results travel as tool_result blocks inside user messages
- consecutive messages of the same role are merged (the API requires
  alternating roles)
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from anthropic import AnthropicError, AsyncAnthropic
from dotenv import load_dotenv

from deferred_tools.abstractions.dto.tools import ToolCallRequest
from deferred_tools.domain.entities.conversation import ConversationTurn
from deferred_tools.domain.entities.model_turn import ModelTurn
from deferred_tools.exceptions import TransportError


class AnthropicModel:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Any = None,
    ) -> None:
        load_dotenv()
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY", "")
        self.model = model or os.getenv("ANTHROPIC_MODEL") or "claude-sonnet-4-20250514"
        self.max_tokens = int(max_tokens or os.getenv("ANTHROPIC_MAX_TOKENS", "1024"))
        self.client = client or AsyncAnthropic(api_key=self.api_key)

    @staticmethod
    def _blocks(turn: ConversationTurn, as_text: bool = False) -> List[Dict[str, Any]]:
        # as_text renders tool traffic as plain text for requests without tools
        if turn.role == "tool":
            if as_text:
                return [{"type": "text", "text": f"[{turn.name} result] {turn.content}"}]
            return [{"type": "tool_result", "tool_use_id": turn.tool_call_id, "content": turn.content}]
        blocks: List[Dict[str, Any]] = []
        if turn.content:
            blocks.append({"type": "text", "text": turn.content})
        for call in turn.tool_calls:
            if as_text:
                blocks.append({"type": "text", "text": f"[called {call.name} with {json.dumps(call.arguments)}]"})
            else:
                blocks.append({"type": "tool_use", "id": call.id, "name": call.name, "input": dict(call.arguments)})
        return blocks

    @classmethod
    def to_request(cls, history: List[ConversationTurn], as_text: bool = False) -> Dict[str, Any]:
        system_parts: List[str] = []
        messages: List[Dict[str, Any]] = []
        for turn in history:
            if turn.role == "system":
                system_parts.append(turn.content)
                continue
            role = "assistant" if turn.role == "assistant" else "user"
            blocks = cls._blocks(turn, as_text)
            if not blocks:
                continue
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"].extend(blocks)
            else:
                messages.append({"role": role, "content": blocks})
        request: Dict[str, Any] = {"messages": messages}
        if system_parts:
            request["system"] = "\n\n".join(system_parts)
        return request

    @staticmethod
    def to_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "name": t["name"],
                "description": t.get("description", ""),
                "input_schema": t.get("parameters") or {"type": "object"},
            }
            for t in tools
        ]

    @staticmethod
    def _parse(response: Any) -> ModelTurn:
        texts: List[str] = []
        calls: List[ToolCallRequest] = []
        for block in getattr(response, "content", None) or []:
            kind = getattr(block, "type", None)
            if kind == "text":
                texts.append(block.text)
            elif kind == "tool_use":
                args = block.input if isinstance(block.input, dict) else {}
                calls.append(ToolCallRequest(name=block.name, arguments=args, id=block.id))
        return ModelTurn(content="\n".join(texts), tool_calls=calls, raw=response)

    async def complete(
        self, history: List[ConversationTurn], tools: Optional[List[Dict[str, Any]]]
    ) -> ModelTurn:
        request = self.to_request(history, as_text=not tools)
        request.update(model=self.model, max_tokens=self.max_tokens)
        if tools:
            request["tools"] = self.to_tools(tools)
        try:
            response = await self.client.messages.create(**request)
        except AnthropicError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e
        return self._parse(response)


__all__ = ["AnthropicModel"]
