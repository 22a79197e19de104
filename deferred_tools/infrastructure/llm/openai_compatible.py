"""
OpenAI-compatible model adapter.

Supports any provider exposing an OpenAI Chat Completions-compatible API:
- OpenAI (https://api.openai.com/v1)
- DeepSeek (https://api.deepseek.com)
- Ollama (http://localhost:11434/v1)
- Local/self-hosted OpenAI-compatible servers

Behavior:
- Converts the persisted/ephemeral conversation into chat messages
- Sends the catalog payload as native function tools (metadata-only entries
  get an open object schema)
- Prefers native message.tool_calls; falls back to a TOOL_CALL JSON block in
  the text for models without native tool calling
"""

from __future__ import annotations

import json
import os
import re
import uuid
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI, OpenAIError

from deferred_tools.abstractions.dto.tools import ToolCallRequest
from deferred_tools.domain.entities.conversation import ConversationTurn
from deferred_tools.domain.entities.model_turn import ModelTurn
from deferred_tools.exceptions import TransportError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _first_balanced_object(text: str) -> Optional[Dict[str, Any]]:
    """Scan for '{' and return the first balanced span that parses as a JSON object."""
    start = text.find("{")
    while start != -1:
        depth = 0
        for end in range(start, len(text)):
            ch = text[end]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    try:
                        obj = json.loads(text[start : end + 1])
                        if isinstance(obj, dict):
                            return obj
                    except ValueError:
                        pass
                    break
        start = text.find("{", start + 1)
    return None


def parse_arguments(raw: Any) -> Dict[str, Any]:
    """
    Convert function call arguments to a dict:
    - dict passthrough
    - JSON string (with or without ``` fences)
    - first balanced {...} object inside a string
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return {}
    text = raw.strip()
    if text.startswith("```"):
        end = text.find("```", 3)
        if end != -1:
            text = text[3:end].strip()
            if text.lower().startswith("json"):
                text = text[4:].strip()
    if not text:
        return {}
    try:
        obj = json.loads(text)
        return obj if isinstance(obj, dict) else {}
    except ValueError:
        return _first_balanced_object(text) or {}


def _is_tool_call(obj: Any) -> bool:
    return isinstance(obj, dict) and "tool" in obj and ("arguments" in obj or "input_schema" in obj)


def extract_text_tool_call(content: str) -> Optional[Dict[str, Any]]:
    """
    Extract a tool call JSON object from model text.

    Accepted forms (case-insensitive):
    - TOOL_CALL: { ... }                 # preferred sentinel
    - Tool Call: ```json { ... } ```     # fenced JSON
    - Any JSON object with keys "tool" and "arguments" (or "input_schema")
    """
    txt = content or ""
    lower = txt.lower()
    for sentinel in ("tool_call:", "tool call:", "toolcall:"):
        if sentinel in lower:
            tail = txt[lower.index(sentinel) + len(sentinel):].strip()
            if tail.startswith("```"):
                fence_end = tail.find("```", 3)
                if fence_end != -1:
                    tail = tail[3:fence_end]
                    if tail.lower().startswith("json"):
                        tail = tail[4:]
            try:
                obj = json.loads(tail)
            except ValueError:
                obj = None
            if _is_tool_call(obj):
                return obj

    for m in _FENCE_RE.finditer(txt):
        try:
            obj = json.loads(m.group(1).strip())
        except ValueError:
            continue
        if _is_tool_call(obj):
            return obj

    start = txt.find("{")
    while start != -1:
        obj = _first_balanced_object(txt[start:])
        if _is_tool_call(obj):
            return obj
        start = txt.find("{", start + 1)
    return None


class OpenAICompatibleModel:
    """
    Example usage for Ollama:
        model = OpenAICompatibleModel(
            base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1"),
            model=os.getenv("OLLAMA_MODEL", "llama3.1"),
        )
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Any = None,
        temperature: Optional[float] = None,
    ) -> None:
        load_dotenv()

        # Defaults allow easy ollama usage without extra config
        self.api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("DEEPSEEK_API_KEY") or "ollama"
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL") or "http://localhost:11434/v1"
        self.model = model or os.getenv("OPENAI_MODEL") or "llama3.1"
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    # ---------- request mapping ----------

    @staticmethod
    def to_messages(history: List[ConversationTurn]) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        for turn in history:
            if turn.role == "tool":
                messages.append({"role": "tool", "tool_call_id": turn.tool_call_id, "content": turn.content})
            elif turn.role == "assistant" and turn.tool_calls:
                messages.append({
                    "role": "assistant",
                    "content": turn.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": json.dumps(call.arguments, ensure_ascii=False),
                            },
                        }
                        for call in turn.tool_calls
                    ],
                })
            else:
                messages.append({"role": turn.role, "content": turn.content})
        return messages

    @staticmethod
    def to_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": t["name"],
                    "description": t.get("description", ""),
                    "parameters": t.get("parameters") or {"type": "object"},
                },
            }
            for t in tools
        ]

    # ---------- response mapping ----------

    @staticmethod
    def _native_calls(tool_calls: Any) -> List[ToolCallRequest]:
        calls: List[ToolCallRequest] = []
        for call in tool_calls or []:
            fn = getattr(call, "function", None)
            if fn is None and isinstance(call, dict):
                fn = call.get("function") or {}
            if isinstance(fn, dict):
                raw_name, raw_args = str(fn.get("name") or ""), fn.get("arguments")
            else:
                raw_name, raw_args = str(getattr(fn, "name", "") or ""), getattr(fn, "arguments", None)
            name = raw_name.split(".")[-1]
            if not name:
                continue
            call_id = getattr(call, "id", None) or (call.get("id") if isinstance(call, dict) else None)
            calls.append(ToolCallRequest(
                name=name,
                arguments=parse_arguments(raw_args),
                id=call_id or f"call_{uuid.uuid4().hex[:12]}",
            ))
        return calls

    def _parse(self, response: Any, offered: List[str]) -> ModelTurn:
        message = response.choices[0].message
        content = getattr(message, "content", None) or ""
        calls = self._native_calls(getattr(message, "tool_calls", None))
        if not calls and offered:
            obj = extract_text_tool_call(content)
            if obj and obj.get("tool") in offered:
                args = obj.get("arguments", obj.get("input_schema"))
                calls = [ToolCallRequest(name=obj["tool"], arguments=parse_arguments(args))]
                content = content.split("TOOL_CALL:", 1)[0].strip()
        return ModelTurn(content=content, tool_calls=calls, raw=response)

    async def complete(
        self, history: List[ConversationTurn], tools: Optional[List[Dict[str, Any]]]
    ) -> ModelTurn:
        payload: Dict[str, Any] = {"model": self.model, "messages": self.to_messages(history)}
        if tools:
            payload["tools"] = self.to_tools(tools)
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        try:
            response = await self.client.chat.completions.create(**payload)
        except OpenAIError as e:
            raise TransportError(f"Chat completion failed: {e}") from e
        return self._parse(response, [t["name"] for t in tools or []])


__all__ = ["OpenAICompatibleModel", "parse_arguments", "extract_text_tool_call"]
