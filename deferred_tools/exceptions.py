"""
Exception types raised by the catalog, validator, orchestrator and adapters.
"""
from __future__ import annotations

from typing import Optional


class OrchestratorError(Exception):
    """Base class for all deferred_tools errors."""


class ToolNotFound(OrchestratorError, KeyError):
    """Lookup of a tool name that is absent from the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class SchemaValidationError(OrchestratorError):
    """Arguments violate a tool's parameter schema (single violation)."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Invalid arguments for '{tool_name}': {reason}")


class RetryExhausted(OrchestratorError):
    """The ephemeral correction cycle spent its cap and the call is still invalid."""

    def __init__(self, tool_name: str, attempts: int, last_error: Optional[str] = None) -> None:
        self.tool_name = tool_name
        self.attempts = attempts
        self.last_error = last_error
        message = f"Tool call '{tool_name}' still invalid after {attempts} correction attempt(s)"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)


class RoundLimitExceeded(OrchestratorError):
    """
    Marker for the degrade-to-final-answer path.

    Never raised by the loop; LoopResult.round_limit_reached reports it.
    """


class TransportError(OrchestratorError):
    """Failure talking to the tool transport or the model provider."""


class ToolTimeoutError(OrchestratorError, TimeoutError):
    """A tool call or a whole round exceeded its configured bound."""

    def __init__(self, message: str, tool_name: Optional[str] = None) -> None:
        self.tool_name = tool_name
        super().__init__(message)


__all__ = [
    "OrchestratorError",
    "ToolNotFound",
    "SchemaValidationError",
    "RetryExhausted",
    "RoundLimitExceeded",
    "TransportError",
    "ToolTimeoutError",
]
