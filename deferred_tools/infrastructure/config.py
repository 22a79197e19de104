"""
Configuration module for orchestration settings.

This module handles:
1. Loading settings from a .env file and the process environment
2. Applying defaults for every knob
3. Clamping max_tool_rounds to its allowed range [1, 10]
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

MIN_TOOL_ROUNDS = 1
MAX_TOOL_ROUNDS = 10

_TRUTHY = ("1", "true", "yes", "on")


def clamp_rounds(value: int) -> int:
    return max(MIN_TOOL_ROUNDS, min(MAX_TOOL_ROUNDS, int(value)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def _env_float(name: str) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass
class OrchestratorConfig:
    """Configuration surface of the tool-calling loop."""

    # Send metadata-only tool listings; full schemas only on correction
    use_deferred_loading: bool = False
    max_tool_rounds: int = 1
    ephemeral_retry_cap: int = 1
    # Seconds; None disables the bound
    call_timeout: Optional[float] = None
    round_timeout: Optional[float] = None
    # Raise ToolTimeoutError instead of reporting a timed-out call to the model
    timeout_fatal: bool = False

    def __post_init__(self) -> None:
        self.max_tool_rounds = clamp_rounds(self.max_tool_rounds)
        if self.ephemeral_retry_cap < 0:
            raise ValueError("ephemeral_retry_cap must be >= 0")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "OrchestratorConfig":
        """
        Build a config from DEFERRED_TOOLS_* environment variables.

        Args:
            env_file: Optional path to a .env file (defaults to discovery)

        Returns:
            OrchestratorConfig with defaults for anything unset
        """
        load_dotenv(env_file)
        return cls(
            use_deferred_loading=_env_bool("DEFERRED_TOOLS_USE_DEFERRED_LOADING", False),
            max_tool_rounds=int(os.getenv("DEFERRED_TOOLS_MAX_TOOL_ROUNDS", "1")),
            ephemeral_retry_cap=int(os.getenv("DEFERRED_TOOLS_EPHEMERAL_RETRY_CAP", "1")),
            call_timeout=_env_float("DEFERRED_TOOLS_CALL_TIMEOUT"),
            round_timeout=_env_float("DEFERRED_TOOLS_ROUND_TIMEOUT"),
            timeout_fatal=_env_bool("DEFERRED_TOOLS_TIMEOUT_FATAL", False),
        )


__all__ = ["OrchestratorConfig", "clamp_rounds", "MIN_TOOL_ROUNDS", "MAX_TOOL_ROUNDS"]
