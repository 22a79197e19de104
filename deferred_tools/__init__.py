"""
deferred_tools: two-tier tool catalog, argument validation, ephemeral
correction of invalid tool calls, and a bounded tool-calling loop.
"""
from deferred_tools.abstractions.dto.tools import (
    ToolCallRequest,
    ToolDefinition,
    ToolExecutionOutcome,
    ToolMetadata,
    ValidationResult,
)
from deferred_tools.domain.entities.conversation import Conversation, ConversationTurn
from deferred_tools.domain.entities.model_turn import ModelTurn
from deferred_tools.exceptions import (
    OrchestratorError,
    RetryExhausted,
    RoundLimitExceeded,
    SchemaValidationError,
    ToolNotFound,
    ToolTimeoutError,
    TransportError,
)
from deferred_tools.infrastructure.config import OrchestratorConfig
from deferred_tools.orchestration.catalog import ToolCatalog
from deferred_tools.orchestration.loop import LoopResult, ToolCallLoop
from deferred_tools.orchestration.retry import CorrectionRequest, RetryOrchestrator
from deferred_tools.orchestration.validator import Validator

__version__ = "0.1.0"

__all__ = [
    "ToolCallRequest",
    "ToolDefinition",
    "ToolExecutionOutcome",
    "ToolMetadata",
    "ValidationResult",
    "Conversation",
    "ConversationTurn",
    "ModelTurn",
    "OrchestratorError",
    "RetryExhausted",
    "RoundLimitExceeded",
    "SchemaValidationError",
    "ToolNotFound",
    "ToolTimeoutError",
    "TransportError",
    "OrchestratorConfig",
    "ToolCatalog",
    "LoopResult",
    "ToolCallLoop",
    "CorrectionRequest",
    "RetryOrchestrator",
    "Validator",
]
