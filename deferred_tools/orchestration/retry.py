"""
Ephemeral-retry orchestrator.

Resolves one requested tool call:

    AWAITING_CALL -> VALIDATING -> EXECUTING          (valid)
                               -> EPHEMERAL_REPAIR    (invalid)
    EPHEMERAL_REPAIR -> AWAITING_CORRECTED_CALL -> VALIDATING
    terminal: RESOLVED_SUCCESS | RESOLVED_FAILURE

An invalid call triggers at most `ephemeral_retry_cap` correction
exchanges. Each exchange hands the full schema and the validation error to
the correction requester; nothing from that exchange is returned for
persistence. The outcome only carries the call that was finally executed
(under the original call id) or the failure notice.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from deferred_tools.abstractions.dto.tools import (
    ToolCallAttempt,
    ToolCallRequest,
    ToolDefinition,
    ToolExecutionOutcome,
    ValidationResult,
)
from deferred_tools.exceptions import RetryExhausted, ToolNotFound, TransportError
from deferred_tools.interfaces.services.tracing import ITracer
from deferred_tools.orchestration.validator import Validator

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    AWAITING_CALL = "awaiting_call"
    VALIDATING = "validating"
    EXECUTING = "executing"
    EPHEMERAL_REPAIR = "ephemeral_repair"
    AWAITING_CORRECTED_CALL = "awaiting_corrected_call"
    RESOLVED_SUCCESS = "resolved_success"
    RESOLVED_FAILURE = "resolved_failure"


@dataclass(frozen=True)
class CorrectionRequest:
    """Payload of one ephemeral correction exchange."""
    call: ToolCallRequest
    error: str
    definition: Optional[ToolDefinition]
    attempt: int

    def prompt(self) -> str:
        lines = [f"Your call to tool '{self.call.name}' was rejected: {self.error}"]
        if self.definition is not None:
            lines.append("Full parameter schema:")
            lines.append(json.dumps(self.definition.parameters, ensure_ascii=False))
        lines.append("Reply with a single corrected call to this tool.")
        return "\n".join(lines)


Executor = Callable[[str, Dict[str, Any]], Awaitable[Any]]
CorrectionRequester = Callable[[CorrectionRequest], Awaitable[Optional[ToolCallRequest]]]


@dataclass
class _Resolution:
    """Transient bookkeeping for one resolve() call."""
    call: ToolCallRequest
    round_number: int
    attempts: List[ToolCallAttempt] = field(default_factory=list)
    states: List[str] = field(default_factory=list)
    corrections: int = 0

    def enter(self, state: ResolutionState) -> None:
        self.states.append(state.value)

    def finish(self, outcome: ToolExecutionOutcome) -> ToolExecutionOutcome:
        self.enter(ResolutionState.RESOLVED_SUCCESS if outcome.ok else ResolutionState.RESOLVED_FAILURE)
        outcome.attempts = self.attempts
        outcome.states = self.states
        outcome.corrected = self.corrections > 0
        return outcome


class RetryOrchestrator:
    def __init__(
        self,
        validator: Validator,
        ephemeral_retry_cap: int = 1,
        tracer: Optional[ITracer] = None,
    ) -> None:
        self.validator = validator
        self.ephemeral_retry_cap = max(0, int(ephemeral_retry_cap))
        self.tracer = tracer

    def _trace(self, event: str, **data: Any) -> None:
        if self.tracer is not None:
            self.tracer.record(event, data)

    def _validate(self, res: _Resolution, call: ToolCallRequest) -> ValidationResult:
        res.enter(ResolutionState.VALIDATING)
        result = self.validator.validate(call.name, call.arguments)
        res.attempts.append(
            ToolCallAttempt(
                round=res.round_number,
                tool_name=call.name,
                arguments=dict(call.arguments) if isinstance(call.arguments, dict) else {},
                outcome="valid" if result.valid else "invalid",
                error=result.error,
            )
        )
        return result

    def _definition(self, name: str) -> Optional[ToolDefinition]:
        try:
            return self.validator.catalog.schema(name)
        except ToolNotFound:
            return None

    async def resolve(
        self,
        call: ToolCallRequest,
        executor: Executor,
        correction_requester: CorrectionRequester,
        round_number: int = 1,
    ) -> ToolExecutionOutcome:
        res = _Resolution(call=call, round_number=round_number)
        res.enter(ResolutionState.AWAITING_CALL)
        current = call

        result = self._validate(res, current)
        while not result.valid:
            if res.corrections >= self.ephemeral_retry_cap:
                return self._exhausted(res, current, result)

            res.corrections += 1
            res.enter(ResolutionState.EPHEMERAL_REPAIR)
            request = CorrectionRequest(
                call=current,
                error=result.error or "invalid arguments",
                definition=self._definition(current.name),
                attempt=res.corrections,
            )
            self._trace("correction_requested", tool=current.name, attempt=res.corrections, error=request.error)

            res.enter(ResolutionState.AWAITING_CORRECTED_CALL)
            try:
                corrected = await correction_requester(request)
            except (TransportError, TimeoutError) as e:
                logger.warning(f"Correction request for '{current.name}' failed: {e}")
                return res.finish(
                    ToolExecutionOutcome(call=call, ok=False, error=str(e), error_kind=type(e).__name__)
                )

            if corrected is None:
                res.attempts.append(
                    ToolCallAttempt(round_number, current.name, {}, "no_correction", request.error)
                )
                return self._exhausted(res, current, result)

            current = call.with_correction(corrected)
            result = self._validate(res, current)

        return res.finish(await self._execute(res, current, executor))

    def _exhausted(
        self, res: _Resolution, current: ToolCallRequest, result: ValidationResult
    ) -> ToolExecutionOutcome:
        error = RetryExhausted(current.name, res.corrections, result.error)
        error.__cause__ = result.to_error()
        logger.warning(str(error))
        self._trace("retry_exhausted", tool=current.name, attempts=res.corrections, error=result.error)
        # failure notice goes out under the originally requested call
        return res.finish(
            ToolExecutionOutcome(call=res.call, ok=False, error=str(error), error_kind=type(error).__name__)
        )

    async def _execute(
        self, res: _Resolution, call: ToolCallRequest, executor: Executor
    ) -> ToolExecutionOutcome:
        res.enter(ResolutionState.EXECUTING)
        try:
            value = await executor(call.name, dict(call.arguments))
        except asyncio.CancelledError:
            raise
        except (TransportError, TimeoutError) as e:
            logger.warning(f"Tool '{call.name}' failed: {e!r}")
            return ToolExecutionOutcome(
                call=call, ok=False, error=str(e) or type(e).__name__, error_kind=type(e).__name__
            )
        except Exception as e:
            logger.exception(f"Tool '{call.name}' raised an unexpected error")
            return ToolExecutionOutcome(call=call, ok=False, error=str(e), error_kind=type(e).__name__)
        return ToolExecutionOutcome(call=call, ok=True, value=value)


__all__ = [
    "ResolutionState",
    "CorrectionRequest",
    "RetryOrchestrator",
    "Executor",
    "CorrectionRequester",
]
