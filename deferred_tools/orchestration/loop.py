"""
Bounded multi-round tool-calling loop.

Each round sends the persisted history plus the catalog's tool payload to
the model. Requested calls are resolved concurrently through the retry
orchestrator and reported back in request order. After max_tool_rounds
execution rounds a final request is made with tools withheld, so the model
has to answer from the context gathered so far.

A round is all-or-nothing: its assistant turn and tool results are
appended to the conversation only once every call of the round has an
outcome. Cancellation or a fatal timeout leaves the conversation as it was
before the round started.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Union, TYPE_CHECKING

from deferred_tools.abstractions.dto.tools import ToolCallRequest, ToolExecutionOutcome
from deferred_tools.domain.entities.conversation import Conversation, ConversationTurn
from deferred_tools.exceptions import ToolTimeoutError, TransportError
from deferred_tools.infrastructure.config import OrchestratorConfig
from deferred_tools.interfaces.services.model import IModelAdapter
from deferred_tools.interfaces.services.tracing import ITracer
from deferred_tools.interfaces.services.transport import IToolTransport
from deferred_tools.orchestration.catalog import ToolCatalog
from deferred_tools.orchestration.retry import CorrectionRequest, RetryOrchestrator
from deferred_tools.orchestration.validator import Validator

if TYPE_CHECKING:
    from deferred_tools.infrastructure.resources.bridge import ResourceBridge

logger = logging.getLogger(__name__)


@dataclass
class LoopResult:
    content: str
    rounds: int
    round_limit_reached: bool
    conversation: Conversation
    outcomes: List[ToolExecutionOutcome] = field(default_factory=list)


class ToolCallLoop:
    def __init__(
        self,
        catalog: ToolCatalog,
        model: IModelAdapter,
        transport: Optional[IToolTransport] = None,
        config: Optional[OrchestratorConfig] = None,
        resource_bridge: Optional["ResourceBridge"] = None,
        tracer: Optional[ITracer] = None,
    ) -> None:
        self.catalog = catalog
        self.model = model
        self.transport = transport
        self.config = config or OrchestratorConfig()
        self.resource_bridge = resource_bridge
        self.tracer = tracer
        self.validator = Validator(catalog)
        self.orchestrator = RetryOrchestrator(
            self.validator, ephemeral_retry_cap=self.config.ephemeral_retry_cap, tracer=tracer
        )
        if transport is not None:
            catalog.attach(transport)

    def _trace(self, event: str, **data: Any) -> None:
        if self.tracer is not None:
            self.tracer.record(event, data)

    # ---------- catalog ----------

    async def refresh_catalog(self) -> None:
        """Repopulate from the transport and re-register bridged resource tools."""
        if self.transport is not None:
            self.catalog.populate(await self.transport.list_tools())
        if self.resource_bridge is not None:
            self.resource_bridge.register(self.catalog)

    async def _ensure_catalog(self) -> None:
        if self.catalog.count() == 0:
            await self.refresh_catalog()

    # ---------- execution ----------

    async def _execute(self, name: str, arguments: Dict[str, Any]) -> Any:
        if self.resource_bridge is not None and self.resource_bridge.handles(name):
            coro = self.resource_bridge.execute(name, arguments)
        elif self.transport is not None:
            coro = self.transport.execute_tool(name, arguments)
        else:
            raise TransportError(f"No transport configured to execute '{name}'")

        return await self._bounded(coro, f"Tool '{name}'", name)

    async def _bounded(self, coro: Awaitable[Any], what: str, tool_name: str) -> Any:
        """Await coro under call_timeout (tool executions and correction requests alike)."""
        if self.config.call_timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, self.config.call_timeout)
        except asyncio.TimeoutError as e:
            raise ToolTimeoutError(
                f"{what} timed out after {self.config.call_timeout}s", tool_name=tool_name
            ) from e

    def _correction_requester(self, history: List[ConversationTurn]):
        async def request_correction(request: CorrectionRequest) -> Optional[ToolCallRequest]:
            # ephemeral: these turns only live for this one model round-trip
            turns = list(history) + [
                ConversationTurn.assistant(tool_calls=[request.call], ephemeral=True),
                ConversationTurn.tool_result(request.call, request.prompt(), ephemeral=True),
            ]
            if request.definition is not None:
                tools = [request.definition.to_dict()]
            else:
                tools = self.catalog.tool_payload(self.config.use_deferred_loading)
            reply = await self._bounded(
                self.model.complete(turns, tools), f"Correction request for '{request.call.name}'", request.call.name
            )
            if not reply.tool_calls:
                return None
            return reply.tool_calls[0]

        return request_correction

    def _timed_out(self, call: ToolCallRequest) -> ToolExecutionOutcome:
        error = ToolTimeoutError(
            f"Round timed out after {self.config.round_timeout}s before '{call.name}' resolved",
            tool_name=call.name,
        )
        return ToolExecutionOutcome(call=call, ok=False, error=str(error), error_kind=type(error).__name__)

    async def _run_round(
        self, calls: List[ToolCallRequest], round_number: int, history: List[ConversationTurn]
    ) -> List[ToolExecutionOutcome]:
        requester = self._correction_requester(history)
        tasks = [
            asyncio.ensure_future(self.orchestrator.resolve(call, self._execute, requester, round_number))
            for call in calls
        ]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.config.round_timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Round {round_number} cancelled; discarding partial results")
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Round {round_number}: {len(pending)} call(s) exceeded the round timeout")

        # request order, not completion order
        outcomes: List[ToolExecutionOutcome] = []
        for call, task in zip(calls, tasks):
            if task in pending:
                outcomes.append(self._timed_out(call))
            else:
                outcomes.append(task.result())
        return outcomes

    # ---------- loop ----------

    async def run(self, conversation: Union[Conversation, str]) -> LoopResult:
        if isinstance(conversation, str):
            conversation = Conversation([ConversationTurn.user(conversation)])

        all_outcomes: List[ToolExecutionOutcome] = []
        max_rounds = self.config.max_tool_rounds

        for round_number in range(1, max_rounds + 1):
            await self._ensure_catalog()
            tools = self.catalog.tool_payload(self.config.use_deferred_loading)
            history = conversation.snapshot()
            self._trace("round_started", round=round_number, tools=len(tools))

            turn = await self.model.complete(history, tools)
            if turn.is_final:
                conversation.append(ConversationTurn.assistant(turn.content))
                return LoopResult(turn.content, round_number, False, conversation, all_outcomes)

            logger.debug(f"Round {round_number}/{max_rounds}: {len(turn.tool_calls)} tool call(s)")
            # the listing may have changed while the model was answering
            await self._ensure_catalog()
            outcomes = await self._run_round(turn.tool_calls, round_number, history)

            if self.config.timeout_fatal:
                for outcome in outcomes:
                    if outcome.error_kind == ToolTimeoutError.__name__:
                        raise ToolTimeoutError(outcome.error or "tool call timed out", tool_name=outcome.tool_name)

            conversation.extend_round(
                [ConversationTurn.assistant(turn.content, [o.call for o in outcomes])]
                + [ConversationTurn.tool_result(o.call, o.content()) for o in outcomes]
            )
            all_outcomes.extend(outcomes)
            self._trace("round_completed", round=round_number, calls=[o.tool_name for o in outcomes])

        # round limit reached: withhold tools and force a terminal answer
        logger.info(f"Tool round limit ({max_rounds}) reached; requesting final answer")
        self._trace("forced_final", round=max_rounds + 1)
        turn = await self.model.complete(conversation.snapshot(), None)
        conversation.append(ConversationTurn.assistant(turn.content))
        return LoopResult(turn.content, max_rounds + 1, True, conversation, all_outcomes)


__all__ = ["ToolCallLoop", "LoopResult"]
