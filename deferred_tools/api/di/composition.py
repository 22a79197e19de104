"""
Composition module (edge wiring) for the CLI and embedding applications.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from deferred_tools.infrastructure.config import OrchestratorConfig
from deferred_tools.orchestration.catalog import ToolCatalog
from deferred_tools.orchestration.loop import ToolCallLoop

if TYPE_CHECKING:
    from deferred_tools.interfaces.services.model import IModelAdapter
    from deferred_tools.interfaces.services.tracing import ITracer
    from deferred_tools.interfaces.services.transport import IToolTransport


def build_model(
    provider: str,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> "IModelAdapter":
    """
    Construct a model adapter for the provider choice.
    """
    provider = (provider or "").lower().strip()
    if provider == "anthropic":
        from deferred_tools.infrastructure.llm.anthropic_model import AnthropicModel
        return AnthropicModel(api_key=api_key, model=model)
    if provider == "deepseek":
        from deferred_tools.infrastructure.llm.openai_compatible import OpenAICompatibleModel
        return OpenAICompatibleModel(
            api_key=api_key, base_url=base_url or "https://api.deepseek.com", model=model or "deepseek-chat"
        )
    if provider == "openai":
        from deferred_tools.infrastructure.llm.openai_compatible import OpenAICompatibleModel
        return OpenAICompatibleModel(
            api_key=api_key, base_url=base_url or "https://api.openai.com/v1", model=model or "gpt-4o-mini"
        )
    # Default to Ollama / custom OpenAI-compatible endpoint
    from deferred_tools.infrastructure.llm.openai_compatible import OpenAICompatibleModel
    return OpenAICompatibleModel(api_key=api_key, base_url=base_url, model=model)


def build_transport(base_url: Optional[str] = None) -> "IToolTransport":
    """
    Construct the HTTP tool-server transport.
    """
    from deferred_tools.infrastructure.transport.http_transport import HttpToolTransport
    return HttpToolTransport(base_url=base_url)


def build_loop(
    model: "IModelAdapter",
    transport: Optional["IToolTransport"] = None,
    config: Optional[OrchestratorConfig] = None,
    bridge_resources: bool = False,
    tracer: Optional["ITracer"] = None,
) -> ToolCallLoop:
    """
    Wire a loop around a freshly owned catalog. With bridge_resources the
    transport must also implement the resource provider port.
    """
    bridge = None
    if bridge_resources and transport is not None:
        from deferred_tools.infrastructure.resources.bridge import ResourceBridge
        bridge = ResourceBridge(transport)  # type: ignore[arg-type]
    return ToolCallLoop(
        catalog=ToolCatalog(),
        model=model,
        transport=transport,
        config=config or OrchestratorConfig.from_env(),
        resource_bridge=bridge,
        tracer=tracer,
    )
