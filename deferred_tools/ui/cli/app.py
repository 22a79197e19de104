"""
Interactive CLI for the deferred tool-calling loop.

Features:
- Provider selection (OpenAI, DeepSeek, Ollama, Anthropic, custom OpenAI-compatible)
- Tools served by an HTTP tool server, optionally with resources bridged as tools
- Metadata-only tool listings with --deferred
- Rich panels for answers and the tool catalog

Commands:
  /help      Show help
  /tools     List catalog tools
  /config    Show current configuration
  /refresh   Re-fetch the tool listing
  /history   Show the persisted conversation
  /clear     Start a new conversation
  /exit      Exit

Run:
  python -m deferred_tools.ui.cli --provider ollama --tool-server http://localhost:8080
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from deferred_tools.api.di.composition import build_loop, build_model, build_transport
from deferred_tools.domain.entities.conversation import Conversation, ConversationTurn
from deferred_tools.exceptions import OrchestratorError
from deferred_tools.infrastructure.config import OrchestratorConfig
from deferred_tools.orchestration.loop import LoopResult, ToolCallLoop
from deferred_tools.ui.cli.console import configure_logging, make_console

COMMANDS = ["/help", "/tools", "/config", "/refresh", "/history", "/clear", "/exit"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="deferred-tools", description="Deferred tool-calling chat")
    parser.add_argument("--provider", default="ollama", choices=["openai", "deepseek", "ollama", "anthropic", "custom"])
    parser.add_argument("--model", default=None)
    parser.add_argument("--base-url", default=None, help="Model endpoint (OpenAI-compatible providers)")
    parser.add_argument("--tool-server", default=None, help="Tool server URL (default: TOOL_SERVER_URL)")
    parser.add_argument("--deferred", action="store_true", default=None, help="Send metadata-only tool listings")
    parser.add_argument("--max-rounds", type=int, default=None)
    parser.add_argument("--resources", action="store_true", help="Expose server resources as tools")
    parser.add_argument("--system", default=None, help="System prompt")
    parser.add_argument("--theme", default="dark", choices=["dark", "light"])
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def list_tools(console: Console, loop: ToolCallLoop) -> None:
    """Render a table of catalog tools."""
    table = Table(title="Catalog Tools", box=ROUNDED)
    table.add_column("Name", no_wrap=True)
    table.add_column("Description")
    table.add_column("Required Params")
    for name in loop.catalog.names():
        definition = loop.catalog.schema(name)
        req = ", ".join(definition.schema.required)
        table.add_row(name, definition.description, req or "-")
    console.print(table)


def show_config(console: Console, loop: ToolCallLoop, args: argparse.Namespace) -> None:
    cfg = loop.config
    content = (
        f"Provider: {args.provider}\n"
        f"Model: {getattr(loop.model, 'model', '')}\n"
        f"Tool server: {getattr(loop.transport, 'base_url', '-')}\n"
        f"Deferred loading: {cfg.use_deferred_loading}\n"
        f"Max tool rounds: {cfg.max_tool_rounds}\n"
        f"Ephemeral retry cap: {cfg.ephemeral_retry_cap}\n"
        f"Call timeout: {cfg.call_timeout or '-'}  Round timeout: {cfg.round_timeout or '-'}"
    )
    console.print(Panel(content, title="Configuration", box=ROUNDED))


def show_history(console: Console, conversation: Conversation) -> None:
    table = Table(title="Conversation", box=ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Content")
    for i, turn in enumerate(conversation.turns, 1):
        text = turn.content
        if turn.tool_calls:
            text = (text + "\n" if text else "") + ", ".join(f"{c.name}({c.arguments})" for c in turn.tool_calls)
        table.add_row(str(i), turn.role, text)
    console.print(table)


def show_help(console: Console) -> None:
    console.print(
        Panel(
            "Commands\n"
            "/help      Show help\n"
            "/tools     List catalog tools\n"
            "/config    Show configuration\n"
            "/refresh   Re-fetch the tool listing\n"
            "/history   Show the persisted conversation\n"
            "/clear     Start a new conversation\n"
            "/exit      Exit\n\n"
            "Type natural language instructions to let the model choose and run tools.",
            title="Help",
            box=ROUNDED,
        )
    )


def new_conversation(system: Optional[str]) -> Conversation:
    return Conversation([ConversationTurn.system(system)] if system else [])


async def ask(loop: ToolCallLoop, conversation: Conversation, line: str) -> LoopResult:
    """Run one user message; a failed run leaves the conversation untouched."""
    turn = ConversationTurn.user(line)
    conversation.append(turn)
    try:
        return await loop.run(conversation)
    except (OrchestratorError, asyncio.CancelledError):
        if conversation.turns and conversation.turns[-1] is turn:
            conversation.turns.pop()
        raise


async def run_cli(args: argparse.Namespace) -> int:
    console = make_console(args.theme)
    configure_logging(console, args.log_level)

    config = OrchestratorConfig.from_env()
    overrides = {}
    if args.deferred is not None:
        overrides["use_deferred_loading"] = args.deferred
    if args.max_rounds is not None:
        overrides["max_tool_rounds"] = args.max_rounds
    if overrides:
        config = dataclasses.replace(config, **overrides)

    model = build_model(args.provider, model=args.model, base_url=args.base_url)
    transport = build_transport(args.tool_server)
    loop = build_loop(model, transport, config=config, bridge_resources=args.resources)
    conversation = new_conversation(args.system)

    session: PromptSession = PromptSession(history=InMemoryHistory())
    completer = WordCompleter(COMMANDS, ignore_case=True)
    show_help(console)

    while True:
        try:
            with patch_stdout():
                line = (await session.prompt_async("> ", completer=completer)).strip()
        except (EOFError, KeyboardInterrupt):
            return 0
        if not line:
            continue

        try:
            if line == "/exit":
                return 0
            elif line == "/help":
                show_help(console)
            elif line == "/tools":
                if loop.catalog.count() == 0:
                    await loop.refresh_catalog()
                list_tools(console, loop)
            elif line == "/config":
                show_config(console, loop, args)
            elif line == "/refresh":
                await loop.refresh_catalog()
                console.print(f"Catalog refreshed: {loop.catalog.count()} tools", style="success")
            elif line == "/history":
                show_history(console, conversation)
            elif line == "/clear":
                conversation = new_conversation(args.system)
                console.clear()
            else:
                with console.status("Thinking..."):
                    result = await ask(loop, conversation, line)
                title = "Answer (round limit reached)" if result.round_limit_reached else "Answer"
                console.print(
                    Panel(result.content or "(empty)", title=title, box=ROUNDED, border_style="accent", style="answer")
                )
                for outcome in result.outcomes:
                    if not outcome.ok:
                        style = "warning"
                    elif outcome.corrected:
                        style = "corrected"
                    else:
                        style = "tool"
                    mark = " (corrected)" if outcome.corrected else ""
                    console.print(f"  {outcome.tool_name}{mark}: {'ok' if outcome.ok else outcome.error}", style=style)
        except OrchestratorError as e:
            console.print(f"Error: {e}", style="error")


def main(argv: Optional[List[str]] = None) -> int:
    return asyncio.run(run_cli(parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
