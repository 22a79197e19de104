import pytest

from deferred_tools.domain.entities.conversation import ConversationTurn
from deferred_tools.domain.entities.model_turn import ModelTurn
from deferred_tools.exceptions import TransportError
from deferred_tools.orchestration.loop import ToolCallLoop
from deferred_tools.ui.cli.app import ask, new_conversation, parse_args

from conftest import ScriptedModel


class FailingOnceModel:
    def __init__(self):
        self.calls = []

    async def complete(self, history, tools):
        self.calls.append(list(history))
        if len(self.calls) == 1:
            raise TransportError("model unavailable")
        return ModelTurn(content="back online")


@pytest.mark.asyncio
async def test_ask_appends_user_turn_and_answer(catalog, local_transport):
    loop = ToolCallLoop(catalog, ScriptedModel([ModelTurn(content="hello")]), local_transport)
    conversation = new_conversation("Be brief")

    result = await ask(loop, conversation, "hi")

    assert result.content == "hello"
    assert [t.role for t in conversation.turns] == ["system", "user", "assistant"]


@pytest.mark.asyncio
async def test_failed_run_does_not_leave_dangling_user_turn(catalog, local_transport):
    model = FailingOnceModel()
    loop = ToolCallLoop(catalog, model, local_transport)
    conversation = new_conversation(None)
    conversation.append(ConversationTurn.user("earlier"))
    conversation.append(ConversationTurn.assistant("earlier answer"))

    with pytest.raises(TransportError):
        await ask(loop, conversation, "first try")
    assert [t.content for t in conversation.turns] == ["earlier", "earlier answer"]

    result = await ask(loop, conversation, "second try")

    assert result.content == "back online"
    roles = [t.role for t in model.calls[-1]]
    assert roles == ["user", "assistant", "user"]
    assert [t.content for t in model.calls[-1] if t.role == "user"] == ["earlier", "second try"]


def test_parse_args_defaults():
    args = parse_args([])
    assert args.provider == "ollama"
    assert args.deferred is None
    assert args.resources is False
