"""
Unit Tests for Agent Orchestrator

Tests the model <-> tools loop with a scripted model.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from core.conversation import Role, ToolCall, Turn
from core.errors import LLMServiceError, MaxIterationsExceeded, RequestDeadlineExceeded
from core.orchestrator import AgentOrchestrator, AgentStatus, run_agent_loop
from services.integration_service import IntegrationRegistry
from tests.conftest import FakeClientFactory, mark_connected


def tool_turn(*calls):
    return Turn.assistant(tool_calls=[ToolCall(call_id, name, args) for call_id, name, args in calls])


class TestAgentOrchestrator:
    """Test AgentOrchestrator class."""

    @pytest.fixture
    def llm(self):
        return AsyncMock()

    @pytest.fixture
    def orchestrator(self, registry, llm):
        return AgentOrchestrator(registry=registry, llm=llm, system_prompt="You are a tutor.")

    @pytest.mark.asyncio
    async def test_plain_answer_single_iteration(self, orchestrator, llm):
        """Test a direct answer ends the loop after one model call."""
        llm.return_value = Turn.assistant("Let's start with what you already know.")

        result = await orchestrator.run([Turn.user("Explain recursion")])

        assert result.final_answer == "Let's start with what you already know."
        assert result.iterations == 1
        assert result.status == AgentStatus.DONE
        assert result.tool_calls_made == []
        assert [t.role for t in result.conversation] == [Role.USER, Role.ASSISTANT]

    @pytest.mark.asyncio
    async def test_tool_round_trip(self, orchestrator, llm):
        """Test a tool request is dispatched and its result fed back."""
        llm.side_effect = [
            tool_turn(("c1", "material_generator", {"topic": "Mitosis"})),
            Turn.assistant("Here are your flashcards."),
        ]

        result = await orchestrator.run([Turn.user("Make flashcards on mitosis")])

        assert result.iterations == 2
        assert result.final_answer == "Here are your flashcards."
        assert result.tools_used == ["material_generator"]

        tool_turns = [t for t in result.conversation if t.role == Role.TOOL]
        assert len(tool_turns) == 1
        assert tool_turns[0].tool_call_id == "c1"
        assert json.loads(tool_turns[0].content)["type"] == "flashcards"

        assert [t.role for t in result.conversation] == [Role.USER, Role.ASSISTANT, Role.TOOL, Role.ASSISTANT]

    @pytest.mark.asyncio
    async def test_caller_history_not_mutated(self, orchestrator, llm):
        """Test the loop works on a copy of the initial messages."""
        llm.return_value = Turn.assistant("Answer")
        messages = [Turn.user("Q")]

        await orchestrator.run(messages)

        assert len(messages) == 1

    @pytest.mark.asyncio
    async def test_tool_error_fed_back(self, orchestrator, llm):
        """Test tool failures become tool content, not exceptions."""
        llm.side_effect = [
            tool_turn(("c1", "list_upcoming_assignments", {})),
            Turn.assistant("Canvas isn't connected yet."),
        ]

        result = await orchestrator.run([Turn.user("What's due?")])

        tool_content = json.loads(result.conversation[2].content)
        assert tool_content == {"success": False, "error": "No canvas server connected"}
        assert result.tool_calls_made[0]["success"] is False
        assert result.tool_calls_made[0]["error"] == "No canvas server connected"

    @pytest.mark.asyncio
    async def test_empty_canvas_listing_fed_back(self, llm):
        """Test an empty assignment list reaches the model as a tool turn."""
        get_upcoming = AsyncMock(return_value=[])
        registry = IntegrationRegistry(client_factory=FakeClientFactory(methods={"get_upcoming_assignments": get_upcoming}))
        mark_connected(await registry.add({"type": "canvas", "name": "Canvas", "credential": "tok"}))
        roles_seen = []

        async def model(conversation, catalog, **kwargs):
            roles_seen.append([t.role for t in conversation])
            if len(roles_seen) == 1:
                assert "list_upcoming_assignments" in {t["name"] for t in catalog}
                return tool_turn(("c1", "list_upcoming_assignments", {}))
            return Turn.assistant("Nothing is due. Want to review something?")

        llm.side_effect = model
        orchestrator = AgentOrchestrator(registry=registry, llm=llm)

        result = await orchestrator.run([Turn.user("What's due?")])

        get_upcoming.assert_awaited_once_with(limit=20)
        assert roles_seen[1] == [Role.USER, Role.ASSISTANT, Role.TOOL]
        tool_content = json.loads(result.conversation[2].content)
        assert tool_content["success"] is True
        assert tool_content["assignments"] == []
        assert result.iterations == 2
        assert result.final_answer == "Nothing is due. Want to review something?"

    @pytest.mark.asyncio
    async def test_multiple_calls_keep_order(self, registry, llm):
        """Test tool turns follow the call order even when run concurrently."""
        dispatcher = AsyncMock()

        async def dispatch(name, args):
            # The first call finishes last
            await asyncio.sleep(0.02 if name == "slow" else 0)
            return {"success": True, "tool": name}

        dispatcher.dispatch.side_effect = dispatch
        orchestrator = AgentOrchestrator(registry=registry, dispatcher=dispatcher, llm=llm, concurrent_tools=True)
        llm.side_effect = [
            tool_turn(("c1", "slow", {}), ("c2", "fast", {})),
            Turn.assistant("Done"),
        ]

        result = await orchestrator.run([Turn.user("Go")])

        tool_turns = [t for t in result.conversation if t.role == Role.TOOL]
        assert [t.tool_call_id for t in tool_turns] == ["c1", "c2"]
        assert [tc["tool"] for tc in result.tool_calls_made] == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_max_iterations(self, registry, llm):
        """Test the loop stops when the model never stops requesting tools."""
        llm.side_effect = lambda *args, **kwargs: tool_turn((ToolCall.new_id(), "material_generator", {"topic": "x"}))
        orchestrator = AgentOrchestrator(registry=registry, llm=llm, max_iterations=3)

        with pytest.raises(MaxIterationsExceeded) as exc_info:
            await orchestrator.run([Turn.user("Loop forever")])

        assert llm.await_count == 3
        assert exc_info.value.iterations == 3
        # user + 3 x (assistant + tool)
        assert len(exc_info.value.conversation) == 7

    @pytest.mark.asyncio
    async def test_request_deadline(self, registry, llm):
        """Test the deadline is checked before each model call."""
        async def slow_model(*args, **kwargs):
            await asyncio.sleep(0.05)
            return tool_turn((ToolCall.new_id(), "material_generator", {"topic": "x"}))

        llm.side_effect = slow_model
        orchestrator = AgentOrchestrator(registry=registry, llm=llm, request_timeout=0.01)

        with pytest.raises(RequestDeadlineExceeded) as exc_info:
            await orchestrator.run([Turn.user("Q")])

        assert exc_info.value.iterations == 1

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self, orchestrator, llm):
        """Test model failures end the run."""
        llm.side_effect = LLMServiceError("503 unavailable")

        with pytest.raises(LLMServiceError):
            await orchestrator.run([Turn.user("Q")])

    @pytest.mark.asyncio
    async def test_catalog_rebuilt_each_iteration(self, registry, llm):
        """Test a connection made mid-run shows up in the next model call."""
        instance = await registry.add({"type": "slack", "name": "Study group", "credential": "xoxb"})

        async def model(conversation, catalog, **kwargs):
            if len(conversation) == 1:
                mark_connected(instance)
                return tool_turn(("c1", "material_generator", {"topic": "x"}))
            return Turn.assistant("Done")

        llm.side_effect = model
        orchestrator = AgentOrchestrator(registry=registry, llm=llm)

        await orchestrator.run([Turn.user("Q")])

        first_names = {t["name"] for t in llm.call_args_list[0].args[1]}
        second_names = {t["name"] for t in llm.call_args_list[1].args[1]}
        assert "send_slack_message" not in first_names
        assert "send_slack_message" in second_names
        assert "assignment_starter" in first_names

    @pytest.mark.asyncio
    async def test_context_hint_appended_to_system_prompt(self, orchestrator, llm):
        """Test the context hint is sent with the system instruction."""
        llm.return_value = Turn.assistant("OK")

        await orchestrator.run([Turn.user("Q")], context_hint="Mode: Study.")

        assert llm.call_args.kwargs["system_instruction"] == "You are a tutor.\n\nMode: Study."

    @pytest.mark.asyncio
    async def test_accepts_dict_history(self, orchestrator, llm):
        """Test dict-form history is loaded."""
        llm.return_value = Turn.assistant("OK")

        result = await orchestrator.run([
            {"role": "user", "content": "Earlier question"},
            {"role": "assistant", "content": "Earlier answer"},
            {"role": "user", "content": "Follow-up"},
        ])

        assert len(result.conversation) == 4


class TestRunAgentLoop:
    """Test the run_agent_loop convenience function."""

    @pytest.mark.asyncio
    async def test_run_agent_loop(self, registry):
        """Test the convenience wrapper runs the loop."""
        llm = AsyncMock(return_value=Turn.assistant("Hi!"))

        result = await run_agent_loop([Turn.user("Hello")], registry=registry, llm=llm)

        assert result.final_answer == "Hi!"
