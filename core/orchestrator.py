"""
Agent Orchestrator - Main Agent Loop

Implements the tool-orchestration state machine:
1. AWAITING_MODEL: rebuild the tool catalog, send the conversation to the model
2. EXECUTING_TOOLS: run every requested tool through the dispatcher and
   append one tool turn per call
3. Repeat until the model answers without requesting tools (DONE)

Tool failures are fed back to the model as tool content. Model failures,
the iteration cap and the request deadline end the run with an exception
that carries the conversation so far.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import (
    SYSTEM_PROMPT,
    TEMPERATURE,
    MAX_AGENT_ITERATIONS,
    AGENT_REQUEST_TIMEOUT,
    CONCURRENT_TOOL_CALLS,
)
from tools import get_builtin_descriptors
from .conversation import Turn, ToolCall, find_final_answer, load_history
from .dispatcher import ToolDispatcher
from .errors import MaxIterationsExceeded, RequestDeadlineExceeded

logger = logging.getLogger(__name__)

LLMCallable = Callable[..., Awaitable[Turn]]


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class AgentStatus(Enum):
    """Agent loop state."""
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


@dataclass
class ToolResult:
    """
    Outcome of one dispatched tool call.

    Attributes:
        call_id: Id of the originating tool call
        tool_name: Name of the tool that was called
        success: Whether the tool reported success
        result: The payload appended to the conversation
        execution_time: Time taken to execute (seconds)
    """
    call_id: str
    tool_name: str
    success: bool
    result: Dict[str, Any] = field(default_factory=dict)
    execution_time: float = 0.0

    @property
    def error(self) -> Optional[str]:
        return None if self.success else self.result.get("error")

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.call_id,
            "tool": self.tool_name,
            "success": self.success,
            "error": self.error,
            "execution_time": round(self.execution_time, 3),
        }


@dataclass
class AgentResult:
    """
    Result of a completed agent run.

    Attributes:
        final_answer: Content of the most recent assistant turn
        conversation: Full turn list for the caller to persist
        iterations: Number of model calls made
        tool_calls_made: Summaries of every dispatched tool call, in order
    """
    final_answer: str
    conversation: List[Turn]
    iterations: int
    tool_calls_made: List[Dict[str, Any]] = field(default_factory=list)
    status: AgentStatus = AgentStatus.DONE
    execution_time: float = 0.0

    @property
    def tools_used(self) -> List[str]:
        return sorted({tc["tool"] for tc in self.tool_calls_made})


# ============================================================================
# AGENT ORCHESTRATOR
# ============================================================================

class AgentOrchestrator:
    """
    Main agent orchestrator.

    Coordinates the catalog, the model and the dispatcher until the model
    produces a plain answer.
    """

    def __init__(
        self,
        registry=None,
        dispatcher: Optional[ToolDispatcher] = None,
        llm: Optional[LLMCallable] = None,
        system_prompt: Optional[str] = SYSTEM_PROMPT,
        temperature: float = TEMPERATURE,
        max_iterations: int = MAX_AGENT_ITERATIONS,
        request_timeout: float = AGENT_REQUEST_TIMEOUT,
        concurrent_tools: bool = CONCURRENT_TOOL_CALLS,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: IntegrationRegistry (defaults to the process-wide one)
            dispatcher: ToolDispatcher (defaults to one over `registry`)
            llm: Model call, signature of ai.call_llm_with_tools
            system_prompt: System instruction sent with every model call
            temperature: Sampling temperature for tool selection
            max_iterations: Maximum number of model calls per run
            request_timeout: Deadline for the whole run, checked between iterations
            concurrent_tools: Run the tool calls of one model turn concurrently
        """
        if registry is None:
            from services.integration_service import get_integration_registry
            registry = get_integration_registry()
        if llm is None:
            from ai import call_llm_with_tools
            llm = call_llm_with_tools

        self.registry = registry
        self.dispatcher = dispatcher or ToolDispatcher(registry)
        self.llm = llm
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_iterations = max_iterations
        self.request_timeout = request_timeout
        self.concurrent_tools = concurrent_tools

    def build_catalog(self) -> List[Dict[str, Any]]:
        """Connected integrations' tools followed by the built-in tools."""
        return self.registry.get_tool_catalog() + get_builtin_descriptors()

    def _system_instruction(self, context_hint: Optional[str]) -> Optional[str]:
        if not context_hint:
            return self.system_prompt
        if not self.system_prompt:
            return context_hint
        return f"{self.system_prompt}\n\n{context_hint}"

    async def run(
        self,
        initial_messages: List[Any],
        context_hint: Optional[str] = None,
    ) -> AgentResult:
        """
        Execute the agent loop over a conversation.

        Args:
            initial_messages: History ending with the new user turn
                (Turn objects or their dict form); not mutated
            context_hint: Extra instruction appended to the system prompt

        Returns:
            AgentResult with the final answer and full conversation

        Raises:
            LLMServiceError: The model could not be reached
            MaxIterationsExceeded: The model kept requesting tools
            RequestDeadlineExceeded: The request deadline passed
        """
        conversation: List[Turn] = list(load_history(initial_messages))
        system_instruction = self._system_instruction(context_hint)

        loop = asyncio.get_running_loop()
        start_time = time.time()
        deadline = loop.time() + self.request_timeout

        status = AgentStatus.AWAITING_MODEL
        iterations = 0
        tool_calls_made: List[Dict[str, Any]] = []

        while status != AgentStatus.DONE:
            if status == AgentStatus.AWAITING_MODEL:
                if iterations >= self.max_iterations:
                    logger.warning(f"⚠️  Reached max iterations limit ({self.max_iterations})")
                    raise MaxIterationsExceeded(
                        f"Agent stopped after {iterations} iterations without a final answer",
                        conversation=conversation,
                        iterations=iterations,
                    )
                if loop.time() > deadline:
                    logger.warning(f"⚠️  Request deadline of {self.request_timeout}s passed")
                    raise RequestDeadlineExceeded(
                        f"Request exceeded {self.request_timeout}s deadline",
                        conversation=conversation,
                        iterations=iterations,
                    )

                iterations += 1
                catalog = self.build_catalog()
                logger.info(f"🤔 Iteration {iterations}: calling model with {len(catalog)} tool(s)")

                turn = await self.llm(
                    conversation,
                    catalog,
                    system_instruction=system_instruction,
                    temperature=self.temperature,
                )
                conversation.append(turn)

                status = AgentStatus.EXECUTING_TOOLS if turn.has_tool_calls else AgentStatus.DONE

            elif status == AgentStatus.EXECUTING_TOOLS:
                calls = conversation[-1].tool_calls
                results = await self._execute_tool_calls(calls)

                for call, tool_result in zip(calls, results):
                    conversation.append(Turn.tool(call, tool_result.result))
                    tool_calls_made.append(tool_result.summary())

                status = AgentStatus.AWAITING_MODEL

        final_turn = find_final_answer(conversation)
        final_answer = final_turn.content if final_turn else ""
        execution_time = time.time() - start_time

        logger.info(
            f"✅ Agent completed in {iterations} iteration(s), "
            f"{len(tool_calls_made)} tool call(s), {execution_time:.2f}s"
        )

        return AgentResult(
            final_answer=final_answer,
            conversation=conversation,
            iterations=iterations,
            tool_calls_made=tool_calls_made,
            status=status,
            execution_time=execution_time,
        )

    async def _execute_tool_calls(self, calls: List[ToolCall]) -> List[ToolResult]:
        """
        Dispatch every call of one model turn.

        Results are returned in the order of `calls` whether they ran
        sequentially or concurrently.
        """
        if self.concurrent_tools and len(calls) > 1:
            return list(await asyncio.gather(*[self._execute_tool(call) for call in calls]))

        results = []
        for call in calls:
            results.append(await self._execute_tool(call))
        return results

    async def _execute_tool(self, call: ToolCall) -> ToolResult:
        start_time = time.time()
        result = await self.dispatcher.dispatch(call.name, call.arguments)
        return ToolResult(
            call_id=call.id,
            tool_name=call.name,
            success=result.get("success") is not False,
            result=result,
            execution_time=time.time() - start_time,
        )


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

async def run_agent_loop(
    initial_messages: List[Any],
    context_hint: Optional[str] = None,
    registry=None,
    llm: Optional[LLMCallable] = None,
    max_iterations: int = MAX_AGENT_ITERATIONS,
) -> AgentResult:
    """
    Convenience function to run the agent loop.

    Args:
        initial_messages: Conversation ending with the new user turn
        context_hint: Extra instruction appended to the system prompt
        registry: IntegrationRegistry (defaults to the process-wide one)
        llm: Model call override
        max_iterations: Maximum number of model calls

    Returns:
        AgentResult with the final answer and conversation
    """
    orchestrator = AgentOrchestrator(
        registry=registry,
        llm=llm,
        max_iterations=max_iterations,
    )
    return await orchestrator.run(initial_messages, context_hint=context_hint)
