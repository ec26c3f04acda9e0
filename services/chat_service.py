"""
Chat Service - Main Coordinator

Orchestrates the entire student interaction flow:
1. Receives the student's message, prior history and chosen mode
2. Loads assignment context from Canvas when an assignment is in focus
3. Runs the agent loop
4. Returns the answer, the updated history and the tool calls made

This is the main entry point for the CLI (and any HTTP layer in front of it).
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core import (
    AgentOrchestrator,
    AgentLoopError,
    LLMServiceError,
    MaxIterationsExceeded,
    RequestDeadlineExceeded,
    Turn,
    ModeType,
    build_assignment_hint,
    build_user_turn,
    get_mode_hint,
    load_history,
    serialize_conversation,
)
from core.router import parse_mode

logger = logging.getLogger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class ChatResponse:
    """
    Response from the chat service.

    Attributes:
        message: The response text to display to the student
        success: Whether the request was handled successfully
        metadata: Additional metadata about the response
        conversation: Full history (dict form) for the caller to persist
        tool_calls: Summaries of the tool calls made during this request
        suggestions: Follow-up suggestions for the student
    """
    message: str
    success: bool
    metadata: Dict[str, Any]
    conversation: List[Dict[str, Any]] = field(default_factory=list)
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    suggestions: Optional[List[str]] = None


# ============================================================================
# CHAT SERVICE
# ============================================================================

class ChatService:
    """
    Main chat service coordinator.

    Stateless between requests: history is supplied by the caller and
    handed back with every response.
    """

    def __init__(self, registry=None, orchestrator: Optional[AgentOrchestrator] = None):
        """Initialize the chat service."""
        if registry is None:
            from services.integration_service import get_integration_registry
            registry = get_integration_registry()
        self.registry = registry
        self.orchestrator = orchestrator or AgentOrchestrator(registry=registry)
        logger.info("✅ ChatService initialized")

    async def process_message(
        self,
        user_message: str,
        conversation_history: Optional[List[Any]] = None,
        mode: Optional[str] = None,
        course_id: Optional[Any] = None,
        assignment_id: Optional[Any] = None,
        session_id: Optional[str] = None,
    ) -> ChatResponse:
        """
        Process a student message and generate a response.

        Args:
            user_message: The student's input text
            conversation_history: Previous turns (Turn objects or dicts)
            mode: Study mode (start, study, question, material, canvas)
            course_id: Canvas course of the assignment in focus
            assignment_id: Canvas assignment in focus
            session_id: Session identifier for logs

        Returns:
            ChatResponse with the tutor's reply and metadata
        """
        if not session_id:
            session_id = str(uuid.uuid4())

        if not user_message or not user_message.strip():
            return ChatResponse(
                message="Message is required",
                success=False,
                metadata={"error": "Message is required", "error_type": "validation", "session_id": session_id},
            )

        logger.info(f"💬 Processing message (session: {session_id}): {user_message[:50]}...")

        history: List[Turn] = []
        try:
            history = load_history(conversation_history)

            hint, assignment = await self._build_context_hint(mode, course_id, assignment_id)
            messages = history + [Turn.user(build_user_turn(user_message, hint))]

            result = await self.orchestrator.run(messages)

            return ChatResponse(
                message=result.final_answer or "No response generated",
                success=True,
                metadata={
                    "mode": (parse_mode(mode) or ModeType.QUESTION).value,
                    "assignment": assignment.get("name") if assignment else None,
                    "iterations": result.iterations,
                    "tools_used": result.tools_used,
                    "execution_time": result.execution_time,
                    "session_id": session_id,
                },
                conversation=serialize_conversation(result.conversation),
                tool_calls=result.tool_calls_made,
                suggestions=self._generate_suggestions(mode, result.tools_used),
            )

        except MaxIterationsExceeded as e:
            logger.error(f"❌ Agent hit the iteration limit: {e}")
            return self._loop_error_response(
                e, "max_iterations", session_id,
                "I went back and forth with my tools too many times on that one. "
                "Could you narrow the question down a little?",
            )

        except RequestDeadlineExceeded as e:
            logger.error(f"❌ Agent ran out of time: {e}")
            return self._loop_error_response(
                e, "deadline_exceeded", session_id,
                "That took longer than expected. Please try again in a moment.",
            )

        except LLMServiceError as e:
            logger.error(f"❌ Language model error: {e}")
            return ChatResponse(
                message=self._get_error_message(),
                success=False,
                metadata={"error": str(e), "error_type": "llm_error", "session_id": session_id},
                conversation=serialize_conversation(history),
            )

        except Exception as e:
            logger.error(f"❌ ChatService error: {e}", exc_info=True)
            return ChatResponse(
                message=self._get_error_message(),
                success=False,
                metadata={"error": str(e), "error_type": "internal_error", "session_id": session_id},
                conversation=serialize_conversation(history),
            )

    async def _build_context_hint(self, mode, course_id, assignment_id):
        """
        Pick the context hint: the assignment hint when an assignment is in
        focus and loads, the mode hint otherwise.

        Returns:
            (hint, assignment payload or None)
        """
        if course_id is not None and assignment_id is not None:
            result = await self.orchestrator.dispatcher.dispatch(
                "get_assignment_details",
                {"course_id": course_id, "assignment_id": assignment_id, "include_submission": False},
            )
            if result.get("success"):
                assignment = result["assignment"]
                logger.info(f"📌 Assignment in focus: {assignment.get('name')}")
                return build_assignment_hint(assignment), assignment

            logger.warning(f"⚠️  Could not load assignment {assignment_id}: {result.get('error')}")

        return get_mode_hint(mode), None

    def _loop_error_response(
        self,
        error: AgentLoopError,
        error_type: str,
        session_id: str,
        message: str,
    ) -> ChatResponse:
        return ChatResponse(
            message=message,
            success=False,
            metadata={
                "error": str(error),
                "error_type": error_type,
                "iterations": error.iterations,
                "session_id": session_id,
            },
            conversation=serialize_conversation(error.conversation),
        )

    def _generate_suggestions(self, mode: Optional[str], tools_used: List[str]) -> List[str]:
        """
        Generate contextual follow-up suggestions based on the mode and tools used.
        """
        mode_type = parse_mode(mode) or ModeType.QUESTION

        if "list_upcoming_assignments" in tools_used or mode_type == ModeType.CANVAS:
            suggestions = [
                "Help me get started on the next assignment",
                "What should I review for my next exam?",
                "Make a study plan for this week",
            ]
        elif mode_type == ModeType.START:
            suggestions = [
                "Break the first step down further",
                "What does a strong thesis look like here?",
                "Check my outline against the rubric",
            ]
        elif mode_type == ModeType.MATERIAL:
            suggestions = [
                "Quiz me on these flashcards",
                "Make a study guide instead",
                "Go one level deeper",
            ]
        elif mode_type == ModeType.STUDY:
            suggestions = [
                "Ask me another recall question",
                "Explain where I went wrong",
                "Connect this to what we covered before",
            ]
        else:
            suggestions = [
                "Let me explain my current understanding",
                "Give me a hint, not the answer",
                "Show me a similar worked example",
            ]

        return suggestions[:3]

    def _get_error_message(self) -> str:
        """Get a friendly error message."""
        return (
            "I'm having trouble processing your request right now. "
            "This could be a temporary issue. Please try:\n"
            "- Rephrasing your question\n"
            "- Checking that your integrations are still connected\n\n"
            "If the problem persists, feel free to start a new conversation."
        )


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

async def process_user_message(
    user_message: str,
    conversation_history: Optional[List[Any]] = None,
    mode: Optional[str] = None,
    **kwargs
) -> ChatResponse:
    """
    Convenience function to process a student message.

    Args:
        user_message: The student's message
        conversation_history: Previous conversation
        mode: Study mode
        **kwargs: course_id, assignment_id, session_id

    Returns:
        ChatResponse
    """
    service = ChatService()
    return await service.process_message(
        user_message=user_message,
        conversation_history=conversation_history,
        mode=mode,
        **kwargs
    )
