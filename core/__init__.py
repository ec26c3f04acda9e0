"""
Core Agent Logic Module

This module contains the brain of A★ Tutor's agentic system:
- Mode routing (router): Turns the chosen study mode into a context hint
- Conversation state: The append-only turn log threaded through the loop
- Tool dispatch: Resolves tool names to connected integrations
- Agent orchestration: The model <-> tools loop

The agent calls the model with the current tool catalog, executes any
requested tools, and repeats until the model answers in plain text.
"""

from .errors import (
    TutorError,
    IntegrationValidationError,
    IntegrationNotFoundError,
    LLMServiceError,
    AgentLoopError,
    MaxIterationsExceeded,
    RequestDeadlineExceeded,
)

from .conversation import (
    Role,
    ToolCall,
    Turn,
    load_history,
    find_final_answer,
    serialize_conversation,
)

from .router import (
    ModeType,
    get_mode_hint,
    build_assignment_hint,
    build_user_turn,
)

from .dispatcher import ToolDispatcher

from .orchestrator import (
    AgentOrchestrator,
    AgentStatus,
    AgentResult,
    ToolResult,
    run_agent_loop,
)

__all__ = [
    # Errors
    "TutorError",
    "IntegrationValidationError",
    "IntegrationNotFoundError",
    "LLMServiceError",
    "AgentLoopError",
    "MaxIterationsExceeded",
    "RequestDeadlineExceeded",

    # Conversation
    "Role",
    "ToolCall",
    "Turn",
    "load_history",
    "find_final_answer",
    "serialize_conversation",

    # Router
    "ModeType",
    "get_mode_hint",
    "build_assignment_hint",
    "build_user_turn",

    # Dispatch & orchestration
    "ToolDispatcher",
    "AgentOrchestrator",
    "AgentStatus",
    "AgentResult",
    "ToolResult",
    "run_agent_loop",
]
