"""
Exception types shared across A★ Tutor.

Anything that can be shown to the model (tool failures) stays inside the
agent loop as conversation content and never uses these. These exceptions
are for conditions the caller has to handle.
"""

from typing import List, Optional


class TutorError(Exception):
    """Base class for all A★ Tutor errors."""


# ============================================================================
# INTEGRATION REGISTRY
# ============================================================================

class IntegrationValidationError(TutorError, ValueError):
    """Raised when an integration config is rejected by the registry."""


class IntegrationNotFoundError(TutorError, KeyError):
    """Raised when an integration id is not present in the registry."""

    def __init__(self, integration_id: str):
        self.integration_id = integration_id
        super().__init__(f"Server {integration_id} not found")

    def __str__(self) -> str:
        return self.args[0]


# ============================================================================
# LANGUAGE MODEL
# ============================================================================

class LLMServiceError(TutorError):
    """Raised when the language model cannot be reached or rejects a request."""


# ============================================================================
# AGENT LOOP
# ============================================================================

class AgentLoopError(TutorError):
    """
    Base for terminal agent loop outcomes other than a normal answer.

    Carries the conversation as it stood when the loop stopped so the
    caller can still persist it.
    """

    def __init__(self, message: str, conversation: Optional[List] = None, iterations: int = 0):
        super().__init__(message)
        self.conversation = conversation or []
        self.iterations = iterations


class MaxIterationsExceeded(AgentLoopError):
    """The model kept requesting tools past the iteration cap."""


class RequestDeadlineExceeded(AgentLoopError):
    """The per-request deadline passed between two iterations."""
