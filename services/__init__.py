"""
Business Logic Services Module

This module contains the core business logic for A★ Tutor:
- Integration service: Registry of the student's connected services,
  connection testing and tool catalog assembly
- Chat service: Main coordinator for student interactions

Services orchestrate the agent and apply domain-specific rules.
"""

from .integration_service import (
    IntegrationType,
    IntegrationStatus,
    IntegrationInstance,
    IntegrationRegistry,
    get_integration_registry,
    reset_integration_registry,
)

from .chat_service import (
    ChatService,
    ChatResponse,
    process_user_message,
)

__all__ = [
    # Integration Service
    "IntegrationType",
    "IntegrationStatus",
    "IntegrationInstance",
    "IntegrationRegistry",
    "get_integration_registry",
    "reset_integration_registry",

    # Chat Service
    "ChatService",
    "ChatResponse",
    "process_user_message",
]
