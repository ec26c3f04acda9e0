"""
AI Infrastructure Module

This module provides the language model boundary for A★ Tutor:
- Async Gemini function calling with error handling and retry logic
- Turn/content and descriptor/declaration conversions
- Langfuse observability integration
- Token usage tracking

All LLM calls should go through this module to ensure consistent
observability, error handling, and configuration.
"""

from .llm_service import (
    call_llm_with_tools,
    health_check,
    describe_tool_calls,
    get_langfuse_client,
)

__all__ = [
    "call_llm_with_tools",
    "health_check",
    "describe_tool_calls",
    "get_langfuse_client",
]
