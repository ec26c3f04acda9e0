"""
Configuration module for A★ Tutor.

This module provides centralized configuration management including:
- Application settings (models, API keys, timeouts, integration endpoints)
- Prompt templates and mode hints

All configurable values should be imported from this module to ensure
consistency across the application.
"""

from .settings import (
    # Paths
    BASE_DIR,

    # API Keys
    GOOGLE_API_KEY,

    # LLM Settings
    GEMINI_MODEL,
    TEMPERATURE,
    MAX_TOKENS,
    TOP_P,
    TOP_K,
    MAX_RETRIES,
    RETRY_DELAY,
    TIMEOUT,

    # Langfuse Settings
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    LANGFUSE_HOST,
    LANGFUSE_ENABLED,

    # Agent Settings
    MAX_AGENT_ITERATIONS,
    AGENT_REQUEST_TIMEOUT,
    TOOL_TIMEOUT,
    CONCURRENT_TOOL_CALLS,

    # Integration Settings
    HTTP_TIMEOUT,
    INTEGRATION_TIE_BREAK,
    CANVAS_API_TOKEN,
    CANVAS_API_URL,
    GITHUB_API_URL,
    NOTION_API_URL,
    NOTION_VERSION,
    SLACK_API_URL,
    GOOGLE_DRIVE_API_URL,
    DEFAULT_HEALTH_ENDPOINT,
    MAX_TOOL_CONTENT_CHARS,
    PAGE_PREVIEW_CHARS,

    # Debug
    DEBUG,
    LOG_LEVEL,
)

from .prompts import (
    SYSTEM_PROMPT,
    MODE_HINTS,
    DEFAULT_MODE,
    ASSIGNMENT_CONTEXT_TEMPLATE,
    USER_TURN_TEMPLATE,
    format_prompt,
)

__all__ = [
    # Settings
    "BASE_DIR",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "TEMPERATURE",
    "MAX_TOKENS",
    "TOP_P",
    "TOP_K",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "TIMEOUT",
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_HOST",
    "LANGFUSE_ENABLED",
    "MAX_AGENT_ITERATIONS",
    "AGENT_REQUEST_TIMEOUT",
    "TOOL_TIMEOUT",
    "CONCURRENT_TOOL_CALLS",
    "HTTP_TIMEOUT",
    "INTEGRATION_TIE_BREAK",
    "CANVAS_API_TOKEN",
    "CANVAS_API_URL",
    "GITHUB_API_URL",
    "NOTION_API_URL",
    "NOTION_VERSION",
    "SLACK_API_URL",
    "GOOGLE_DRIVE_API_URL",
    "DEFAULT_HEALTH_ENDPOINT",
    "MAX_TOOL_CONTENT_CHARS",
    "PAGE_PREVIEW_CHARS",
    "DEBUG",
    "LOG_LEVEL",

    # Prompts
    "SYSTEM_PROMPT",
    "MODE_HINTS",
    "DEFAULT_MODE",
    "ASSIGNMENT_CONTEXT_TEMPLATE",
    "USER_TURN_TEMPLATE",
    "format_prompt",
]
