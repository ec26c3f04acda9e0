"""
Application settings and configuration values.

This module centralizes all configuration values including:
- API keys and credentials
- Model parameters
- Agent loop limits and timeouts
- Integration endpoints

Environment variables are loaded via python-dotenv.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# ============================================================================
# PATHS
# ============================================================================

BASE_DIR = Path(__file__).parent.parent

# ============================================================================
# LLM CONFIGURATION
# ============================================================================

# Gemini API Settings
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")

if not GOOGLE_API_KEY:
    logger.warning(
        "GOOGLE_API_KEY not found in environment variables. "
        "Chat requests will fail until it is set in your .env file."
    )

# Model Parameters (tool selection works best at a low temperature)
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.2"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "8192"))
TOP_P = float(os.getenv("TOP_P", "0.95"))
TOP_K = int(os.getenv("TOP_K", "40"))

# Retry and Timeout Settings
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "1.0"))  # seconds
TIMEOUT = int(os.getenv("TIMEOUT", "30"))  # seconds

# ============================================================================
# LANGFUSE OBSERVABILITY
# ============================================================================

LANGFUSE_PUBLIC_KEY = os.getenv("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.getenv("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")

# Enable/disable Langfuse tracing
LANGFUSE_ENABLED = os.getenv("LANGFUSE_ENABLED", "true").lower() == "true"

if LANGFUSE_ENABLED and (not LANGFUSE_PUBLIC_KEY or not LANGFUSE_SECRET_KEY):
    logger.info("Langfuse is enabled but keys are missing. Tracing will be disabled.")
    LANGFUSE_ENABLED = False

# ============================================================================
# AGENT LOOP SETTINGS
# ============================================================================

# Hard cap on model turns per request
MAX_AGENT_ITERATIONS = int(os.getenv("MAX_AGENT_ITERATIONS", "10"))

# Whole-request deadline, checked between iterations
AGENT_REQUEST_TIMEOUT = float(os.getenv("AGENT_REQUEST_TIMEOUT", "120"))  # seconds

# Upper bound for a single tool dispatch
TOOL_TIMEOUT = float(os.getenv("TOOL_TIMEOUT", "30"))  # seconds

# Run tool calls from one model turn concurrently
CONCURRENT_TOOL_CALLS = os.getenv("CONCURRENT_TOOL_CALLS", "false").lower() == "true"

# ============================================================================
# INTEGRATION SETTINGS
# ============================================================================

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "15"))  # seconds

# Which connected instance serves a tool when several share a type:
#   "first"  - first connected instance in registry insertion order
#   "recent" - most recently connected instance
INTEGRATION_TIE_BREAK = os.getenv("INTEGRATION_TIE_BREAK", "first").lower()

# Canvas LMS (seeds the "canvas_default" integration when a token is present)
CANVAS_API_TOKEN = os.getenv("CANVAS_API_TOKEN")
CANVAS_API_URL = os.getenv("CANVAS_API_URL", "https://canvas.instructure.com/api/v1")

# Third-party API endpoints
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
NOTION_API_URL = os.getenv("NOTION_API_URL", "https://api.notion.com/v1")
NOTION_VERSION = os.getenv("NOTION_VERSION", "2022-06-28")
SLACK_API_URL = os.getenv("SLACK_API_URL", "https://slack.com/api")
GOOGLE_DRIVE_API_URL = os.getenv("GOOGLE_DRIVE_API_URL", "https://www.googleapis.com/drive/v3")

# Custom servers are probed at api_url + this path unless configured otherwise
DEFAULT_HEALTH_ENDPOINT = "/health"

# Size limits for content returned to the model
MAX_TOOL_CONTENT_CHARS = int(os.getenv("MAX_TOOL_CONTENT_CHARS", "20000"))
PAGE_PREVIEW_CHARS = 500

# ============================================================================
# DEVELOPMENT / DEBUG SETTINGS
# ============================================================================

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Print configuration summary on import (only in debug mode)
if DEBUG:
    print("\n" + "="*60)
    print("🔧 A★ Tutor Configuration Loaded")
    print("="*60)
    print(f"Model: {GEMINI_MODEL}")
    print(f"Temperature: {TEMPERATURE}")
    print(f"Max Iterations: {MAX_AGENT_ITERATIONS}")
    print(f"Langfuse: {'✅ Enabled' if LANGFUSE_ENABLED else '❌ Disabled'}")
    print(f"Canvas: {'✅ Token set' if CANVAS_API_TOKEN else '➖ Not configured'}")
    print(f"Debug Mode: {DEBUG}")
    print("="*60 + "\n")
