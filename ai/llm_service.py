"""
LLM Service - Gemini API Wrapper with Langfuse Observability

This service provides the agent loop's only path to the language model:
- Async function calling (tools) against Gemini
- Conversion between conversation turns and Gemini content protos
- Conversion of JSON-schema tool descriptors to function declarations
- Automatic retry with exponential backoff for transient failures
- Per-call timeout
- Langfuse tracing and token usage tracking

All LLM interactions in A★ Tutor should use this service.
"""

import time
import json
import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Optional, Dict, List, Any
from functools import wraps

import google.generativeai as genai
from google.generativeai import protos
from google.generativeai.types import GenerationConfig, HarmCategory, HarmBlockThreshold
from langfuse import Langfuse
from langfuse.decorators import observe, langfuse_context

from config import (
    GOOGLE_API_KEY,
    GEMINI_MODEL,
    TEMPERATURE,
    MAX_TOKENS,
    TOP_P,
    TOP_K,
    MAX_RETRIES,
    RETRY_DELAY,
    TIMEOUT,
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    LANGFUSE_HOST,
    LANGFUSE_ENABLED,
)
from core.conversation import Role, ToolCall, Turn, parse_tool_content
from core.errors import LLMServiceError

logger = logging.getLogger(__name__)

# ============================================================================
# INITIALIZATION
# ============================================================================

if GOOGLE_API_KEY:
    genai.configure(api_key=GOOGLE_API_KEY)

# Initialize Langfuse client (if enabled)
_langfuse_client: Optional[Langfuse] = None

langfuse_context.configure(
    public_key=LANGFUSE_PUBLIC_KEY,
    secret_key=LANGFUSE_SECRET_KEY,
    host=LANGFUSE_HOST,
    enabled=LANGFUSE_ENABLED,
)

if LANGFUSE_ENABLED:
    try:
        _langfuse_client = Langfuse(
            public_key=LANGFUSE_PUBLIC_KEY,
            secret_key=LANGFUSE_SECRET_KEY,
            host=LANGFUSE_HOST,
        )
        logger.info("✅ Langfuse observability initialized")
    except Exception as e:
        logger.warning(f"⚠️  Langfuse initialization failed: {e}. Continuing without tracing.")
        _langfuse_client = None
else:
    logger.info("ℹ️  Langfuse observability disabled")


def get_langfuse_client() -> Optional[Langfuse]:
    """Get the Langfuse client instance."""
    return _langfuse_client


# ============================================================================
# SAFETY SETTINGS
# ============================================================================

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


# ============================================================================
# GENERATION CONFIGURATION
# ============================================================================

def get_generation_config(
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    top_p: Optional[float] = None,
    top_k: Optional[int] = None,
) -> GenerationConfig:
    """
    Create a generation configuration for Gemini API calls.

    Args:
        temperature: Sampling temperature (0.0 - 2.0). Defaults to config value.
        max_tokens: Maximum tokens to generate. Defaults to config value.
        top_p: Nucleus sampling parameter. Defaults to config value.
        top_k: Top-k sampling parameter. Defaults to config value.

    Returns:
        GenerationConfig object
    """
    return GenerationConfig(
        temperature=TEMPERATURE if temperature is None else temperature,
        max_output_tokens=max_tokens or MAX_TOKENS,
        top_p=top_p or TOP_P,
        top_k=top_k or TOP_K,
    )


# ============================================================================
# RETRY DECORATOR
# ============================================================================

def _is_retryable(error: Exception) -> bool:
    error_type = type(error).__name__.lower()
    error_msg = str(error).lower()
    return any([
        "timeout" in error_type,
        "rate limit" in error_msg,
        "quota" in error_msg,
        "timeout" in error_msg,
        "503" in error_msg,
        "429" in error_msg,
        "500" in error_msg,
    ])


def retry_on_error(max_retries: int = MAX_RETRIES, delay: float = RETRY_DELAY):
    """
    Decorator to retry coroutine calls on transient API errors.
    Implements exponential backoff.

    Non-retryable errors, and retryable ones on the final attempt, are
    re-raised as LLMServiceError.

    Args:
        max_retries: Maximum number of attempts
        delay: Initial delay between retries (seconds)
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(1, max_retries + 1):
                try:
                    return await func(*args, **kwargs)

                except LLMServiceError:
                    raise

                except Exception as e:
                    error_type = type(e).__name__

                    if not _is_retryable(e) or attempt >= max_retries:
                        logger.error(f"❌ {func.__name__} failed: {error_type}: {e}")
                        raise LLMServiceError(f"{error_type}: {e}") from e

                    logger.warning(
                        f"⚠️  {func.__name__} failed (attempt {attempt}/{max_retries}): "
                        f"{error_type}. Retrying in {current_delay}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= 2  # Exponential backoff

            raise LLMServiceError(f"Max retries ({max_retries}) exceeded")

        return wrapper
    return decorator


# ============================================================================
# CONVERSIONS
# ============================================================================

_SCHEMA_KEYS = {"type", "description", "properties", "required", "items", "enum", "format", "nullable"}


def to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a JSON schema into the subset Gemini function declarations accept.

    Types are upper-cased and keywords Gemini rejects (default, minimum, ...)
    are dropped.
    """
    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _SCHEMA_KEYS:
            continue
        if key == "type":
            converted["type"] = str(value).upper()
        elif key == "properties":
            converted["properties"] = {
                name: to_gemini_schema(prop) for name, prop in value.items()
            }
        elif key == "items":
            converted["items"] = to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


def to_gemini_tools(tools: List[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
    """Wrap tool descriptors into a single Gemini Tool with function declarations."""
    if not tools:
        return None

    declarations = []
    for tool in tools:
        declaration = {"name": tool["name"], "description": tool.get("description", "")}
        parameters = tool.get("parameters") or {}
        if parameters.get("properties"):
            declaration["parameters"] = to_gemini_schema(parameters)
        declarations.append(declaration)

    return [{"function_declarations": declarations}]


def to_plain(value: Any) -> Any:
    """
    Recursively convert proto map/repeated composites into dicts and lists.

    Struct numbers arrive as floats; integral ones are turned back into ints
    so ids like course_id=1234 survive the round trip.
    """
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [to_plain(v) for v in value]
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_gemini_contents(messages: List[Turn]) -> List[protos.Content]:
    """
    Convert conversation turns into Gemini contents.

    Assistant tool calls become function_call parts on a "model" content.
    Consecutive tool turns are merged into one "user" content holding the
    matching function_response parts.
    """
    contents: List[protos.Content] = []
    previous_was_tool = False

    for turn in messages:
        if turn.role == Role.TOOL:
            response = parse_tool_content(turn.content)
            if not isinstance(response, dict):
                response = {"result": response}
            part = protos.Part(
                function_response=protos.FunctionResponse(name=turn.tool_name or "", response=response)
            )
            if previous_was_tool:
                contents[-1].parts.append(part)
            else:
                contents.append(protos.Content(role="user", parts=[part]))
            previous_was_tool = True
            continue

        previous_was_tool = False

        if turn.role == Role.USER:
            contents.append(protos.Content(role="user", parts=[protos.Part(text=turn.content)]))
            continue

        parts = []
        if turn.content:
            parts.append(protos.Part(text=turn.content))
        for call in turn.tool_calls:
            parts.append(protos.Part(
                function_call=protos.FunctionCall(name=call.name, args=call.arguments)
            ))
        if parts:
            contents.append(protos.Content(role="model", parts=parts))

    return contents


def parse_model_response(response: Any) -> Turn:
    """
    Turn a Gemini response into an assistant turn.

    Text parts are concatenated. Each function_call part becomes a ToolCall
    with a freshly generated id, since Gemini does not issue call ids.
    """
    if not response.candidates:
        raise LLMServiceError("No response candidates returned from Gemini API")

    candidate = response.candidates[0]
    texts: List[str] = []
    tool_calls: List[ToolCall] = []

    for part in candidate.content.parts:
        text = getattr(part, "text", None)
        if text:
            texts.append(text)

        func_call = getattr(part, "function_call", None)
        if func_call and func_call.name:
            tool_calls.append(ToolCall(
                id=ToolCall.new_id(),
                name=func_call.name,
                arguments=to_plain(func_call.args) if func_call.args else {},
            ))

    return Turn.assistant(content="".join(texts), tool_calls=tool_calls)


# ============================================================================
# CORE LLM FUNCTIONS
# ============================================================================

@observe(name="call_llm_with_tools")
@retry_on_error()
async def call_llm_with_tools(
    messages: List[Turn],
    tools: List[Dict[str, Any]],
    system_instruction: Optional[str] = None,
    temperature: Optional[float] = None,
    model_name: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Turn:
    """
    Send the conversation so far plus the tool catalog to Gemini.

    Args:
        messages: Ordered conversation turns
        tools: Tool descriptors (name, description, JSON-schema parameters)
        system_instruction: System prompt
        temperature: Sampling temperature (defaults to config value)
        model_name: Model to use (overrides default)
        metadata: Additional metadata for Langfuse tracking

    Returns:
        Assistant Turn, possibly carrying tool calls

    Raises:
        LLMServiceError: If the API is unreachable, rejects the request,
            or times out after retries
    """
    if not GOOGLE_API_KEY:
        raise LLMServiceError("GOOGLE_API_KEY is not configured")

    model_name = model_name or GEMINI_MODEL

    if _langfuse_client:
        langfuse_context.update_current_trace(
            name="llm_call_with_tools",
            metadata={
                "model": model_name,
                "num_tools": len(tools),
                "num_messages": len(messages),
                **(metadata or {})
            }
        )

    model = genai.GenerativeModel(
        model_name=model_name,
        generation_config=get_generation_config(temperature),
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction,
        tools=to_gemini_tools(tools),
    )

    start_time = time.time()
    response = await asyncio.wait_for(
        model.generate_content_async(to_gemini_contents(messages)),
        timeout=TIMEOUT,
    )
    latency = time.time() - start_time

    turn = parse_model_response(response)

    usage = getattr(response, "usage_metadata", None)
    if usage is not None:
        if _langfuse_client:
            langfuse_context.update_current_observation(
                usage={
                    "input": usage.prompt_token_count,
                    "output": usage.candidates_token_count,
                    "total": usage.total_token_count,
                }
            )
        logger.debug(
            f"📊 Tokens: {usage.prompt_token_count} in, "
            f"{usage.candidates_token_count} out, "
            f"🔧 {len(turn.tool_calls)} tool call(s), ⏱️  {latency:.2f}s"
        )

    return turn


# ============================================================================
# HEALTH CHECK
# ============================================================================

async def health_check() -> Dict[str, Any]:
    """
    Perform a health check on the LLM service.

    Returns:
        Dict with service status information
    """
    status = {
        "gemini_api": "unknown",
        "langfuse": "unknown",
        "model": GEMINI_MODEL,
    }

    try:
        turn = await call_llm_with_tools(
            [Turn.user("Say 'OK' if you can read this.")],
            tools=[],
            temperature=0.0,
        )
        status["gemini_api"] = "✅ healthy" if "ok" in turn.content.lower() else "⚠️  degraded"
    except LLMServiceError as e:
        status["gemini_api"] = f"❌ error: {str(e)[:100]}"

    if _langfuse_client:
        try:
            _langfuse_client.flush()
            status["langfuse"] = "✅ connected"
        except Exception as e:
            status["langfuse"] = f"⚠️  {str(e)[:50]}"
    else:
        status["langfuse"] = "➖ disabled"

    return status


def describe_tool_calls(turn: Turn) -> str:
    """Compact one-line rendering of a turn's tool calls for logs."""
    return ", ".join(
        f"{tc.name}({json.dumps(tc.arguments, ensure_ascii=False)[:80]})" for tc in turn.tool_calls
    )
