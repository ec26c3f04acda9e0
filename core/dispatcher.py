"""
Tool Dispatcher

Resolves a flat tool name plus arguments into an actual call:
tool name -> owning integration type -> connected instance -> client method.

The agent loop and the model only ever see tool names; this is the only
place that knows about instance selection. dispatch() never raises: every
failure comes back as {"success": False, "error": ...}.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from config import TOOL_TIMEOUT
from tools import ToolSpec, get_tool_registry

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """
    Executes tool calls against the integration registry.

    Args:
        registry: IntegrationRegistry used for instance selection
            (defaults to the process-wide registry)
        tool_table: Static name -> ToolSpec table (defaults to all tools)
        timeout: Per-dispatch timeout in seconds
    """

    def __init__(self, registry=None, tool_table: Optional[Dict[str, ToolSpec]] = None, timeout: float = TOOL_TIMEOUT):
        if registry is None:
            from services.integration_service import get_integration_registry
            registry = get_integration_registry()
        self.registry = registry
        self.tool_table = tool_table if tool_table is not None else get_tool_registry()
        self.timeout = timeout

    @staticmethod
    def filter_arguments(spec: ToolSpec, args: Any) -> Dict[str, Any]:
        """
        Keep only declared arguments; required ones that are missing become None.

        The handler then reports the missing value itself.
        """
        args = args if isinstance(args, dict) else {}
        accepted = set(spec.accepted)
        filtered = {key: value for key, value in args.items() if key in accepted}

        dropped = set(args) - accepted
        if dropped:
            logger.debug(f"Ignoring unknown arguments for {spec.name}: {sorted(dropped)}")

        for key in spec.required:
            filtered.setdefault(key, None)
        return filtered

    async def dispatch(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute one tool call.

        Args:
            name: Tool name as issued by the model
            args: Tool arguments (JSON object)

        Returns:
            The tool's own result payload, or {"success": False, "error": ...}
        """
        start_time = time.time()

        spec = self.tool_table.get(name)
        if spec is None:
            logger.warning(f"⚠️  Unknown tool requested: {name}")
            return {"success": False, "error": f"Unknown tool {name}"}

        kwargs = self.filter_arguments(spec, args)
        logger.info(f"🔧 Calling tool: {name} with args: {kwargs}")

        try:
            if spec.is_builtin:
                result = await asyncio.wait_for(spec.handler(**kwargs), timeout=self.timeout)
            else:
                instance = self.registry.select_instance(spec.integration_type)
                if instance is None:
                    logger.warning(f"⚠️  {name}: no {spec.integration_type} server connected")
                    return {"success": False, "error": f"No {spec.integration_type} server connected"}

                logger.debug(f"{name} -> {instance.name} ({instance.id})")
                async with self.registry.client_for(instance) as client:
                    result = await asyncio.wait_for(spec.handler(client, **kwargs), timeout=self.timeout)

        except asyncio.TimeoutError:
            logger.error(f"❌ Tool {name} timed out after {self.timeout}s")
            return {"success": False, "error": f"Tool {name} timed out after {self.timeout}s"}

        except Exception as e:
            logger.error(f"❌ Tool {name} execution failed: {e}", exc_info=True)
            return {"success": False, "error": str(e) or type(e).__name__}

        if not isinstance(result, dict):
            result = {"success": True, "result": result}

        execution_time = time.time() - start_time
        if result.get("success") is False:
            logger.warning(f"⚠️  Tool {name} returned an error: {result.get('error')} ({execution_time:.2f}s)")
        else:
            logger.info(f"✅ Tool {name} completed in {execution_time:.2f}s")

        return result
