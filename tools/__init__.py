"""
Function Calling Tools Module

This module contains all tools (functions) that the LLM agent can invoke
through function calling. These are the "hands" of the agent - the actions
it can take on the student's connected services.

Each tool is designed to:
- Have a clear, single purpose
- Accept structured parameters from the LLM
- Return structured results ({"success": ..., "error": ...})
- Be independently testable

Integration tools belong to one integration type and only appear in the
catalog while an instance of that type is connected. Built-in tools run
locally and are always available.
"""

from typing import Dict, List, Optional

from .base import ToolSpec, error_result
from . import canvas_tools, drive_tools, github_tools, notion_tools, slack_tools, study_tools

from .study_tools import assignment_starter, material_generator

# Integration type value -> its tool specs, in descriptor order
TOOLS_BY_TYPE: Dict[str, Dict[str, ToolSpec]] = {
    canvas_tools.INTEGRATION_TYPE: canvas_tools.TOOL_SPECS,
    drive_tools.INTEGRATION_TYPE: drive_tools.TOOL_SPECS,
    github_tools.INTEGRATION_TYPE: github_tools.TOOL_SPECS,
    notion_tools.INTEGRATION_TYPE: notion_tools.TOOL_SPECS,
    slack_tools.INTEGRATION_TYPE: slack_tools.TOOL_SPECS,
}

BUILTIN_TOOLS: Dict[str, ToolSpec] = dict(study_tools.TOOL_SPECS)


# Tool registry for the dispatcher
def get_tool_registry() -> Dict[str, ToolSpec]:
    """
    Get the complete static table of tools.

    Returns:
        Dictionary mapping tool names to ToolSpec (owning type + handler)
    """
    registry: Dict[str, ToolSpec] = {}
    for specs in TOOLS_BY_TYPE.values():
        registry.update(specs)
    registry.update(BUILTIN_TOOLS)
    return registry


def get_tool_descriptors(integration_type: Optional[str]) -> List[dict]:
    """
    Descriptors for one integration type, or the built-ins when None.

    Types with no tools (custom servers) return an empty list.
    """
    type_name = getattr(integration_type, "value", integration_type)
    specs = BUILTIN_TOOLS if type_name is None else TOOLS_BY_TYPE.get(type_name, {})
    return [spec.descriptor() for spec in specs.values()]


def get_builtin_descriptors() -> List[dict]:
    return get_tool_descriptors(None)


__all__ = [
    "ToolSpec",
    "error_result",
    "TOOLS_BY_TYPE",
    "BUILTIN_TOOLS",
    "assignment_starter",
    "material_generator",
    "get_tool_registry",
    "get_tool_descriptors",
    "get_builtin_descriptors",
]
