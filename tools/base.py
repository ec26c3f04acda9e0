"""
Tool declarations shared by every tool module.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional


@dataclass(frozen=True)
class ToolSpec:
    """
    One entry of the static tool table.

    Attributes:
        name: Flat tool name exposed to the model
        description: What the tool does and when to use it
        parameters: JSON schema of the arguments
        integration_type: Owning integration type value, None for built-ins
        handler: Coroutine function. Integration tools take the bound client
            as first argument; built-ins take only keyword arguments.
    """
    name: str
    description: str
    parameters: Dict[str, Any]
    integration_type: Optional[str]
    handler: Callable[..., Awaitable[Dict[str, Any]]]

    @property
    def is_builtin(self) -> bool:
        return self.integration_type is None

    @property
    def required(self) -> list:
        return list(self.parameters.get("required", []))

    @property
    def accepted(self) -> list:
        return list((self.parameters.get("properties") or {}).keys())

    def descriptor(self) -> Dict[str, Any]:
        """Name, description and parameter schema as handed to the model."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


def error_result(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


def build_specs(definitions, handlers, integration_type: Optional[str]) -> Dict[str, ToolSpec]:
    """Pair descriptor dicts with their handlers."""
    return {
        definition["name"]: ToolSpec(
            name=definition["name"],
            description=definition["description"],
            parameters=definition["parameters"],
            integration_type=integration_type,
            handler=handlers[definition["name"]],
        )
        for definition in definitions
    }
