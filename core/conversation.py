"""
Conversation State

An ordered, append-only log of turns (user, assistant, tool) threaded
through every iteration of the agent loop. The caller owns the list and
persists it; the loop works on a copy.
"""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ToolCall:
    """
    A model-issued request to invoke one tool.

    Attributes:
        id: Identifier echoed back by the matching tool turn
        name: Flat tool name as it appears in the catalog
        arguments: JSON object of arguments
    """
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def new_id() -> str:
        return f"call_{uuid.uuid4().hex[:24]}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCall":
        # Accept the OpenAI-style {"function": {"name", "arguments": "<json>"}} shape too
        if "function" in data:
            function = data["function"] or {}
            arguments = function.get("arguments") or {}
            if isinstance(arguments, str):
                arguments = json.loads(arguments or "{}")
            return cls(id=data.get("id") or cls.new_id(), name=function.get("name", ""), arguments=arguments)
        return cls(
            id=data.get("id") or cls.new_id(),
            name=data.get("name", ""),
            arguments=dict(data.get("arguments") or {}),
        )


@dataclass
class Turn:
    """
    One entry in the conversation.

    Attributes:
        role: Who produced the turn
        content: Text content (tool turns carry serialized JSON)
        tool_calls: Tool requests issued by an assistant turn
        tool_call_id: Originating call id for a tool turn
        tool_name: Tool that produced a tool turn
    """
    role: Role
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = None

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str = "", tool_calls: Optional[List[ToolCall]] = None) -> "Turn":
        return cls(role=Role.ASSISTANT, content=content or "", tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, call: ToolCall, result: Dict[str, Any]) -> "Turn":
        """Build the tool turn answering `call` with a serialized result."""
        return cls(
            role=Role.TOOL,
            content=json.dumps(result, ensure_ascii=False, default=str),
            tool_call_id=call.id,
            tool_name=call.name,
        )

    @property
    def has_tool_calls(self) -> bool:
        return self.role == Role.ASSISTANT and len(self.tool_calls) > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_name is not None:
            data["name"] = self.tool_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        role = Role(data["role"])
        return cls(
            role=role,
            content=data.get("content") or "",
            tool_calls=[ToolCall.from_dict(tc) for tc in data.get("tool_calls") or []],
            tool_call_id=data.get("tool_call_id"),
            tool_name=data.get("name") or data.get("tool_name"),
        )


# ============================================================================
# HELPERS
# ============================================================================

def load_history(history: Optional[List[Any]]) -> List[Turn]:
    """
    Normalize caller-supplied history into Turn objects.

    Accepts Turn instances or plain dicts (as stored by the caller). System
    turns are dropped since the system instruction is supplied separately.
    """
    turns: List[Turn] = []
    for item in history or []:
        if isinstance(item, Turn):
            turns.append(item)
        elif isinstance(item, dict):
            if item.get("role") == "system":
                continue
            turns.append(Turn.from_dict(item))
        else:
            raise TypeError(f"Unsupported history entry: {type(item).__name__}")
    return turns


def find_final_answer(conversation: List[Turn]) -> Optional[Turn]:
    """Most recent assistant turn, searching from the end."""
    for turn in reversed(conversation):
        if turn.role == Role.ASSISTANT:
            return turn
    return None


def parse_tool_content(content: str) -> Any:
    """Decode a tool turn's content back into JSON, falling back to raw text."""
    try:
        return json.loads(content)
    except (TypeError, ValueError):
        return {"result": content}


def serialize_conversation(conversation: List[Turn]) -> List[Dict[str, Any]]:
    return [turn.to_dict() for turn in conversation]
